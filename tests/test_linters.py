# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the linter adapters with subprocess execution faked."""

from __future__ import annotations

import json
import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest

from tdd_guard.core.models import Severity
from tdd_guard.core.runtime.process import CommandOptions, SubprocessExecutionError
from tdd_guard.tools.linters import EslintLinter, GolangciLinter, NixfTidyLinter, StatixLinter


def _completed(args: Sequence[str], stdout: str) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(list(args), 0, stdout=stdout, stderr="")


def test_statix_findings_exit_is_parsed(monkeypatch: pytest.MonkeyPatch, project_root: Path) -> None:
    (project_root / "default.nix").write_text("{\n  a = a;\n}\n", encoding="utf-8")
    report = {
        "file": "default.nix",
        "report_kind": "warn",
        "note": "Assignment instead of inherit",
        "suggestions": [{"at": {"from": 4, "to": 9}, "note": "Assignment instead of inherit [W03]"}],
    }
    calls: list[list[str]] = []

    def fake_run(args: Sequence[str], *, options: CommandOptions) -> subprocess.CompletedProcess[str]:
        calls.append(list(args))
        assert options.cwd == project_root
        raise SubprocessExecutionError(args, 1, json.dumps(report), "")

    monkeypatch.setattr("tdd_guard.tools.base.run_command", fake_run)

    result = StatixLinter(cwd=project_root).lint(["default.nix"], project_root / "statix.toml")

    assert calls == [["statix", "check", "default.nix", "--output", "json", "--config", str(project_root / "statix.toml")]]
    assert result.files == ("default.nix",)
    assert result.warning_count == 1
    issue = result.issues[0]
    assert (issue.line, issue.column) == (2, 3)
    assert issue.rule == "W03"


def test_clean_statix_run(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("tdd_guard.tools.base.run_command", lambda args, *, options: _completed(args, ""))

    payload = StatixLinter().lint(["a.nix"]).to_payload()

    assert payload["issues"] == []
    assert (payload["errorCount"], payload["warningCount"]) == (0, 0)


def test_crashed_linter_yields_no_issues(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args: Sequence[str], *, options: CommandOptions) -> subprocess.CompletedProcess[str]:
        raise SubprocessExecutionError(args, 2, "", "thread 'main' panicked")

    monkeypatch.setattr("tdd_guard.tools.base.run_command", fake_run)

    result = GolangciLinter().lint(["main.go"])

    assert result.issues == ()
    assert result.files == ("main.go",)


def test_missing_linter_binary_propagates(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args: Sequence[str], *, options: CommandOptions) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError("Executable 'eslint' was not found on PATH")

    monkeypatch.setattr("tdd_guard.tools.base.run_command", fake_run)

    with pytest.raises(FileNotFoundError):
        EslintLinter().lint(["a.js"])


def test_eslint_and_golangci_commands(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(args: Sequence[str], *, options: CommandOptions) -> subprocess.CompletedProcess[str]:
        calls.append(list(args))
        return _completed(args, "[]" if args[0] == "eslint" else '{"Issues": []}')

    monkeypatch.setattr("tdd_guard.tools.base.run_command", fake_run)

    EslintLinter().lint(["a.js", "b.js"], Path("/cfg/.eslintrc.json"))
    GolangciLinter().lint(["main.go"])

    assert calls == [
        ["eslint", "--format", "json", "--config", "/cfg/.eslintrc.json", "a.js", "b.js"],
        ["golangci-lint", "run", "--out-format", "json", "main.go"],
    ]


def test_nixf_tidy_isolates_per_file_failures(monkeypatch: pytest.MonkeyPatch, project_root: Path) -> None:
    (project_root / "good.nix").write_text("let x = 1; in 2\n", encoding="utf-8")
    (project_root / "crash.nix").write_text("CRASH\n", encoding="utf-8")
    (project_root / "noise.nix").write_text("NOISE\n", encoding="utf-8")
    diagnostic = {
        "args": ["x"],
        "message": "unused binding `{}`",
        "range": {"lCur": {"line": 0, "column": 4}},
        "severity": 2,
        "sname": "sema-unused-def-let",
    }
    inputs: list[str | None] = []

    def fake_run(args: Sequence[str], *, options: CommandOptions) -> subprocess.CompletedProcess[str]:
        assert list(args) == ["nixf-tidy", "--pretty-print", "--variable-lookup"]
        inputs.append(options.input_text)
        if options.input_text == "CRASH\n":
            raise SubprocessExecutionError(args, 1, "", "segfault")
        if options.input_text == "NOISE\n":
            return _completed(args, "not json at all")
        return _completed(args, json.dumps([diagnostic]))

    monkeypatch.setattr("tdd_guard.tools.linters.run_command", fake_run)

    result = NixfTidyLinter(cwd=project_root).lint(["crash.nix", "missing.nix", "noise.nix", "good.nix"])

    assert inputs == ["CRASH\n", "NOISE\n", "let x = 1; in 2\n"]
    assert result.files == ("crash.nix", "missing.nix", "noise.nix", "good.nix")
    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.file == "good.nix"
    assert issue.message == "unused binding `x`"
    assert (issue.line, issue.column) == (1, 5)
    assert issue.severity is Severity.WARNING


def test_nixf_tidy_missing_binary_propagates(monkeypatch: pytest.MonkeyPatch, project_root: Path) -> None:
    (project_root / "a.nix").write_text("{ }\n", encoding="utf-8")

    def fake_run(args: Sequence[str], *, options: CommandOptions) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError("Executable 'nixf-tidy' was not found on PATH")

    monkeypatch.setattr("tdd_guard.tools.linters.run_command", fake_run)

    with pytest.raises(FileNotFoundError):
        NixfTidyLinter(cwd=project_root).lint(["a.nix"])
