# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the atomic document writer."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from tdd_guard.assembler import TestResultBuilder, build_lint_result
from tdd_guard.core import storage
from tdd_guard.core.models import LintIssue, LintResult, Severity, TestResult, TestState
from tdd_guard.core.storage import StoragePaths, read_document, write_document


def _lint_result() -> LintResult:
    issue = LintIssue(file="a.nix", line=2, column=3, severity=Severity.WARNING, message="m [W04]", rule="W04")
    return build_lint_result(["a.nix"], [issue], timestamp="2025-01-01T00:00:00.000Z")


def test_storage_paths_for_project(project_root: Path) -> None:
    paths = StoragePaths.for_project(project_root)

    assert paths.data_dir == project_root / ".claude" / "tdd-guard" / "data"
    assert paths.test_results.name == "test.json"
    assert paths.lint_results.name == "lint.json"


def test_write_document_creates_directories_and_round_trips(project_root: Path) -> None:
    target = StoragePaths.for_project(project_root).lint_results
    document = _lint_result()

    assert write_document(target, document) == target

    raw = json.loads(target.read_text(encoding="utf-8"))
    assert raw["errorCount"] == 0
    assert raw["warningCount"] == 1
    assert raw["issues"][0]["rule"] == "W04"
    assert read_document(target, LintResult) == document
    assert [entry.name for entry in target.parent.iterdir()] == ["lint.json"]


def test_test_result_round_trips(project_root: Path) -> None:
    builder = TestResultBuilder()
    builder.add_test("tests", "testA", TestState.PASSED, full_name="tests.testA")
    builder.add_test("tests", "testB", TestState.FAILED, full_name="tests.testB")
    builder.add_unhandled_error("late failure", name="NixEvaluationError")
    document = builder.build()
    target = StoragePaths.for_project(project_root).test_results

    write_document(target, document)

    raw = json.loads(target.read_text(encoding="utf-8"))
    assert raw["testModules"][0]["tests"][1]["fullName"] == "tests.testB"
    assert raw["reason"] == "failed"
    assert read_document(target, TestResult) == document


def test_write_document_replaces_existing_file(project_root: Path) -> None:
    target = project_root / "out" / "lint.json"
    write_document(target, build_lint_result(["old.nix"], []))
    write_document(target, _lint_result())

    assert json.loads(target.read_text(encoding="utf-8"))["files"] == ["a.nix"]


def test_write_failure_propagates_and_cleans_up(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = project_root / "data" / "lint.json"

    def broken_replace(src: os.PathLike[str], dst: os.PathLike[str]) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(storage.os, "replace", broken_replace)

    with pytest.raises(OSError, match="read-only"):
        write_document(target, _lint_result())

    assert not target.exists()
    assert list(target.parent.iterdir()) == []
