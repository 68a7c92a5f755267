# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the subprocess wrapper and execution limits."""

from __future__ import annotations

import io
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from tdd_guard.core.runtime import process
from tdd_guard.core.runtime.process import (
    TIMEOUT_EXIT_CODE,
    TRUNCATION_MARKER,
    CommandOptions,
    ExecutionLimits,
    SubprocessExecutionError,
    cap_output_lines,
    capture_stream,
    run_command,
    run_with_limits,
    timeout_diagnosis,
)


@pytest.fixture
def fake_which(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(process.shutil, "which", lambda name: f"/usr/bin/{name}")


def test_cap_output_lines_appends_marker_once() -> None:
    lines, truncated = cap_output_lines((f"line {index}" for index in range(25)), 10)

    assert truncated is True
    assert len(lines) == 11
    assert lines[-1] == TRUNCATION_MARKER
    assert lines[9] == "line 9"


def test_cap_output_lines_at_limit_is_untouched() -> None:
    lines, truncated = cap_output_lines(["a", "b"], 2)
    assert (lines, truncated) == (["a", "b"], False)


def test_capture_stream_respects_limits() -> None:
    captured = capture_stream(io.StringIO("one\r\ntwo\nthree\n"), ExecutionLimits(max_output_lines=2))

    assert captured.lines == ("one", "two", TRUNCATION_MARKER)
    assert captured.truncated is True
    assert captured.returncode == 0


def test_execution_limits_validation_and_warnings() -> None:
    assert ExecutionLimits().timeout == 300
    assert ExecutionLimits().max_output_lines == 10_000
    assert ExecutionLimits(timeout=3600).warnings() == []
    assert "longer than 1 hour" in ExecutionLimits(timeout=3601).warnings()[0]
    with pytest.raises(ValidationError):
        ExecutionLimits(timeout=0)
    with pytest.raises(ValidationError):
        ExecutionLimits(max_output_lines=-1)


def test_timeout_diagnosis_suggests_longer_timeout() -> None:
    message = timeout_diagnosis(30, "nix-unit")
    assert message.startswith("nix-unit execution timed out after 30 seconds")
    assert "infinite recursion" in message
    assert "--timeout 60" in message


def test_run_command_missing_executable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(process.shutil, "which", lambda name: None)
    with pytest.raises(FileNotFoundError, match="nix-unit"):
        run_command(["nix-unit", "tests.nix"])


def test_run_command_raises_with_stdout_when_checked(monkeypatch: pytest.MonkeyPatch, fake_which: None) -> None:
    def fake_run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(args, 1, stdout='{"file": "a.nix"}', stderr="")

    monkeypatch.setattr(process.subprocess, "run", fake_run)

    with pytest.raises(SubprocessExecutionError) as excinfo:
        run_command(["statix", "check"], options=CommandOptions(check=True, capture_output=True))

    assert excinfo.value.returncode == 1
    assert excinfo.value.stdout == '{"file": "a.nix"}'
    assert excinfo.value.command[0] == "/usr/bin/statix"


def test_run_command_passes_input_and_merges_stderr(monkeypatch: pytest.MonkeyPatch, fake_which: None) -> None:
    seen: dict[str, Any] = {}

    def fake_run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        seen.update(kwargs)
        return subprocess.CompletedProcess(args, 0, stdout="[]", stderr=None)

    monkeypatch.setattr(process.subprocess, "run", fake_run)

    completed = run_command(
        ["nixf-tidy"],
        options=CommandOptions(capture_output=True, merge_stderr=True, input_text="{ }", cwd=Path("/tmp")),
    )

    assert completed.stdout == "[]"
    assert seen["input"] == "{ }"
    assert seen["stdin"] is None
    assert seen["stderr"] is subprocess.STDOUT
    assert seen["cwd"] == "/tmp"


@pytest.mark.skipif(shutil.which("yes") is None, reason="requires the yes utility")
def test_run_with_limits_stops_a_flooding_command() -> None:
    started = time.monotonic()
    captured = run_with_limits(["yes"], ExecutionLimits(timeout=30, max_output_lines=5))

    assert time.monotonic() - started < 10
    assert captured.lines == ("y", "y", "y", "y", "y", TRUNCATION_MARKER)
    assert captured.truncated is True
    assert captured.timed_out is False


def test_run_with_limits_kills_a_silent_command_at_the_deadline() -> None:
    script = "import sys, time\nprint('started', flush=True)\ntime.sleep(60)\n"
    started = time.monotonic()

    captured = run_with_limits([sys.executable, "-c", script], ExecutionLimits(timeout=1))

    assert time.monotonic() - started < 30
    assert captured.timed_out is True
    assert captured.truncated is False
    assert captured.returncode == TIMEOUT_EXIT_CODE
    assert captured.lines == ("started",)


def test_run_with_limits_merges_stderr_and_keeps_exit_code(tmp_path: Path) -> None:
    script = (
        "import sys\n"
        "print('out line', flush=True)\n"
        "print('err line', file=sys.stderr, flush=True)\n"
        "sys.exit(2)\n"
    )

    captured = run_with_limits([sys.executable, "-c", script], ExecutionLimits(timeout=30), cwd=tmp_path)

    assert captured.lines == ("out line", "err line")
    assert captured.returncode == 2
    assert captured.timed_out is False
    assert captured.truncated is False


def test_run_with_limits_output_at_the_limit_is_untouched() -> None:
    script = "for index in range(3):\n    print(index)\n"

    captured = run_with_limits([sys.executable, "-c", script], ExecutionLimits(timeout=30, max_output_lines=3))

    assert captured.lines == ("0", "1", "2")
    assert captured.truncated is False
    assert captured.returncode == 0


def test_run_with_limits_missing_executable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(process.shutil, "which", lambda name: None)
    with pytest.raises(FileNotFoundError, match="go"):
        run_with_limits(["go", "test", "-json"], ExecutionLimits())
