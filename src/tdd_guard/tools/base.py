# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Base classes shared by linter and reporter adapters."""

from __future__ import annotations

import logging
import sys
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar, Final, TextIO

from ..assembler import build_lint_result, with_unhandled_error
from ..config import ReporterSettings
from ..core.models import LintIssue, LintResult, TestResult, UnhandledError
from ..core.runtime.process import (
    CapturedOutput,
    CommandOptions,
    ExecutionLimits,
    SubprocessExecutionError,
    capture_stream,
    run_command,
    run_with_limits,
    timeout_diagnosis,
)
from .kinds import LinterType, ReporterType

LOGGER = logging.getLogger(__name__)

TIMEOUT_ERROR_NAME: Final[str] = "TimeoutError"
EXECUTION_ERROR_NAME: Final[str] = "ExecutionError"


class Linter(ABC):
    """Adapter producing a :class:`LintResult` for a list of files."""

    linter_type: ClassVar[LinterType]
    executable: ClassVar[str]

    def __init__(self, *, cwd: Path | None = None, limits: ExecutionLimits | None = None) -> None:
        self.cwd = cwd
        self.limits = limits or ExecutionLimits()

    @abstractmethod
    def lint(self, files: Sequence[str], config_path: Path | None = None) -> LintResult:
        """Lint ``files`` and return the canonical document.

        Raises:
            FileNotFoundError: If the linter executable is not installed.
        """

    def _options(self, input_text: str | None = None) -> CommandOptions:
        return CommandOptions(
            cwd=self.cwd,
            check=True,
            capture_output=True,
            timeout=float(self.limits.timeout),
            discard_stdin=True,
            input_text=input_text,
        )


class BatchJsonLinter(Linter):
    """Linter invoked once for all files, emitting JSON on stdout.

    A non-zero exit status is how these tools say "findings reported", so the
    stdout carried by :class:`SubprocessExecutionError` is parsed like a
    clean run. Output that does not parse degrades to zero issues.
    """

    @abstractmethod
    def build_command(self, files: Sequence[str], config_path: Path | None) -> list[str]:
        """Return the command line for ``files``."""

    @abstractmethod
    def parse(self, stdout: str, files: Sequence[str]) -> list[LintIssue]:
        """Convert tool stdout into canonical issues."""

    def lint(self, files: Sequence[str], config_path: Path | None = None) -> LintResult:
        """Run the tool once over ``files`` and normalise its report."""

        command = self.build_command(files, config_path)
        try:
            completed = run_command(command, options=self._options())
            stdout = completed.stdout or ""
        except SubprocessExecutionError as exc:
            stdout = exc.stdout or ""
            if not stdout.strip():
                LOGGER.warning(
                    "%s exited with status %d without a report: %s",
                    self.executable,
                    exc.returncode,
                    (exc.stderr or "").strip() or "<no stderr>",
                )
        return build_lint_result(files, self.parse(stdout, files))


class Reporter(ABC):
    """Adapter running a test toolchain and producing a :class:`TestResult`."""

    reporter_type: ClassVar[ReporterType]
    executable: ClassVar[str]

    def report(
        self,
        settings: ReporterSettings,
        *,
        stdin: TextIO | None = None,
        echo: TextIO | None = None,
    ) -> TestResult:
        """Run (or, in passthrough mode, read) the toolchain and parse its output.

        Args:
            settings: Validated reporter settings.
            stdin: Stream read in passthrough mode; defaults to ``sys.stdin``.
            echo: Stream the captured toolchain output is copied to, if any.

        Returns:
            TestResult: Canonical document. Timeouts and crashes that left no
            parseable output are recorded as unhandled errors.

        Raises:
            ConfigError: If the toolchain cannot be configured (for example no
                test file is found).
            FileNotFoundError: If the toolchain executable is not installed.
        """

        if settings.passthrough:
            captured = capture_stream(stdin if stdin is not None else sys.stdin, settings.limits)
            self._echo(captured, echo)
            return self.parse_output(captured, None)
        with tempfile.TemporaryDirectory(prefix="tdd-guard-") as workdir:
            report_dir = Path(workdir)
            command = self.build_command(settings, report_dir)
            captured = run_with_limits(command, settings.limits, cwd=settings.project_root)
            self._echo(captured, echo)
            result = self.parse_output(captured, report_dir)
        return self._finalise(result, captured, settings)

    @abstractmethod
    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        """Return the command line, writing any report file under ``report_dir``."""

    @abstractmethod
    def parse_output(self, captured: CapturedOutput, report_dir: Path | None) -> TestResult:
        """Parse captured output (and any report file) into a :class:`TestResult`."""

    def _finalise(self, result: TestResult, captured: CapturedOutput, settings: ReporterSettings) -> TestResult:
        if captured.timed_out:
            return with_unhandled_error(
                result,
                UnhandledError(
                    message=timeout_diagnosis(settings.limits.timeout, self.executable),
                    name=TIMEOUT_ERROR_NAME,
                ),
            )
        if captured.returncode != 0 and not result.iter_tests() and not result.unhandled_errors:
            message = captured.text.strip() or f"{self.executable} exited with status {captured.returncode}"
            return with_unhandled_error(result, UnhandledError(message=message, name=EXECUTION_ERROR_NAME))
        return result

    @staticmethod
    def _echo(captured: CapturedOutput, echo: TextIO | None) -> None:
        if echo is None:
            return
        for line in captured.lines:
            print(line, file=echo)


class ReportFileReporter(Reporter):
    """Reporter whose toolchain writes a machine-readable report file.

    The report is read from the temporary report directory; when the
    toolchain died before writing it the captured console stream is parsed
    instead.
    """

    report_name: ClassVar[str]

    def report_path(self, report_dir: Path) -> Path:
        """Return where the toolchain is asked to write its report."""

        return report_dir / self.report_name

    def parse_output(self, captured: CapturedOutput, report_dir: Path | None) -> TestResult:
        text = captured.text
        if report_dir is not None:
            report = self.report_path(report_dir)
            if report.is_file():
                text = report.read_text(encoding="utf-8", errors="replace")
            else:
                LOGGER.warning("%s did not write %s; parsing console output", self.executable, report.name)
        return self.parse_report(text)

    @abstractmethod
    def parse_report(self, text: str) -> TestResult:
        """Parse the report document."""


__all__ = [
    "EXECUTION_ERROR_NAME",
    "TIMEOUT_ERROR_NAME",
    "BatchJsonLinter",
    "Linter",
    "ReportFileReporter",
    "Reporter",
]
