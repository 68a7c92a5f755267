# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers shared by the CLI commands (error reporting, result writing)."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

import typer

from ..config import ConfigError, build_reporter_settings
from ..core.logging import configure_logging, fail, info, warn
from ..core.storage import StoragePaths, write_document
from ..tools.kinds import ReporterType
from ..tools.registry import get_reporter


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def abort(exc: Exception, *, use_emoji: bool, message: str | None = None) -> NoReturn:
    """Report ``exc`` on stderr and exit with a non-zero status."""

    fail(message or str(exc), use_emoji=use_emoji)
    exit_code = exc.exit_code if isinstance(exc, CLIError) else 1
    raise typer.Exit(code=exit_code) from exc


def missing_executable_message(exc: FileNotFoundError) -> str:
    """Return a fatal message naming the toolchain binary that is not installed."""

    return f"{exc}. Install it or add it to PATH before running tdd-guard."


def run_test_command(
    reporter_type: ReporterType,
    *,
    project_root: Path,
    passthrough: bool,
    test_file: Path | None,
    timeout: int | None,
    max_output: int | None,
    extra_args: Sequence[str],
    use_emoji: bool,
    debug: bool = False,
) -> Path:
    """Run one reporter end to end and write its document.

    Args:
        reporter_type: Toolchain whose output is normalised.
        project_root: Absolute project root supplied on the command line.
        passthrough: Read toolchain output from stdin instead of running it.
        test_file: Optional explicit test entry point.
        timeout: Execution timeout in seconds, if given.
        max_output: Output line cap, if given.
        extra_args: Arguments forwarded to the toolchain.
        use_emoji: Whether messages may include emoji glyphs.
        debug: Enable debug logging.

    Returns:
        Path: Location of the written ``test.json``.

    Raises:
        typer.Exit: With status 1 on configuration errors, a missing
            toolchain binary, or a failed write.
    """

    configure_logging(debug=debug)
    try:
        settings = build_reporter_settings(
            project_root=project_root,
            passthrough=passthrough,
            test_file=test_file,
            timeout=timeout,
            max_output=max_output,
            extra_args=extra_args,
        )
    except ConfigError as exc:
        abort(exc, use_emoji=use_emoji)
    for message in settings.warnings():
        warn(message, use_emoji=use_emoji)

    reporter = get_reporter(reporter_type)
    if reporter is None:
        abort(CLIError(f"Unknown reporter '{reporter_type}'"), use_emoji=use_emoji)
    try:
        result = reporter.report(settings, echo=sys.stdout)
    except ConfigError as exc:
        abort(exc, use_emoji=use_emoji)
    except FileNotFoundError as exc:
        abort(exc, use_emoji=use_emoji, message=missing_executable_message(exc))
    try:
        target = write_document(StoragePaths.for_project(settings.project_root).test_results, result)
    except OSError as exc:
        abort(exc, use_emoji=use_emoji, message=f"Failed to write test results: {exc}")

    info(f"Test results saved to {target}", use_emoji=use_emoji)
    return target


__all__ = ["CLIError", "abort", "missing_executable_message", "run_test_command"]
