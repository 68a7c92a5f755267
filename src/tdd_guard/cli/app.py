# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer application exposing the ``tdd-guard`` command."""

from __future__ import annotations

from pathlib import Path

import typer

from ..config import ConfigError, build_lint_settings
from ..core.logging import configure_logging, ok, warn
from ..core.storage import StoragePaths, write_document
from ..tools.kinds import LinterType, ReporterType
from ..tools.registry import get_linter
from .shared import CLIError, abort, missing_executable_message, run_test_command

app = typer.Typer(
    name="tdd-guard",
    help="Normalise test and lint results into the tdd-guard document format.",
    add_completion=False,
    no_args_is_help=True,
)


@app.command(
    "test",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def test_command(
    ctx: typer.Context,
    reporter: ReporterType = typer.Option(
        ...,
        "--reporter",
        case_sensitive=False,
        help="Test toolchain whose output is normalised.",
    ),
    project_root: Path = typer.Option(
        ...,
        "--project-root",
        help="Absolute path of the project under test.",
    ),
    passthrough: bool = typer.Option(
        False,
        "--passthrough",
        help="Read toolchain output from standard input instead of running it.",
    ),
    test_file: Path | None = typer.Option(
        None,
        "--test-file",
        help="Explicit test entry point (nix-unit only).",
    ),
    timeout: int | None = typer.Option(
        None,
        "--timeout",
        help="Execution timeout in seconds (default 300).",
    ),
    max_output: int | None = typer.Option(
        None,
        "--max-output",
        help="Maximum number of captured output lines (default 10000).",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """Run a test toolchain and write ``test.json``.

    Arguments after ``--`` are forwarded to the toolchain. The exit status is 0
    whenever a document was written, whatever the outcome of the tests.
    """
    run_test_command(
        reporter,
        project_root=project_root,
        passthrough=passthrough,
        test_file=test_file,
        timeout=timeout,
        max_output=max_output,
        extra_args=list(ctx.args),
        use_emoji=emoji,
        debug=debug,
    )


@app.command("lint")
def lint_command(
    files: list[str] = typer.Argument(..., help="Files to lint."),
    linter: LinterType = typer.Option(
        ...,
        "--linter",
        case_sensitive=False,
        help="Linter whose report is normalised.",
    ),
    project_root: Path = typer.Option(
        ...,
        "--project-root",
        help="Absolute path of the project being linted.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Linter configuration file.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """Run a linter over FILES and write ``lint.json``."""
    configure_logging(debug=debug)
    try:
        settings = build_lint_settings(
            project_root=project_root,
            linter=linter,
            files=files,
            config_path=config,
        )
    except ConfigError as exc:
        abort(exc, use_emoji=emoji)

    adapter = get_linter(settings.linter, cwd=settings.project_root)
    if adapter is None:
        abort(CLIError(f"Unknown linter '{linter}'"), use_emoji=emoji)
    try:
        result = adapter.lint(settings.files, settings.config_path)
    except FileNotFoundError as exc:
        abort(exc, use_emoji=emoji, message=missing_executable_message(exc))
    try:
        target = write_document(StoragePaths.for_project(settings.project_root).lint_results, result)
    except OSError as exc:
        abort(exc, use_emoji=emoji, message=f"Failed to write lint results: {exc}")

    summary = (
        f"{settings.linter.value}: {result.error_count} error(s), "
        f"{result.warning_count} warning(s) in {len(result.files)} file(s); saved to {target}"
    )
    if result.issues:
        warn(summary, use_emoji=emoji)
    else:
        ok(summary, use_emoji=emoji)


__all__ = ["app", "lint_command", "test_command"]
