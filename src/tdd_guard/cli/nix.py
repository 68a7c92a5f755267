# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``tdd-guard-nix``: the nix-unit reporter as a standalone command."""

from __future__ import annotations

from pathlib import Path

import typer

from ..tools.kinds import ReporterType
from .shared import run_test_command

app = typer.Typer(
    name="tdd-guard-nix",
    help="Run nix-unit and write the results for tdd-guard.",
    add_completion=False,
)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def main(
    ctx: typer.Context,
    project_root: Path = typer.Option(
        ...,
        "--project-root",
        help="Absolute path of the project under test.",
    ),
    passthrough: bool = typer.Option(
        False,
        "--passthrough",
        help="Read nix-unit output from standard input instead of running it.",
    ),
    test_file: Path | None = typer.Option(
        None,
        "--test-file",
        help="Nix test file (default: tests.nix, then test.nix in the project root).",
    ),
    timeout: int | None = typer.Option(None, "--timeout", help="Execution timeout in seconds (default 300)."),
    max_output: int | None = typer.Option(
        None,
        "--max-output",
        help="Maximum number of captured output lines (default 10000).",
    ),
) -> None:
    """Run nix-unit, normalise its output and write ``test.json``.

    Unrecognised arguments are forwarded to ``nix-unit``.
    """
    run_test_command(
        ReporterType.NIX,
        project_root=project_root,
        passthrough=passthrough,
        test_file=test_file,
        timeout=timeout,
        max_output=max_output,
        extra_args=list(ctx.args),
        use_emoji=False,
    )


__all__ = ["app", "main"]
