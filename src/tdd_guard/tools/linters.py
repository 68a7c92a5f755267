# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Linter adapters for statix, nixf-tidy, ESLint and golangci-lint."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar

from ..assembler import build_lint_result
from ..core.models import LintIssue, LintResult
from ..core.runtime.process import SubprocessExecutionError, run_command
from ..parsers.go import parse_golangci_lint
from ..parsers.javascript import parse_eslint
from ..parsers.nix import parse_nixf_tidy, parse_statix
from .base import BatchJsonLinter, Linter
from .kinds import LinterType

LOGGER = logging.getLogger(__name__)


class StatixLinter(BatchJsonLinter):
    """``statix check <files> --output json [--config <path>]``."""

    linter_type: ClassVar[LinterType] = LinterType.STATIX
    executable: ClassVar[str] = "statix"

    def build_command(self, files: Sequence[str], config_path: Path | None) -> list[str]:
        command = [self.executable, "check", *files, "--output", "json"]
        if config_path is not None:
            command.extend(["--config", str(config_path)])
        return command

    def parse(self, stdout: str, files: Sequence[str]) -> list[LintIssue]:
        return parse_statix(stdout, self._read_sources(files))

    def _read_sources(self, files: Sequence[str]) -> dict[str, str]:
        """Return readable file contents so offsets can be mapped to lines."""

        sources: dict[str, str] = {}
        for name in files:
            path = Path(name)
            if not path.is_absolute() and self.cwd is not None:
                path = self.cwd / path
            try:
                sources[name] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
        return sources


class EslintLinter(BatchJsonLinter):
    """``eslint --format json [--config <path>] <files>``."""

    linter_type: ClassVar[LinterType] = LinterType.ESLINT
    executable: ClassVar[str] = "eslint"

    def build_command(self, files: Sequence[str], config_path: Path | None) -> list[str]:
        command = [self.executable, "--format", "json"]
        if config_path is not None:
            command.extend(["--config", str(config_path)])
        command.extend(files)
        return command

    def parse(self, stdout: str, files: Sequence[str]) -> list[LintIssue]:
        return parse_eslint(stdout)


class GolangciLinter(BatchJsonLinter):
    """``golangci-lint run --out-format json [--config <path>] <files>``."""

    linter_type: ClassVar[LinterType] = LinterType.GOLANGCI_LINT
    executable: ClassVar[str] = "golangci-lint"

    def build_command(self, files: Sequence[str], config_path: Path | None) -> list[str]:
        command = [self.executable, "run", "--out-format", "json"]
        if config_path is not None:
            command.extend(["--config", str(config_path)])
        command.extend(files)
        return command

    def parse(self, stdout: str, files: Sequence[str]) -> list[LintIssue]:
        return parse_golangci_lint(stdout)


class NixfTidyLinter(Linter):
    """``nixf-tidy`` reads a single file on stdin, so files are linted one at a time.

    A failure on one file (unreadable file, crashed process, unparseable
    output) is logged and contributes no issues; the remaining files are still
    linted. A missing executable is not a per-file failure and propagates.
    """

    linter_type: ClassVar[LinterType] = LinterType.NIXF_TIDY
    executable: ClassVar[str] = "nixf-tidy"
    arguments: ClassVar[tuple[str, ...]] = ("--pretty-print", "--variable-lookup")

    def lint(self, files: Sequence[str], config_path: Path | None = None) -> LintResult:
        issues: list[LintIssue] = []
        for name in files:
            issues.extend(self._lint_file(name))
        return build_lint_result(files, issues)

    def _lint_file(self, name: str) -> list[LintIssue]:
        path = Path(name)
        if not path.is_absolute() and self.cwd is not None:
            path = self.cwd / path
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("nixf-tidy skipped %s: %s", name, exc)
            return []
        try:
            completed = run_command([self.executable, *self.arguments], options=self._options(input_text=content))
            stdout = completed.stdout or ""
        except SubprocessExecutionError as exc:
            if exc.stderr and exc.stderr.strip():
                LOGGER.warning("nixf-tidy failed for %s: %s", name, exc.stderr.strip())
                return []
            stdout = exc.stdout or ""
        return parse_nixf_tidy(stdout, name)


__all__ = ["EslintLinter", "GolangciLinter", "NixfTidyLinter", "StatixLinter"]
