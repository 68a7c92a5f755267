# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Validated settings for reporter and linter invocations."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core.runtime.process import ExecutionLimits
from .tools.kinds import LinterType

_FLAG_NAMES: Final[Mapping[str, str]] = {
    "project_root": "--project-root",
    "test_file": "--test-file",
    "timeout": "--timeout",
    "max_output_lines": "--max-output",
    "linter": "--linter",
    "files": "FILES",
    "config_path": "--config",
}


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


def _validate_project_root(value: Path) -> Path:
    if not value.is_absolute():
        raise ValueError(f"must be an absolute path, got '{value}'")
    if not value.exists():
        raise ValueError(f"'{value}' does not exist")
    if not value.is_dir():
        raise ValueError(f"'{value}' is not a directory")
    return value


class ReporterSettings(BaseModel):
    """Inputs shared by every test reporter."""

    model_config = ConfigDict(frozen=True)

    project_root: Path
    passthrough: bool = False
    test_file: Path | None = None
    limits: ExecutionLimits = Field(default_factory=ExecutionLimits)
    extra_args: tuple[str, ...] = ()

    @field_validator("project_root")
    @classmethod
    def _check_project_root(cls, value: Path) -> Path:
        return _validate_project_root(value)

    def resolve_test_file(self) -> Path | None:
        """Return the explicit test file anchored at the project root."""

        if self.test_file is None:
            return None
        if self.test_file.is_absolute():
            return self.test_file
        return self.project_root / self.test_file

    def warnings(self) -> list[str]:
        """Return advisory messages about valid but unusual settings."""

        return self.limits.warnings()


class LintSettings(BaseModel):
    """Inputs for a single linter invocation."""

    model_config = ConfigDict(frozen=True)

    project_root: Path
    linter: LinterType
    files: tuple[str, ...] = Field(min_length=1)
    config_path: Path | None = None

    @field_validator("project_root")
    @classmethod
    def _check_project_root(cls, value: Path) -> Path:
        return _validate_project_root(value)


def describe_validation_error(exc: ValidationError) -> str:
    """Render ``exc`` as one line per offending flag.

    Args:
        exc: Validation failure raised while building settings.

    Returns:
        str: Human readable description naming the CLI flags involved.
    """

    lines: list[str] = []
    for error in exc.errors():
        field = str(error["loc"][-1]) if error["loc"] else "value"
        flag = _FLAG_NAMES.get(field, field)
        message = str(error["msg"]).removeprefix("Value error, ")
        lines.append(f"{flag}: {message}")
    return "\n".join(lines)


def build_limits(*, timeout: int | None = None, max_output: int | None = None) -> ExecutionLimits:
    """Return execution limits, keeping defaults for unset values.

    Raises:
        ConfigError: If a value is not a positive integer.
    """

    values: dict[str, int] = {}
    if timeout is not None:
        values["timeout"] = timeout
    if max_output is not None:
        values["max_output_lines"] = max_output
    try:
        return ExecutionLimits(**values)
    except ValidationError as exc:
        raise ConfigError(describe_validation_error(exc)) from exc


def build_reporter_settings(
    *,
    project_root: str | Path,
    passthrough: bool = False,
    test_file: str | Path | None = None,
    timeout: int | None = None,
    max_output: int | None = None,
    extra_args: Sequence[str] = (),
) -> ReporterSettings:
    """Validate raw CLI input into :class:`ReporterSettings`.

    Args:
        project_root: Absolute path of the project under test.
        passthrough: Read toolchain output from stdin instead of running it.
        test_file: Optional explicit test entry point.
        timeout: Execution timeout in seconds.
        max_output: Maximum number of captured output lines.
        extra_args: Arguments forwarded to the toolchain.

    Returns:
        ReporterSettings: Validated settings.

    Raises:
        ConfigError: If any value is invalid. The message names the offending flag.
    """

    limits = build_limits(timeout=timeout, max_output=max_output)
    try:
        return ReporterSettings(
            project_root=Path(project_root),
            passthrough=passthrough,
            test_file=Path(test_file) if test_file is not None else None,
            limits=limits,
            extra_args=tuple(extra_args),
        )
    except ValidationError as exc:
        raise ConfigError(describe_validation_error(exc)) from exc


def build_lint_settings(
    *,
    project_root: str | Path,
    linter: LinterType | str,
    files: Sequence[str],
    config_path: str | Path | None = None,
) -> LintSettings:
    """Validate raw CLI input into :class:`LintSettings`.

    Raises:
        ConfigError: If any value is invalid.
    """

    try:
        return LintSettings(
            project_root=Path(project_root),
            linter=linter,
            files=tuple(files),
            config_path=Path(config_path) if config_path is not None else None,
        )
    except ValidationError as exc:
        raise ConfigError(describe_validation_error(exc)) from exc


__all__ = [
    "ConfigError",
    "LintSettings",
    "ReporterSettings",
    "build_limits",
    "build_lint_settings",
    "build_reporter_settings",
    "describe_validation_error",
]
