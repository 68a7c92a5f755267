# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Mapping from toolchain identifiers to adapter classes.

Supporting a new toolchain means adding one enum member in :mod:`.kinds` and
one entry here.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Final

from ..core.runtime.process import ExecutionLimits
from .base import Linter, Reporter
from .kinds import LinterType, ReporterType
from .linters import EslintLinter, GolangciLinter, NixfTidyLinter, StatixLinter
from .reporters import (
    CargoTestReporter,
    GoTestReporter,
    JestReporter,
    NixUnitReporter,
    PhpunitReporter,
    PytestReporter,
    VitestReporter,
)

LINTERS: Final[Mapping[LinterType, type[Linter]]] = MappingProxyType(
    {
        LinterType.ESLINT: EslintLinter,
        LinterType.GOLANGCI_LINT: GolangciLinter,
        LinterType.STATIX: StatixLinter,
        LinterType.NIXF_TIDY: NixfTidyLinter,
    },
)

REPORTERS: Final[Mapping[ReporterType, type[Reporter]]] = MappingProxyType(
    {
        ReporterType.NIX: NixUnitReporter,
        ReporterType.GO: GoTestReporter,
        ReporterType.RUST: CargoTestReporter,
        ReporterType.JEST: JestReporter,
        ReporterType.VITEST: VitestReporter,
        ReporterType.PYTEST: PytestReporter,
        ReporterType.PHPUNIT: PhpunitReporter,
    },
)


def get_linter(
    value: LinterType | str | None,
    *,
    cwd: Path | None = None,
    limits: ExecutionLimits | None = None,
) -> Linter | None:
    """Return a linter for ``value``, or ``None`` when none is configured or known."""

    linter_type = value if isinstance(value, LinterType) else LinterType.from_raw(value)
    if linter_type is None:
        return None
    return LINTERS[linter_type](cwd=cwd, limits=limits)


def get_reporter(value: ReporterType | str | None) -> Reporter | None:
    """Return a reporter for ``value``, or ``None`` when none is configured or known."""

    reporter_type = value if isinstance(value, ReporterType) else ReporterType.from_raw(value)
    if reporter_type is None:
        return None
    return REPORTERS[reporter_type]()


__all__ = ["LINTERS", "REPORTERS", "get_linter", "get_reporter"]
