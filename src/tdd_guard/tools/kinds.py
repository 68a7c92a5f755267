# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Closed sets of supported toolchains."""

from __future__ import annotations

from enum import Enum


class LinterType(str, Enum):
    """Enumerate the lint tools with a structured output adapter."""

    ESLINT = "eslint"
    GOLANGCI_LINT = "golangci-lint"
    STATIX = "statix"
    NIXF_TIDY = "nixf-tidy"

    @classmethod
    def from_raw(cls, raw: str | None) -> LinterType | None:
        """Return the member matching ``raw`` or ``None`` when unrecognised."""

        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class ReporterType(str, Enum):
    """Enumerate the test runners with a reporter adapter."""

    NIX = "nix"
    GO = "go"
    RUST = "rust"
    JEST = "jest"
    VITEST = "vitest"
    PYTEST = "pytest"
    PHPUNIT = "phpunit"

    @classmethod
    def from_raw(cls, raw: str | None) -> ReporterType | None:
        """Return the member matching ``raw`` or ``None`` when unrecognised."""

        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


__all__ = ["LinterType", "ReporterType"]
