# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from collections.abc import Collection
from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Canonical severity levels consumed by the policy engine."""

    ERROR = "error"
    WARNING = "warning"


NIXF_ERROR_THRESHOLD: Final[int] = 1
"""nixf-tidy levels ``0`` (fatal) and ``1`` (error) must be fixed."""

ESLINT_ERROR_LEVEL: Final[int] = 2

STATIX_ERROR_LABELS: Final[frozenset[str]] = frozenset({"error"})
GOLANGCI_ERROR_LABELS: Final[frozenset[str]] = frozenset({"error", ""})


def collapse_ordinal(level: int | None, error_threshold: int) -> Severity:
    """Collapse a numeric severity scale onto :class:`Severity`.

    Native scales order levels from most to least severe, so every level at or
    below ``error_threshold`` is an error and the remainder are warnings.

    Args:
        level: Native severity level reported by the tool.
        error_threshold: Highest native level still treated as an error.

    Returns:
        Severity: Canonical severity for ``level``. Missing levels are warnings.
    """

    if level is None:
        return Severity.WARNING
    return Severity.ERROR if level <= error_threshold else Severity.WARNING


def collapse_label(label: str | None, error_labels: Collection[str]) -> Severity:
    """Collapse a textual severity label onto :class:`Severity`.

    Args:
        label: Native label emitted by the tool (``None`` is treated as blank).
        error_labels: Lower-cased labels that denote errors.

    Returns:
        Severity: ``ERROR`` when the label is listed, otherwise ``WARNING``.
    """

    normalised = (label or "").strip().lower()
    return Severity.ERROR if normalised in error_labels else Severity.WARNING


def nixf_severity(level: int | None) -> Severity:
    """Map nixf-tidy's 5-level scale (fatal, error, warning, info, hint)."""

    return collapse_ordinal(level, NIXF_ERROR_THRESHOLD)


def eslint_severity(level: int | None) -> Severity:
    """Map ESLint's ``1`` (warn) / ``2`` (error) levels."""

    return Severity.ERROR if level == ESLINT_ERROR_LEVEL else Severity.WARNING


def statix_severity(report_kind: str | None) -> Severity:
    """Map statix ``report_kind`` values (``warn``/``error``)."""

    return collapse_label(report_kind, STATIX_ERROR_LABELS)


def golangci_severity(label: str | None) -> Severity:
    """Map golangci-lint severities; unset severities fail the build and count as errors."""

    return collapse_label(label, GOLANGCI_ERROR_LABELS)


__all__ = [
    "ESLINT_ERROR_LEVEL",
    "GOLANGCI_ERROR_LABELS",
    "NIXF_ERROR_THRESHOLD",
    "STATIX_ERROR_LABELS",
    "Severity",
    "collapse_label",
    "collapse_ordinal",
    "eslint_severity",
    "golangci_severity",
    "nixf_severity",
    "statix_severity",
]
