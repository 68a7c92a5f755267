# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Position and message normalisation helpers shared by the tool parsers."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Final

RULE_CODE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\[([A-Z]\d+)\]")
PLACEHOLDER: Final[str] = "{}"
FALLBACK_LINE: Final[int] = 1


def one_based(value: int | None) -> int:
    """Convert a native 0-based coordinate into a canonical 1-based one.

    Args:
        value: Zero-based coordinate reported by the tool.

    Returns:
        int: ``value + 1``; a missing value maps to ``1``.
    """

    if value is None or value < 0:
        return FALLBACK_LINE
    return value + 1


def clamp_position(value: int | None) -> int:
    """Return ``value`` when it is a usable 1-based coordinate, otherwise ``1``."""

    if value is None or value < 1:
        return FALLBACK_LINE
    return value


def offset_to_position(offset: int, source: str | None) -> tuple[int, int]:
    """Translate a character offset into a 1-based ``(line, column)`` pair.

    When the source text is unavailable the line cannot be derived, so the
    result keeps the historical fallback of ``line = 1`` with the raw offset as
    the column.

    Args:
        offset: Zero-based character offset into the file.
        source: File contents the offset refers to, when readable.

    Returns:
        tuple[int, int]: Canonical line and column.
    """

    if source is None or offset < 0 or offset > len(source):
        return FALLBACK_LINE, clamp_position(offset)
    preceding = source[:offset]
    line = preceding.count("\n") + 1
    line_start = preceding.rfind("\n") + 1
    return line, offset - line_start + 1


def extract_rule(message: str | None) -> str | None:
    """Return the first bracketed rule code (``[W04]``) embedded in ``message``."""

    if not message:
        return None
    match = RULE_CODE_PATTERN.search(message)
    return match.group(1) if match else None


def substitute_placeholders(message: str, args: Sequence[str]) -> str:
    """Replace each ``{}`` placeholder in ``message`` with the next argument."""

    result = message
    for arg in args:
        if PLACEHOLDER not in result:
            break
        result = result.replace(PLACEHOLDER, arg, 1)
    return result


__all__ = [
    "FALLBACK_LINE",
    "RULE_CODE_PATTERN",
    "clamp_position",
    "extract_rule",
    "offset_to_position",
    "one_based",
    "substitute_placeholders",
]
