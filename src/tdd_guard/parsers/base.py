# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared parser infrastructure and helper utilities."""

from __future__ import annotations

import logging
import re
from typing import Final

from ..core.serialization import JsonValue, PayloadDecodeError, load_json_document

ANSI_ESCAPE: Final[re.Pattern[str]] = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

LOGGER = logging.getLogger(__name__)


def strip_ansi(text: str) -> str:
    """Remove terminal colour escape sequences from ``text``."""

    return ANSI_ESCAPE.sub("", text)


def is_blank(line: str) -> bool:
    """Return ``True`` when ``line`` is empty or whitespace only."""

    return not line.strip()


def load_payload(stdout: str, *, source: str) -> JsonValue:
    """Decode a single JSON document, degrading to an empty payload.

    Args:
        stdout: Raw tool output.
        source: Tool name used in the warning emitted for malformed output.

    Returns:
        JsonValue: Decoded payload, or an empty list when ``stdout`` is not JSON.
    """

    try:
        return load_json_document(stdout)
    except PayloadDecodeError as exc:
        LOGGER.warning("%s: output is not valid JSON (%s); reporting no issues", source, exc)
        return []


__all__ = ["ANSI_ESCAPE", "is_blank", "load_payload", "strip_ansi"]
