# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for loading tool payloads and coercing loosely typed JSON values."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import TypeAlias, cast

JsonScalar: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = "JsonScalar | list[JsonValue] | dict[str, JsonValue]"

LOGGER = logging.getLogger(__name__)


class PayloadDecodeError(ValueError):
    """Raised when a tool payload is not valid JSON."""


def load_json_document(text: str) -> JsonValue:
    """Decode ``text`` as a single JSON document.

    Args:
        text: Raw stdout captured from a tool.

    Returns:
        JsonValue: Decoded payload, or an empty list when ``text`` is blank.

    Raises:
        PayloadDecodeError: If ``text`` is not valid JSON.
    """

    stripped = text.strip()
    if not stripped:
        return []
    try:
        return cast(JsonValue, json.loads(stripped))
    except json.JSONDecodeError as exc:
        raise PayloadDecodeError(str(exc)) from exc


def load_json_stream(text: str, *, source: str) -> list[JsonValue]:
    """Decode newline-delimited JSON, skipping lines that are not JSON.

    A tool that emits a single JSON document spanning several lines is also
    accepted: the whole text is tried first.

    Args:
        text: Raw stdout captured from a tool.
        source: Tool name used when logging skipped lines.

    Returns:
        list[JsonValue]: Decoded objects in emission order.
    """

    stripped = text.strip()
    if not stripped:
        return []
    try:
        whole = cast(JsonValue, json.loads(stripped))
    except json.JSONDecodeError:
        pass
    else:
        return list(whole) if isinstance(whole, list) else [whole]
    payload: list[JsonValue] = []
    skipped = 0
    for raw_line in stripped.splitlines():
        trimmed = raw_line.strip()
        if not trimmed:
            continue
        try:
            payload.append(cast(JsonValue, json.loads(trimmed)))
        except json.JSONDecodeError:
            skipped += 1
    if skipped:
        LOGGER.warning("%s: ignored %d line(s) of non-JSON output", source, skipped)
    return payload


def iter_dicts(value: JsonValue | None) -> Iterator[Mapping[str, JsonValue]]:
    """Yield mapping items from ``value`` when it is a sequence of dict-like objects."""

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        for item in value:
            if isinstance(item, Mapping):
                yield item


def as_mapping(value: JsonValue | None) -> Mapping[str, JsonValue]:
    """Return ``value`` when it is a mapping, otherwise an empty mapping."""

    if isinstance(value, Mapping):
        return value
    return {}


def coerce_optional_int(value: JsonValue | None) -> int | None:
    """Return an optional integer parsed from ``value`` when feasible."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def coerce_optional_str(value: JsonValue | None) -> str | None:
    """Return a string representation of ``value`` or ``None`` when unset."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def coerce_str_list(value: JsonValue | None) -> list[str]:
    """Return the string items of ``value`` when it is a list."""

    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value]


__all__ = [
    "JsonScalar",
    "JsonValue",
    "PayloadDecodeError",
    "as_mapping",
    "coerce_optional_int",
    "coerce_optional_str",
    "coerce_str_list",
    "iter_dicts",
    "load_json_document",
    "load_json_stream",
]
