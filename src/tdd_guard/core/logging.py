# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Status lines and log routing for the command line tools.

Everything goes to stderr: stdout carries the echoed toolchain output.
"""

from __future__ import annotations

import logging
import sys
from functools import cache
from typing import Final

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

_STATUS: Final[dict[str, tuple[str, str]]] = {
    "info": ("ℹ️ ", "cyan"),
    "ok": ("✅ ", "green"),
    "warn": ("⚠️ ", "yellow"),
    "fail": ("❌ ", "red"),
}


def _stderr_is_tty() -> bool:
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


@cache
def stderr_console(*, color: bool, emoji: bool) -> Console:
    """Return the shared stderr console for the given colour and emoji settings."""

    return Console(
        stderr=True,
        color_system="auto" if color else None,
        force_terminal=color,
        no_color=not color,
        emoji=emoji,
        soft_wrap=True,
    )


def _status(kind: str, msg: str, use_emoji: bool) -> None:
    symbol, style = _STATUS[kind]
    color = _stderr_is_tty()
    text = Text(f"{symbol if use_emoji else ''}{msg}")
    if color:
        text.stylize(style)
    stderr_console(color=color, emoji=use_emoji).print(text)


def info(msg: str, *, use_emoji: bool = True) -> None:
    """Emit an informational message."""

    _status("info", msg, use_emoji)


def ok(msg: str, *, use_emoji: bool = True) -> None:
    _status("ok", msg, use_emoji)


def warn(msg: str, *, use_emoji: bool = True) -> None:
    _status("warn", msg, use_emoji)


def fail(msg: str, *, use_emoji: bool = True) -> None:
    """Emit an error message; callers decide the exit status."""

    _status("fail", msg, use_emoji)


def configure_logging(*, debug: bool = False) -> None:
    """Route ``tdd_guard`` log records through a Rich handler on stderr.

    Args:
        debug: Lower the threshold to ``DEBUG`` when ``True`` (default ``WARNING``).
    """

    handler = RichHandler(
        console=stderr_console(color=_stderr_is_tty(), emoji=False),
        show_time=False,
        show_path=debug,
        markup=False,
        rich_tracebacks=debug,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("tdd_guard")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if debug else logging.WARNING)


__all__ = ["configure_logging", "fail", "info", "ok", "stderr_console", "warn"]
