# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parser for the human-readable ``cargo test`` report."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Final

from ..assembler import TestResultBuilder
from ..core.models import (
    BUILD_TEST_NAME,
    COMPILATION_MODULE_ID,
    GENERIC_FAILURE_MESSAGE,
    TestError,
    TestResult,
    TestState,
)
from .base import is_blank, strip_ansi

DEFAULT_MODULE_ID: Final[str] = "tests"

_RUNNING: Final[re.Pattern[str]] = re.compile(r"^\s*Running\s+(?:.*\()?(?P<path>[^\s()]+)\)?\s*$")
_DOC_TESTS: Final[re.Pattern[str]] = re.compile(r"^\s*Doc-tests\s+(?P<crate>\S+)")
_TEST_LINE: Final[re.Pattern[str]] = re.compile(r"^test (?P<name>.+?) \.\.\. (?P<status>ok|FAILED|ignored)\b")
_BLOCK_HEADER: Final[re.Pattern[str]] = re.compile(r"^---- (?P<name>.+?) std(?:out|err) ----$")
_BLOCK_END: Final[re.Pattern[str]] = re.compile(r"^(failures:|test result:)")
_LEFT: Final[re.Pattern[str]] = re.compile(r"^\s*left:\s*(?P<value>.*?),?$")
_RIGHT: Final[re.Pattern[str]] = re.compile(r"^\s*right:\s*(?P<value>.*?),?$")
_DIAGNOSTIC: Final[re.Pattern[str]] = re.compile(r"^error(?:\[(?P<code>E\d+)\])?: (?P<message>.+)$")
_LOCATION: Final[re.Pattern[str]] = re.compile(r"^\s*--> (?P<location>\S+)")
_HELP: Final[re.Pattern[str]] = re.compile(r"^\s*(?:= )?help: (?P<text>.+)$")
_NOTE: Final[re.Pattern[str]] = re.compile(r"^\s*(?:= )?note: (?P<text>.+)$")
_BACKTRACE_HINT: Final[str] = "note: run with `RUST_BACKTRACE=1`"
_IGNORED_DIAGNOSTICS: Final[tuple[str, ...]] = ("test failed, to rerun",)
_SUMMARY_DIAGNOSTIC: Final[str] = "could not compile"
_STATES: Final[dict[str, TestState]] = {
    "ok": TestState.PASSED,
    "FAILED": TestState.FAILED,
    "ignored": TestState.SKIPPED,
}


def crate_from_artifact(path: str) -> str:
    """Return the crate name of a test binary such as ``target/debug/deps/foo-1a2b``."""

    stem = PurePosixPath(path).name
    crate, _, suffix = stem.rpartition("-")
    if crate and suffix and all(char in "0123456789abcdef" for char in suffix):
        return crate
    return stem


def _unquote(value: str) -> str:
    return value.strip().strip("`")


@dataclass(slots=True)
class _Diagnostic:
    message: str
    code: str | None = None
    location: str | None = None
    help: str | None = None
    note: str | None = None

    def to_error(self) -> TestError:
        return TestError(
            message=self.message,
            code=self.code,
            location=self.location,
            help=self.help,
            note=self.note,
        )


@dataclass(slots=True)
class _FailureBlock:
    module_id: str
    name: str
    lines: list[str] = field(default_factory=list)

    def to_error(self) -> TestError:
        expected = actual = None
        message_lines: list[str] = []
        for line in self.lines:
            if match := _LEFT.match(line):
                actual = _unquote(match.group("value"))
            elif match := _RIGHT.match(line):
                expected = _unquote(match.group("value"))
            if not line.startswith(_BACKTRACE_HINT):
                message_lines.append(line)
        return TestError(
            message="\n".join(message_lines) or GENERIC_FAILURE_MESSAGE,
            expected=expected,
            actual=actual,
        )


class CargoTestParser:
    """Line scanner for ``cargo test`` output with stderr merged in."""

    def __init__(self) -> None:
        self._module_id = DEFAULT_MODULE_ID
        self._tests: list[tuple[str, str, TestState]] = []
        self._failures: dict[tuple[str, str], TestError] = {}
        self._block: _FailureBlock | None = None
        self._diagnostic: _Diagnostic | None = None
        self._diagnostics: list[_Diagnostic] = []

    def feed(self, raw: str) -> None:
        """Consume one line of output."""

        line = strip_ansi(raw).rstrip()
        if self._block is not None:
            if _BLOCK_HEADER.match(line) or _BLOCK_END.match(line):
                self._close_block()
            else:
                if not is_blank(line):
                    self._block.lines.append(line)
                return
        if self._diagnostic is not None and self._extend_diagnostic(line):
            return
        if match := _RUNNING.match(line):
            self._module_id = crate_from_artifact(match.group("path"))
        elif match := _DOC_TESTS.match(line):
            self._module_id = f"{match.group('crate')} (doc-tests)"
        elif match := _TEST_LINE.match(line):
            self._tests.append((self._module_id, match.group("name"), _STATES[match.group("status")]))
        elif match := _BLOCK_HEADER.match(line):
            self._block = _FailureBlock(self._module_id, match.group("name"))
        elif match := _DIAGNOSTIC.match(line):
            self._start_diagnostic(match.group("message"), match.group("code"))

    def finish(self) -> TestResult:
        """Flush pending blocks and build the canonical result."""

        self._close_block()
        self._diagnostic = None
        builder = TestResultBuilder()
        for module_id, name, state in self._tests:
            errors: tuple[TestError, ...] = ()
            if state is TestState.FAILED:
                recorded = self._failures.get((module_id, name))
                errors = (recorded,) if recorded is not None else ()
            builder.add_test(module_id, name, state, full_name=f"{module_id}::{name}", errors=errors)
        diagnostics = self._diagnostics
        if len(diagnostics) > 1:
            diagnostics = [item for item in diagnostics if not item.message.startswith(_SUMMARY_DIAGNOSTIC)]
        if diagnostics:
            builder.add_test(
                COMPILATION_MODULE_ID,
                BUILD_TEST_NAME,
                TestState.FAILED,
                full_name=f"{COMPILATION_MODULE_ID}::{BUILD_TEST_NAME}",
                errors=[item.to_error() for item in diagnostics],
            )
        return builder.build()

    def _close_block(self) -> None:
        block = self._block
        if block is None:
            return
        self._block = None
        self._failures[(block.module_id, block.name)] = block.to_error()

    def _start_diagnostic(self, message: str, code: str | None) -> None:
        self._diagnostic = None
        if message.startswith(_IGNORED_DIAGNOSTICS):
            return
        self._diagnostic = _Diagnostic(message=message, code=code)
        self._diagnostics.append(self._diagnostic)

    def _extend_diagnostic(self, line: str) -> bool:
        diagnostic = self._diagnostic
        if diagnostic is None:
            return False
        if is_blank(line) or _DIAGNOSTIC.match(line) or line.startswith("warning"):
            self._diagnostic = None
            return False
        if (match := _LOCATION.match(line)) and diagnostic.location is None:
            diagnostic.location = match.group("location")
        elif (match := _HELP.match(line)) and diagnostic.help is None:
            diagnostic.help = match.group("text")
        elif (match := _NOTE.match(line)) and diagnostic.note is None:
            diagnostic.note = match.group("text")
        return True


def parse_cargo_test(lines: Iterable[str]) -> TestResult:
    """Parse ``cargo test`` output into a :class:`TestResult`.

    Compiler diagnostics (``error[E0425]: ...``) become a synthetic
    ``compilation::build`` test whose errors carry the diagnostic code, source
    location, help and note text.
    """

    parser = CargoTestParser()
    for line in lines:
        parser.feed(line)
    return parser.finish()


__all__ = ["DEFAULT_MODULE_ID", "CargoTestParser", "crate_from_artifact", "parse_cargo_test"]
