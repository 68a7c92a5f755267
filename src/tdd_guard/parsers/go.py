# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parsers for Go tooling: golangci-lint and ``go test -json``."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Final

from ..assembler import TestResultBuilder
from ..core.models import (
    COMPILATION_MODULE_ID,
    COMPILATION_TEST_NAME,
    GENERIC_FAILURE_MESSAGE,
    LintIssue,
    TestError,
    TestResult,
    TestState,
)
from ..core.normalize import clamp_position, extract_rule
from ..core.serialization import JsonValue, as_mapping, coerce_optional_int, coerce_optional_str, iter_dicts
from ..core.severity import golangci_severity
from .base import is_blank, load_payload

_FRAMING_PREFIXES: Final[tuple[str, ...]] = (
    "=== RUN",
    "=== PAUSE",
    "=== CONT",
    "=== NAME",
    "--- FAIL",
    "--- PASS",
    "--- SKIP",
)
_FRAMING_LINES: Final[frozenset[str]] = frozenset({"PASS", "FAIL"})
_BUILD_HEADER_PREFIX: Final[str] = "# "
PACKAGE_FAILURE_NAME: Final[str] = "PackageFailure"
_STATES: Final[Mapping[str, TestState]] = {
    "pass": TestState.PASSED,
    "fail": TestState.FAILED,
    "skip": TestState.SKIPPED,
}


def parse_golangci_lint(stdout: str) -> list[LintIssue]:
    """Parse ``golangci-lint run --out-format json`` output.

    Args:
        stdout: JSON document with an ``Issues`` array.

    Returns:
        list[LintIssue]: Issues in report order. An unset severity is an error.
    """

    payload = as_mapping(load_payload(stdout, source="golangci-lint"))
    issues: list[LintIssue] = []
    for entry in iter_dicts(payload.get("Issues")):
        position = as_mapping(entry.get("Pos"))
        text = coerce_optional_str(entry.get("Text")) or ""
        issues.append(
            LintIssue(
                file=coerce_optional_str(position.get("Filename")) or "",
                line=clamp_position(coerce_optional_int(position.get("Line"))),
                column=clamp_position(coerce_optional_int(position.get("Column"))),
                severity=golangci_severity(coerce_optional_str(entry.get("Severity"))),
                message=text,
                rule=coerce_optional_str(entry.get("FromLinter")) or extract_rule(text),
            ),
        )
    return issues


@dataclass(slots=True)
class _GoTest:
    name: str
    state: TestState | None = None
    output: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _GoPackage:
    name: str
    tests: dict[str, _GoTest] = field(default_factory=dict)
    output: list[str] = field(default_factory=list)
    build_output: list[str] = field(default_factory=list)
    failed: bool = False

    def test(self, name: str) -> _GoTest:
        return self.tests.setdefault(name, _GoTest(name))

    def leaves(self) -> list[_GoTest]:
        """Return tests that have no subtests, in first-seen order."""

        names = list(self.tests)
        return [
            self.tests[name] for name in names if not any(other.startswith(f"{name}/") for other in names)
        ]


def _message_lines(output: Iterable[str]) -> list[str]:
    lines: list[str] = []
    for raw in output:
        text = raw.rstrip("\n").strip()
        if is_blank(text) or text in _FRAMING_LINES or text.startswith(_FRAMING_PREFIXES):
            continue
        lines.append(text)
    return lines


def _decode_event(line: str) -> Mapping[str, JsonValue] | None:
    stripped = line.strip()
    if not stripped.startswith("{"):
        return None
    try:
        event = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return event if isinstance(event, Mapping) else None


class GoTestCollector:
    """Accumulate ``go test -json`` events per package."""

    def __init__(self) -> None:
        self._packages: dict[str, _GoPackage] = {}
        self._stray_output: list[str] = []
        # Non-JSON compiler output grouped by its ``# import/path`` header.
        self._stray_sections: dict[str, list[str]] = {}
        self._unsectioned: list[str] = []
        self._current_section: list[str] | None = None

    def package(self, name: str) -> _GoPackage:
        return self._packages.setdefault(name, _GoPackage(name))

    def _add_stray(self, text: str) -> None:
        self._stray_output.append(text)
        if text.startswith(_BUILD_HEADER_PREFIX):
            import_path = text[len(_BUILD_HEADER_PREFIX) :].strip().split(" ", 1)[0]
            if import_path:
                self._current_section = self._stray_sections.setdefault(import_path, [])
        if self._current_section is not None:
            self._current_section.append(text)
        else:
            self._unsectioned.append(text)

    def feed(self, line: str) -> None:
        """Consume one line of merged stdout/stderr."""

        event = _decode_event(line)
        if event is None:
            if not is_blank(line):
                self._add_stray(line.rstrip())
            return
        action = coerce_optional_str(event.get("Action")) or ""
        output = coerce_optional_str(event.get("Output")) or ""
        if action == "build-output":
            import_path = (coerce_optional_str(event.get("ImportPath")) or "").split(" ", 1)[0]
            if import_path:
                self.package(import_path).build_output.append(output.rstrip("\n"))
            else:
                self._add_stray(output.rstrip("\n"))
            return
        if action == "build-fail":
            return
        package_name = coerce_optional_str(event.get("Package"))
        if not package_name:
            if output:
                self._add_stray(output.rstrip("\n"))
            return
        package = self.package(package_name)
        test_name = coerce_optional_str(event.get("Test"))
        if test_name is None:
            if action == "output":
                package.output.append(output)
            elif action == "fail":
                package.failed = True
            return
        test = package.test(test_name)
        if action == "output":
            test.output.append(output)
        elif action in _STATES:
            test.state = _STATES[action]

    def build(self) -> TestResult:
        """Return the canonical result for everything fed so far."""

        builder = TestResultBuilder()
        unsectioned = list(self._unsectioned)
        for package in self._packages.values():
            leaves = package.leaves()
            leaf_failed = False
            for test in leaves:
                state = test.state or TestState.FAILED
                errors: tuple[TestError, ...] = ()
                if state is TestState.FAILED:
                    leaf_failed = True
                    message = "\n".join(_message_lines(test.output)) or GENERIC_FAILURE_MESSAGE
                    errors = (TestError(message=message),)
                builder.add_test(
                    package.name,
                    test.name,
                    state,
                    full_name=f"{package.name}/{test.name}",
                    errors=errors,
                )
            if package.failed and leaves and not leaf_failed:
                # TestMain, teardown or the test binary itself failed.
                builder.add_unhandled_error(
                    "\n".join(_message_lines(package.output)) or f"{package.name} failed after its tests passed",
                    name=PACKAGE_FAILURE_NAME,
                )
            if package.failed and not leaves:
                details = (
                    package.build_output
                    or self._stray_sections.get(package.name)
                    or unsectioned
                    or _message_lines(package.output)
                )
                # Output without a package header is attributed once.
                if details is unsectioned:
                    unsectioned = []
                builder.add_synthetic_failure(
                    package.name,
                    COMPILATION_TEST_NAME,
                    "\n".join(details) or f"{package.name} failed to build",
                    full_name=f"{package.name}/{COMPILATION_TEST_NAME}",
                )
        if not self._packages and self._stray_output:
            builder.add_synthetic_failure(
                COMPILATION_MODULE_ID,
                COMPILATION_TEST_NAME,
                "\n".join(self._stray_output),
                full_name=f"{COMPILATION_MODULE_ID}/{COMPILATION_TEST_NAME}",
            )
        return builder.build()


def parse_go_test(lines: Iterable[str]) -> TestResult:
    """Parse ``go test -json ./...`` output (stderr merged) into a :class:`TestResult`.

    Modules are packages and only leaf tests are reported. A package that
    fails without running any test is represented by a synthetic
    ``CompilationError`` test carrying the build output.
    """

    collector = GoTestCollector()
    for line in lines:
        collector.feed(line)
    return collector.build()


__all__ = ["PACKAGE_FAILURE_NAME", "GoTestCollector", "parse_go_test", "parse_golangci_lint"]
