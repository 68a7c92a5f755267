# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parsers for JavaScript and TypeScript tooling."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from ..assembler import TestResultBuilder
from ..core.models import (
    GENERIC_FAILURE_MESSAGE,
    MODULE_LOAD_FAILURE_TEMPLATE,
    LintIssue,
    TestError,
    TestResult,
    TestState,
)
from ..core.normalize import clamp_position, extract_rule
from ..core.serialization import (
    JsonValue,
    as_mapping,
    coerce_optional_int,
    coerce_optional_str,
    coerce_str_list,
    iter_dicts,
)
from ..core.severity import eslint_severity
from .base import load_payload, strip_ansi

_DEFAULT_ERROR_NAME: Final[str] = "Error"
_ASSERTION_STATES: Final[Mapping[str, TestState]] = {
    "passed": TestState.PASSED,
    "failed": TestState.FAILED,
    "pending": TestState.SKIPPED,
    "skipped": TestState.SKIPPED,
    "todo": TestState.SKIPPED,
    "disabled": TestState.SKIPPED,
}


def parse_eslint(stdout: str) -> list[LintIssue]:
    """Parse ESLint ``--format json`` output into lint issues.

    Args:
        stdout: JSON array of per-file results.

    Returns:
        list[LintIssue]: Issues in file-batch order.
    """

    issues: list[LintIssue] = []
    for entry in iter_dicts(load_payload(stdout, source="eslint")):
        path = coerce_optional_str(entry.get("filePath")) or coerce_optional_str(entry.get("filename")) or ""
        for message in iter_dicts(entry.get("messages")):
            text = (coerce_optional_str(message.get("message")) or "").strip()
            issues.append(
                LintIssue(
                    file=path,
                    line=clamp_position(coerce_optional_int(message.get("line"))),
                    column=clamp_position(coerce_optional_int(message.get("column"))),
                    severity=eslint_severity(coerce_optional_int(message.get("severity"))),
                    message=text,
                    rule=coerce_optional_str(message.get("ruleId")) or extract_rule(text),
                ),
            )
    return issues


def _assertion_errors(assertion: Mapping[str, JsonValue]) -> list[TestError]:
    messages = [strip_ansi(message) for message in coerce_str_list(assertion.get("failureMessages"))]
    details = list(iter_dicts(assertion.get("failureDetails")))
    errors: list[TestError] = []
    for index, message in enumerate(messages or [GENERIC_FAILURE_MESSAGE]):
        matcher = as_mapping(details[index].get("matcherResult")) if index < len(details) else {}
        errors.append(
            TestError(
                message=message,
                expected=coerce_optional_str(matcher.get("expected")),
                actual=coerce_optional_str(matcher.get("actual")),
            ),
        )
    return errors


def _full_name(assertion: Mapping[str, JsonValue], title: str, separator: str | None) -> str:
    titles = [*coerce_str_list(assertion.get("ancestorTitles")), title]
    if separator is not None:
        return separator.join(titles)
    return coerce_optional_str(assertion.get("fullName")) or " ".join(titles)


def _record_load_failure(builder: TestResultBuilder, module_id: str, suite: Mapping[str, JsonValue]) -> None:
    exec_error = as_mapping(suite.get("testExecError"))
    name = coerce_optional_str(exec_error.get("name")) or _DEFAULT_ERROR_NAME
    message = coerce_optional_str(exec_error.get("message")) or coerce_optional_str(suite.get("message"))
    title = MODULE_LOAD_FAILURE_TEMPLATE.format(kind=name)
    builder.add_synthetic_failure(
        module_id,
        title,
        strip_ansi(message or GENERIC_FAILURE_MESSAGE),
        full_name=title,
        name=name,
        stack=coerce_optional_str(exec_error.get("stack")),
        operator=coerce_optional_str(exec_error.get("code")),
    )


def parse_jest_json(stdout: str, *, title_separator: str | None = None) -> TestResult:
    """Parse a ``jest --json`` (or ``vitest --reporter=json``) report.

    Args:
        stdout: JSON report document.
        title_separator: Join ``ancestorTitles`` and ``title`` with this
            separator instead of using the report's own ``fullName``.

    Returns:
        TestResult: One module per test file. A file that failed before any
        assertion ran yields a ``Module failed to load (<ErrorName>)`` test.
    """

    report = as_mapping(load_payload(stdout, source="jest"))
    builder = TestResultBuilder()
    for suite in iter_dicts(report.get("testResults")):
        module_id = coerce_optional_str(suite.get("name")) or coerce_optional_str(suite.get("testFilePath")) or ""
        assertions = list(iter_dicts(suite.get("assertionResults")))
        for assertion in assertions:
            title = coerce_optional_str(assertion.get("title")) or ""
            state = _ASSERTION_STATES.get(coerce_optional_str(assertion.get("status")) or "", TestState.SKIPPED)
            builder.add_test(
                module_id,
                title,
                state,
                full_name=_full_name(assertion, title, title_separator),
                errors=_assertion_errors(assertion) if state is TestState.FAILED else (),
            )
        status = coerce_optional_str(suite.get("status"))
        if suite.get("testExecError") or (status == "failed" and not assertions):
            _record_load_failure(builder, module_id, suite)
    run_error = report.get("runExecError")
    if isinstance(run_error, Mapping):
        builder.add_unhandled_error(
            strip_ansi(coerce_optional_str(run_error.get("message")) or GENERIC_FAILURE_MESSAGE),
            name=coerce_optional_str(run_error.get("name")) or _DEFAULT_ERROR_NAME,
            stack=coerce_optional_str(run_error.get("stack")),
        )
    return builder.build()


__all__ = ["parse_eslint", "parse_jest_json"]
