# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the canonical documents, severity mapping and position helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tdd_guard.assembler import build_lint_result
from tdd_guard.core.models import (
    LintIssue,
    LintResult,
    RunReason,
    TestCase,
    TestError,
    TestModule,
    TestResult,
    TestState,
    UnhandledError,
)
from tdd_guard.core.normalize import (
    clamp_position,
    extract_rule,
    offset_to_position,
    one_based,
    substitute_placeholders,
)
from tdd_guard.core.severity import (
    Severity,
    eslint_severity,
    golangci_severity,
    nixf_severity,
    statix_severity,
)


def _issue(severity: Severity, message: str = "problem") -> LintIssue:
    return LintIssue(file="default.nix", line=1, column=1, severity=severity, message=message)


def test_lint_result_counts_are_derived_from_issues() -> None:
    result = build_lint_result(
        ["default.nix", "default.nix"],
        [_issue(Severity.ERROR), _issue(Severity.WARNING), _issue(Severity.WARNING)],
    )

    payload = result.to_payload()
    assert payload["errorCount"] == 1
    assert payload["warningCount"] == 2
    assert payload["files"] == ["default.nix", "default.nix"]
    assert result.error_count + result.warning_count == len(result.issues)


def test_lint_result_rejects_drifting_declared_counts() -> None:
    with pytest.raises(ValidationError):
        LintResult.model_validate(
            {
                "files": ["a.js"],
                "issues": [{"file": "a.js", "line": 1, "column": 1, "severity": "warning", "message": "x"}],
                "errorCount": 1,
            },
        )


def test_lint_result_accepts_matching_declared_counts() -> None:
    result = LintResult.model_validate(
        {
            "timestamp": "2025-01-01T00:00:00.000Z",
            "files": ["a.js"],
            "issues": [{"file": "a.js", "line": 3, "column": 2, "severity": "error", "message": "x"}],
            "errorCount": 1,
            "warningCount": 0,
        },
    )
    assert result.error_count == 1


def test_lint_issue_positions_are_one_based() -> None:
    with pytest.raises(ValidationError):
        LintIssue(file="a.go", line=0, column=1, severity=Severity.ERROR, message="x")


def test_lint_result_timestamp_is_iso8601_utc() -> None:
    result = build_lint_result([], [])
    assert result.timestamp.endswith("Z")
    assert "T" in result.timestamp


def test_test_result_rejects_passed_reason_with_failures() -> None:
    failing = TestCase(name="t", full_name="m.t", state=TestState.FAILED, errors=(TestError(message="boom"),))
    with pytest.raises(ValidationError):
        TestResult(test_modules=(TestModule(module_id="m", tests=(failing,)),))
    with pytest.raises(ValidationError):
        TestResult(unhandled_errors=(UnhandledError(message="crash"),))


def test_test_result_serialises_camel_case_and_omits_empty_collections() -> None:
    passing = TestCase(name="t", full_name="m.t", state=TestState.PASSED)
    result = TestResult(test_modules=(TestModule(module_id="m", tests=(passing,)),))

    payload = result.to_payload()
    assert payload == {
        "testModules": [{"moduleId": "m", "tests": [{"name": "t", "fullName": "m.t", "state": "passed"}]}],
        "reason": "passed",
    }


def test_test_error_keeps_toolchain_specific_fields() -> None:
    error = TestError(message="mismatch", expected="5", actual="4", custom_field="kept")
    payload = error.to_payload()
    assert payload["expected"] == "5"
    assert payload["actual"] == "4"
    assert payload["custom_field"] == "kept"
    assert "stack" not in payload


def test_failed_tests_lists_failures_in_document_order() -> None:
    first = TestCase(name="a", full_name="m.a", state=TestState.FAILED, errors=(TestError(message="x"),))
    second = TestCase(name="b", full_name="m.b", state=TestState.PASSED)
    third = TestCase(name="c", full_name="n.c", state=TestState.FAILED, errors=(TestError(message="y"),))
    result = TestResult(
        test_modules=(TestModule(module_id="m", tests=(first, second)), TestModule(module_id="n", tests=(third,))),
        reason=RunReason.FAILED,
    )
    assert [test.name for test in result.failed_tests()] == ["a", "c"]
    assert len(result.iter_tests()) == 3


@pytest.mark.parametrize(
    ("level", "expected"),
    [(0, Severity.ERROR), (1, Severity.ERROR), (2, Severity.WARNING), (3, Severity.WARNING), (4, Severity.WARNING)],
)
def test_nixf_severity_threshold(level: int, expected: Severity) -> None:
    assert nixf_severity(level) is expected


def test_native_severities_collapse_to_two_levels() -> None:
    assert eslint_severity(2) is Severity.ERROR
    assert eslint_severity(1) is Severity.WARNING
    assert statix_severity("error") is Severity.ERROR
    assert statix_severity("warn") is Severity.WARNING
    assert golangci_severity("warning") is Severity.WARNING
    assert golangci_severity("") is Severity.ERROR
    assert golangci_severity(None) is Severity.ERROR
    assert nixf_severity(None) is Severity.WARNING


def test_position_helpers() -> None:
    assert one_based(0) == 1
    assert one_based(4) == 5
    assert one_based(None) == 1
    assert clamp_position(0) == 1
    assert clamp_position(7) == 7


def test_offset_to_position_uses_source_when_available() -> None:
    assert offset_to_position(5, "ab\ncdef") == (2, 3)
    assert offset_to_position(0, "ab\ncdef") == (1, 1)
    assert offset_to_position(10, None) == (1, 10)


def test_extract_rule_and_placeholders() -> None:
    assert extract_rule("manual inherit [W04]") == "W04"
    assert extract_rule("no code here") is None
    assert extract_rule(None) is None
    assert substitute_placeholders("unused variable `{}`", ["x"]) == "unused variable `x`"
    assert substitute_placeholders("{} and {}", ["a"]) == "a and {}"
