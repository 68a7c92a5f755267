# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the result assembler."""

from __future__ import annotations

from tdd_guard.assembler import TestResultBuilder, build_lint_result, with_unhandled_error
from tdd_guard.core.models import RunReason, TestError, TestState, UnhandledError


def test_clean_lint_document() -> None:
    payload = build_lint_result(["a.nix"], [], timestamp="2025-01-01T00:00:00.000Z").to_payload()

    assert payload == {
        "timestamp": "2025-01-01T00:00:00.000Z",
        "files": ["a.nix"],
        "issues": [],
        "errorCount": 0,
        "warningCount": 0,
    }


def test_modules_keep_first_seen_order() -> None:
    builder = TestResultBuilder()
    builder.add_test("b", "one", TestState.PASSED)
    builder.add_test("a", "two", TestState.PASSED)
    builder.add_test("b", "three", TestState.SKIPPED)

    result = builder.build()

    assert [module.module_id for module in result.test_modules] == ["b", "a"]
    assert [test.name for test in result.test_modules[0].tests] == ["one", "three"]
    assert result.iter_tests()[0].full_name == "one"
    assert result.reason is RunReason.PASSED


def test_failed_test_without_errors_gets_generic_message() -> None:
    builder = TestResultBuilder()
    test = builder.add_test("m", "t", TestState.FAILED)

    assert [error.message for error in test.errors] == ["Test failed"]
    assert builder.build().reason is RunReason.FAILED


def test_synthetic_failure_carries_extra_fields() -> None:
    builder = TestResultBuilder()
    test = builder.add_synthetic_failure("m", "Module failed to load (Error)", "boom", name="Error", operator="E1")

    assert test.errors == (TestError(message="boom", name="Error", operator="E1"),)


def test_unhandled_error_and_cross_check_fail_the_run() -> None:
    builder = TestResultBuilder()
    builder.add_test("m", "t", TestState.PASSED)
    builder.add_unhandled_error("crash", name="Error")
    assert builder.build().reason is RunReason.FAILED

    forced = TestResultBuilder()
    forced.add_test("m", "t", TestState.PASSED)
    forced.mark_failed()
    assert forced.build().reason is RunReason.FAILED


def test_with_unhandled_error_returns_failed_copy() -> None:
    builder = TestResultBuilder()
    builder.add_test("m", "t", TestState.PASSED)
    original = builder.build()

    updated = with_unhandled_error(original, UnhandledError(message="timed out", name="TimeoutError"))

    assert original.reason is RunReason.PASSED
    assert updated.reason is RunReason.FAILED
    assert updated.test_modules == original.test_modules
    assert updated.to_payload()["unhandledErrors"] == [{"message": "timed out", "name": "TimeoutError"}]
