# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Assemble canonical documents from parsed toolchain records.

Counts and the overall run verdict are always derived from the final list of
issues or tests. Nothing here accumulates a tally on the side.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .core.models import (
    GENERIC_FAILURE_MESSAGE,
    LintIssue,
    LintResult,
    RunReason,
    TestCase,
    TestError,
    TestModule,
    TestResult,
    TestState,
    UnhandledError,
    utc_timestamp,
)


def build_lint_result(
    files: Iterable[str],
    issues: Iterable[LintIssue],
    *,
    timestamp: str | None = None,
) -> LintResult:
    """Return the canonical lint document for one invocation.

    Args:
        files: Input files in the order they were requested; duplicates are kept.
        issues: Normalised issues in tool emission order.
        timestamp: Completion instant; defaults to now.

    Returns:
        LintResult: Document whose counts are derived from ``issues``.
    """

    return LintResult(
        timestamp=timestamp or utc_timestamp(),
        files=tuple(files),
        issues=tuple(issues),
    )


class TestResultBuilder:
    """Collect test outcomes in emission order and build a :class:`TestResult`.

    Modules keep the order in which they were first seen. The verdict is
    ``failed`` when any test failed, any unhandled error was recorded, or a
    caller cross-check (such as a runner's summary line) reported a failure.
    """

    __test__ = False

    def __init__(self) -> None:
        self._modules: dict[str, list[TestCase]] = {}
        self._unhandled: list[UnhandledError] = []
        self._forced_failure = False

    def add_test(
        self,
        module_id: str,
        name: str,
        state: TestState,
        *,
        full_name: str | None = None,
        errors: Iterable[TestError] = (),
    ) -> TestCase:
        """Record one test outcome under ``module_id``.

        Args:
            module_id: Owning module identifier.
            name: Short test name.
            state: Outcome of the test.
            full_name: Qualified name; defaults to ``name``.
            errors: Failure records for a failed test.

        Returns:
            TestCase: The recorded test case.
        """

        recorded = tuple(errors)
        if state is TestState.FAILED and not recorded:
            recorded = (TestError(message=GENERIC_FAILURE_MESSAGE),)
        test = TestCase(name=name, full_name=full_name or name, state=state, errors=recorded)
        self._modules.setdefault(module_id, []).append(test)
        return test

    def add_synthetic_failure(
        self,
        module_id: str,
        name: str,
        message: str,
        *,
        full_name: str | None = None,
        **extra: Any,
    ) -> TestCase:
        """Record a fabricated failing test for a pre-test (build or load) failure.

        Keyword arguments other than ``full_name`` become fields of the single
        :class:`TestError` attached to the test.
        """

        error = TestError(message=message or GENERIC_FAILURE_MESSAGE, **extra)
        return self.add_test(module_id, name, TestState.FAILED, full_name=full_name, errors=(error,))

    def add_unhandled_error(self, message: str, *, name: str | None = None, stack: str | None = None) -> None:
        """Record a run-level error not attributable to any test."""

        self._unhandled.append(UnhandledError(message=message, name=name, stack=stack))

    def mark_failed(self) -> None:
        """Force a ``failed`` verdict from an independent cross-check."""

        self._forced_failure = True

    def build(self) -> TestResult:
        """Return the immutable canonical document."""

        modules = tuple(
            TestModule(module_id=module_id, tests=tuple(tests)) for module_id, tests in self._modules.items()
        )
        failed = self._forced_failure or bool(self._unhandled)
        failed = failed or any(test.failed for module in modules for test in module.tests)
        return TestResult(
            test_modules=modules,
            unhandled_errors=tuple(self._unhandled),
            reason=RunReason.FAILED if failed else RunReason.PASSED,
        )


def with_unhandled_error(result: TestResult, error: UnhandledError) -> TestResult:
    """Return a copy of ``result`` with ``error`` appended and a failed verdict."""

    return TestResult(
        test_modules=result.test_modules,
        unhandled_errors=(*result.unhandled_errors, error),
        reason=RunReason.FAILED,
    )


__all__ = ["TestResultBuilder", "build_lint_result", "with_unhandled_error"]
