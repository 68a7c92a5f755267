# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Canonical lint and test documents shared by every toolchain adapter.

The models in this module are the contract with the downstream policy engine.
They serialise with camelCase keys (``fullName``, ``testModules``...) and are
frozen: adapters build a fresh document per invocation and never patch one in
place.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar, Final

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    computed_field,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .severity import Severity

COMPILATION_MODULE_ID: Final[str] = "compilation"
"""Module identifier reserved for failures that happen before any test runs."""

EVALUATION_TEST_NAME: Final[str] = "evaluation"
BUILD_TEST_NAME: Final[str] = "build"
COMPILATION_TEST_NAME: Final[str] = "CompilationError"
NIX_MODULE_ID: Final[str] = "tests"
MODULE_LOAD_FAILURE_TEMPLATE: Final[str] = "Module failed to load ({kind})"
GENERIC_FAILURE_MESSAGE: Final[str] = "Test failed"

_COUNT_KEYS: Final[dict[Severity, tuple[str, str]]] = {
    Severity.ERROR: ("errorCount", "error_count"),
    Severity.WARNING: ("warningCount", "warning_count"),
}


def utc_timestamp() -> str:
    """Return the current instant as an ISO-8601 string with millisecond precision."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CanonicalModel(BaseModel):
    """Base configuration shared by every canonical document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_json(self, *, indent: int | None = 2) -> str:
        """Serialise the document using the canonical camelCase keys."""

        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-compatible mapping written to disk."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TestState(str, Enum):
    """Outcome of an individual test case."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunReason(str, Enum):
    """Overall verdict for a test run."""

    PASSED = "passed"
    FAILED = "failed"


class LintIssue(CanonicalModel):
    """One normalised diagnostic."""

    file: str
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    severity: Severity
    message: str
    rule: str | None = None


def _raw_severity(issue: LintIssue | Mapping[str, Any]) -> str | None:
    if isinstance(issue, LintIssue):
        return issue.severity.value
    if isinstance(issue, Mapping):
        value = issue.get("severity")
        return value.value if isinstance(value, Severity) else str(value)
    return None


class LintResult(CanonicalModel):
    """Aggregate of one linter invocation.

    ``errorCount`` and ``warningCount`` are always derived from ``issues``.
    Payloads that declare counts disagreeing with their issues are rejected.
    """

    timestamp: str = Field(default_factory=utc_timestamp)
    files: tuple[str, ...] = ()
    issues: tuple[LintIssue, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _check_declared_counts(cls, data: Any) -> Any:
        """Reject payloads whose declared counts drift from their issues."""

        if not isinstance(data, Mapping):
            return data
        payload = dict(data)
        issues = payload.get("issues") or ()
        for severity, keys in _COUNT_KEYS.items():
            for key in keys:
                if key not in payload:
                    continue
                declared = payload.pop(key)
                actual = sum(1 for issue in issues if _raw_severity(issue) == severity.value)
                if declared != actual:
                    raise ValueError(f"{key} is {declared} but {actual} {severity.value} issue(s) are present")
        return payload

    @computed_field(alias="errorCount")  # type: ignore[prop-decorator]
    @property
    def error_count(self) -> int:
        """Return the number of issues with error severity."""

        return sum(1 for issue in self.issues if issue.severity is Severity.ERROR)

    @computed_field(alias="warningCount")  # type: ignore[prop-decorator]
    @property
    def warning_count(self) -> int:
        """Return the number of issues with warning severity."""

        return sum(1 for issue in self.issues if issue.severity is Severity.WARNING)


class TestError(CanonicalModel):
    """Failure record attached to a test case.

    Only ``message`` is required by the contract. The optional fields carry
    whatever the toolchain offers; unknown extras are preserved verbatim.
    """

    __test__: ClassVar[bool] = False

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="allow")

    message: str
    expected: str | None = None
    actual: str | None = None
    name: str | None = None
    stack: str | None = None
    operator: str | None = None
    code: str | None = None
    location: str | None = None
    help: str | None = None
    note: str | None = None


class TestCase(CanonicalModel):
    """One test outcome."""

    __test__: ClassVar[bool] = False

    name: str
    full_name: str
    state: TestState
    errors: tuple[TestError, ...] = ()

    @model_serializer(mode="wrap")
    def _omit_empty_errors(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if not self.errors:
            data.pop("errors", None)
        return data

    @property
    def failed(self) -> bool:
        """Return ``True`` when the test failed."""

        return self.state is TestState.FAILED


class TestModule(CanonicalModel):
    """Named, ordered grouping of test cases."""

    __test__: ClassVar[bool] = False

    module_id: str
    tests: tuple[TestCase, ...] = ()


class UnhandledError(CanonicalModel):
    """Run-level error that cannot be attributed to a test."""

    message: str
    name: str | None = None
    stack: str | None = None


class TestResult(CanonicalModel):
    """Aggregate of one test run."""

    __test__: ClassVar[bool] = False

    test_modules: tuple[TestModule, ...] = ()
    unhandled_errors: tuple[UnhandledError, ...] = ()
    reason: RunReason = RunReason.PASSED

    @model_validator(mode="after")
    def _check_reason(self) -> TestResult:
        """Reject documents reporting success while failures are present."""

        if self.reason is RunReason.PASSED and (self.unhandled_errors or self.failed_tests()):
            raise ValueError("reason is 'passed' but the run contains failures")
        return self

    @model_serializer(mode="wrap")
    def _omit_empty_unhandled(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if not self.unhandled_errors:
            data.pop("unhandledErrors", None)
            data.pop("unhandled_errors", None)
        return data

    def iter_tests(self) -> tuple[TestCase, ...]:
        """Return every test case across modules in document order."""

        return tuple(test for module in self.test_modules for test in module.tests)

    def failed_tests(self) -> tuple[TestCase, ...]:
        """Return the failed test cases in document order."""

        return tuple(test for test in self.iter_tests() if test.failed)


__all__ = [
    "BUILD_TEST_NAME",
    "COMPILATION_MODULE_ID",
    "COMPILATION_TEST_NAME",
    "EVALUATION_TEST_NAME",
    "GENERIC_FAILURE_MESSAGE",
    "MODULE_LOAD_FAILURE_TEMPLATE",
    "NIX_MODULE_ID",
    "CanonicalModel",
    "LintIssue",
    "LintResult",
    "RunReason",
    "Severity",
    "TestCase",
    "TestError",
    "TestModule",
    "TestResult",
    "TestState",
    "UnhandledError",
    "utc_timestamp",
]
