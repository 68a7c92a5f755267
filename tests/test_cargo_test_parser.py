# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the ``cargo test`` report parser."""

from __future__ import annotations

from tdd_guard.core.models import BUILD_TEST_NAME, COMPILATION_MODULE_ID, RunReason, TestState
from tdd_guard.parsers import parse_cargo_test
from tdd_guard.parsers.rust import crate_from_artifact

CARGO_FAILING_RUN = """\
   Compiling calc v0.1.0 (/project)
    Finished `test` profile [unoptimized + debuginfo] target(s) in 0.52s
     Running unittests src/lib.rs (target/debug/deps/calc-1a2b3c4d5e6f7a8b)

running 3 tests
test tests::adds ... ok
test tests::subtracts ... FAILED
test tests::slow ... ignored

failures:

---- tests::subtracts stdout ----
thread 'tests::subtracts' panicked at src/lib.rs:12:9:
assertion `left == right` failed
  left: 1
 right: 2
note: run with `RUST_BACKTRACE=1` environment variable to display a backtrace


failures:
    tests::subtracts

test result: FAILED. 1 passed; 1 failed; 1 ignored; 0 measured; 0 filtered out; finished in 0.00s

error: test failed, to rerun pass `--lib`
"""

CARGO_COMPILE_ERROR = """\
   Compiling calc v0.1.0 (/project)
error[E0425]: cannot find value `y` in this scope
 --> src/lib.rs:3:5
  |
3 |     y + 1
  |     ^ help: a local variable with a similar name exists: `x`

For more information about this error, try `rustc --explain E0425`.
error: could not compile `calc` (lib test) due to 1 previous error
"""


def test_failing_run_with_assertion_diff() -> None:
    result = parse_cargo_test(CARGO_FAILING_RUN.splitlines())

    assert [module.module_id for module in result.test_modules] == ["calc"]
    tests = result.iter_tests()
    assert [(test.name, test.state) for test in tests] == [
        ("tests::adds", TestState.PASSED),
        ("tests::subtracts", TestState.FAILED),
        ("tests::slow", TestState.SKIPPED),
    ]
    failed = tests[1]
    assert failed.full_name == "calc::tests::subtracts"
    error = failed.errors[0]
    assert error.actual == "1"
    assert error.expected == "2"
    assert "panicked at src/lib.rs:12:9" in error.message
    assert "RUST_BACKTRACE" not in error.message
    assert result.unhandled_errors == ()
    assert result.reason is RunReason.FAILED


def test_doc_tests_get_their_own_module() -> None:
    lines = [
        "     Running tests/integration.rs (target/debug/deps/integration-0f0f0f0f0f0f0f0f)",
        "test works ... ok",
        "   Doc-tests calc",
        "test src/lib.rs - add (line 3) ... ok",
    ]

    result = parse_cargo_test(lines)

    assert [module.module_id for module in result.test_modules] == ["integration", "calc (doc-tests)"]
    assert result.iter_tests()[1].name == "src/lib.rs - add (line 3)"
    assert result.reason is RunReason.PASSED


def test_compile_error_becomes_build_failure() -> None:
    result = parse_cargo_test(CARGO_COMPILE_ERROR.splitlines())

    assert [module.module_id for module in result.test_modules] == [COMPILATION_MODULE_ID]
    build = result.iter_tests()[0]
    assert build.name == BUILD_TEST_NAME
    assert build.full_name == f"{COMPILATION_MODULE_ID}::{BUILD_TEST_NAME}"
    assert len(build.errors) == 1
    error = build.errors[0]
    assert error.message == "cannot find value `y` in this scope"
    assert error.code == "E0425"
    assert error.location == "src/lib.rs:3:5"
    assert result.reason is RunReason.FAILED


def test_lone_could_not_compile_is_kept() -> None:
    result = parse_cargo_test(["error: could not compile `calc` due to previous error"])

    errors = result.iter_tests()[0].errors
    assert [error.message for error in errors] == ["could not compile `calc` due to previous error"]


def test_ansi_colour_codes_are_stripped() -> None:
    result = parse_cargo_test(["test it_works ... \x1b[32mok\x1b[0m"])

    assert [(test.name, test.state) for test in result.iter_tests()] == [("it_works", TestState.PASSED)]
    assert result.test_modules[0].module_id == "tests"


def test_crate_from_artifact() -> None:
    assert crate_from_artifact("target/debug/deps/my_crate-1a2b3c") == "my_crate"
    assert crate_from_artifact("target/debug/deps/plain") == "plain"
    assert crate_from_artifact("target/debug/deps/name-with-dash-abc123") == "name-with-dash"
