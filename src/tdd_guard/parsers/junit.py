# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parser for JUnit XML reports written by pytest and PHPUnit."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import PurePath
from typing import Final
from xml.etree.ElementTree import Element

from defusedxml import ElementTree
from defusedxml.common import DefusedXmlException

from ..assembler import TestResultBuilder
from ..core.models import (
    COMPILATION_MODULE_ID,
    EVALUATION_TEST_NAME,
    GENERIC_FAILURE_MESSAGE,
    TestError,
    TestResult,
    TestState,
)
from .base import strip_ansi

LOGGER = logging.getLogger(__name__)

_COLLECTION_ERROR_PREFIX: Final[str] = "collection_error_"


class JUnitFlavour(str, Enum):
    """Producers whose JUnit naming conventions are understood."""

    PYTEST = "pytest"
    PHPUNIT = "phpunit"


def _failure_record(case: Element) -> tuple[TestState, Element | None]:
    for tag in ("failure", "error"):
        element = case.find(tag)
        if element is not None:
            return TestState.FAILED, element
    if case.find("skipped") is not None:
        return TestState.SKIPPED, None
    return TestState.PASSED, None


def _error_from(element: Element) -> TestError:
    body = strip_ansi((element.text or "").strip())
    summary = element.get("message") or ""
    return TestError(
        message=body or summary or GENERIC_FAILURE_MESSAGE,
        name=element.get("type") or None,
    )


def _pytest_qualifier(classname: str, file_path: str | None) -> list[str]:
    """Return the ``::`` components that precede a pytest test name.

    ``classname`` is the dotted module path followed by any class names. With
    a ``file`` attribute the module part is replaced by the file path;
    otherwise the first capitalised component is taken as the first class.
    """

    parts = [part for part in classname.split(".") if part]
    if file_path:
        module_parts = [part for part in PurePath(file_path).with_suffix("").parts if part not in ("", ".")]
        if parts[: len(module_parts)] == module_parts:
            return [file_path, *parts[len(module_parts) :]]
        return [file_path, *(part for part in parts if part[:1].isupper())]
    for index, part in enumerate(parts):
        if part[:1].isupper():
            return [".".join(parts[:index]), *parts[index:]] if index else parts
    return [classname]


def _pytest_names(case: Element, suite_file: str | None, failed: bool) -> tuple[str, str, str]:
    """Return ``(module_id, name, full_name)`` for a pytest test case."""

    name = case.get("name") or ""
    classname = case.get("classname") or ""
    file_path = case.get("file") or suite_file
    module_id = file_path or classname or name
    if not classname and failed and file_path:
        # Collection failures are reported against the file itself.
        return module_id, f"{_COLLECTION_ERROR_PREFIX}{PurePath(file_path).name}", file_path
    full_name = "::".join([*_pytest_qualifier(classname, file_path), name]) if classname else name
    return module_id, name, full_name


def _phpunit_names(case: Element, suite_file: str | None) -> tuple[str, str, str]:
    name = case.get("name") or ""
    class_name = case.get("class") or case.get("classname") or ""
    module_id = case.get("file") or suite_file or class_name or name
    full_name = f"{class_name}::{name}" if class_name else name
    return module_id, name, full_name


def _walk(element: Element, suite_file: str | None, builder: TestResultBuilder, flavour: JUnitFlavour) -> None:
    for child in element:
        if child.tag == "testsuite":
            _walk(child, child.get("file") or suite_file, builder, flavour)
        elif child.tag == "testcase":
            state, record = _failure_record(child)
            if flavour is JUnitFlavour.PHPUNIT:
                module_id, name, full_name = _phpunit_names(child, suite_file)
            else:
                module_id, name, full_name = _pytest_names(child, suite_file, state is TestState.FAILED)
            errors = (_error_from(record),) if record is not None else ()
            builder.add_test(module_id, name, state, full_name=full_name, errors=errors)


def parse_junit_xml(text: str, flavour: JUnitFlavour | str = JUnitFlavour.PYTEST) -> TestResult:
    """Parse a JUnit XML report.

    Args:
        text: XML document produced by ``pytest --junitxml`` or ``phpunit --log-junit``.
        flavour: Producer of the report, which decides module and name conventions.

    Returns:
        TestResult: One module per test file. An empty report yields an empty
        result; one that cannot be parsed becomes a synthetic evaluation
        failure carrying the raw text.
    """

    resolved = JUnitFlavour(flavour)
    builder = TestResultBuilder()
    if not text.strip():
        return builder.build()
    try:
        root = ElementTree.fromstring(text)
    except (ElementTree.ParseError, DefusedXmlException) as exc:
        LOGGER.warning("%s: JUnit report is not valid XML (%s)", resolved.value, exc)
        builder.add_synthetic_failure(
            COMPILATION_MODULE_ID,
            EVALUATION_TEST_NAME,
            strip_ansi(text.strip()) or GENERIC_FAILURE_MESSAGE,
            full_name=f"{COMPILATION_MODULE_ID}::{EVALUATION_TEST_NAME}",
        )
        return builder.build()
    if root.tag == "testsuite":
        _walk(root, root.get("file"), builder, resolved)
    else:
        _walk(root, None, builder, resolved)
    return builder.build()


__all__ = ["JUnitFlavour", "parse_junit_xml"]
