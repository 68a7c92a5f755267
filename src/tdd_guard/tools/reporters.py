# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Test reporter adapters, one per supported toolchain."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Final

from ..config import ConfigError, ReporterSettings
from ..core.models import TestResult
from ..core.runtime.process import CapturedOutput
from ..parsers.go import parse_go_test
from ..parsers.javascript import parse_jest_json
from ..parsers.junit import JUnitFlavour, parse_junit_xml
from ..parsers.nix import parse_nix_unit
from ..parsers.rust import parse_cargo_test
from .base import ReportFileReporter, Reporter
from .kinds import ReporterType

NIX_TEST_FILE_CANDIDATES: Final[tuple[str, ...]] = ("tests.nix", "test.nix")


def discover_nix_test_file(settings: ReporterSettings) -> Path:
    """Return the nix-unit entry point for ``settings``.

    An explicit ``--test-file`` wins; otherwise ``tests.nix`` then ``test.nix``
    are looked up in the project root.

    Raises:
        ConfigError: If no test file can be found.
    """

    explicit = settings.resolve_test_file()
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigError(f"--test-file: '{explicit}' does not exist")
        return explicit
    for candidate in NIX_TEST_FILE_CANDIDATES:
        path = settings.project_root / candidate
        if path.is_file():
            return path
    raise ConfigError(
        "No Nix test file found in the project root\n"
        f"Searched for: {', '.join(NIX_TEST_FILE_CANDIDATES)}\n"
        "Solutions:\n"
        "  1. Create a tests.nix file with nix-unit tests\n"
        "  2. Use --test-file <path> to specify a custom location\n"
        "  3. See nix-unit documentation: https://github.com/nix-community/nix-unit",
    )


class NixUnitReporter(Reporter):
    """``nix-unit <test file> [args]`` with its annotated-text output."""

    reporter_type: ClassVar[ReporterType] = ReporterType.NIX
    executable: ClassVar[str] = "nix-unit"

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        return [self.executable, str(discover_nix_test_file(settings)), *settings.extra_args]

    def parse_output(self, captured: CapturedOutput, report_dir: Path | None) -> TestResult:
        return parse_nix_unit(captured.lines)


class GoTestReporter(Reporter):
    """``go test -json ./... [args]``."""

    reporter_type: ClassVar[ReporterType] = ReporterType.GO
    executable: ClassVar[str] = "go"

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        return [self.executable, "test", "-json", "./...", *settings.extra_args]

    def parse_output(self, captured: CapturedOutput, report_dir: Path | None) -> TestResult:
        return parse_go_test(captured.lines)


class CargoTestReporter(Reporter):
    """``cargo test [args]``."""

    reporter_type: ClassVar[ReporterType] = ReporterType.RUST
    executable: ClassVar[str] = "cargo"

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        return [self.executable, "test", *settings.extra_args]

    def parse_output(self, captured: CapturedOutput, report_dir: Path | None) -> TestResult:
        return parse_cargo_test(captured.lines)


class JestReporter(ReportFileReporter):
    """``npx jest --json --outputFile=<report> [args]``."""

    reporter_type: ClassVar[ReporterType] = ReporterType.JEST
    executable: ClassVar[str] = "jest"
    report_name: ClassVar[str] = "jest-report.json"
    title_separator: ClassVar[str | None] = None

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        return [
            "npx",
            self.executable,
            "--json",
            f"--outputFile={self.report_path(report_dir)}",
            *settings.extra_args,
        ]

    def parse_report(self, text: str) -> TestResult:
        return parse_jest_json(text, title_separator=self.title_separator)


class VitestReporter(JestReporter):
    """``npx vitest run --reporter=json --outputFile=<report> [args]``."""

    reporter_type: ClassVar[ReporterType] = ReporterType.VITEST
    executable: ClassVar[str] = "vitest"
    report_name: ClassVar[str] = "vitest-report.json"
    title_separator: ClassVar[str | None] = " > "

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        return [
            "npx",
            self.executable,
            "run",
            "--reporter=json",
            f"--outputFile={self.report_path(report_dir)}",
            *settings.extra_args,
        ]


class PytestReporter(ReportFileReporter):
    """``pytest --junitxml=<report> [args]``."""

    reporter_type: ClassVar[ReporterType] = ReporterType.PYTEST
    executable: ClassVar[str] = "pytest"
    report_name: ClassVar[str] = "pytest-junit.xml"

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        # xunit1 adds the ``file`` attribute used for module ids.
        return [
            self.executable,
            f"--junitxml={self.report_path(report_dir)}",
            "-o",
            "junit_family=xunit1",
            *settings.extra_args,
        ]

    def parse_report(self, text: str) -> TestResult:
        return parse_junit_xml(text, JUnitFlavour.PYTEST)


class PhpunitReporter(ReportFileReporter):
    """``phpunit --log-junit <report> [args]``."""

    reporter_type: ClassVar[ReporterType] = ReporterType.PHPUNIT
    executable: ClassVar[str] = "phpunit"
    report_name: ClassVar[str] = "phpunit-junit.xml"

    def build_command(self, settings: ReporterSettings, report_dir: Path) -> list[str]:
        return [self.executable, "--log-junit", str(self.report_path(report_dir)), *settings.extra_args]

    def parse_report(self, text: str) -> TestResult:
        return parse_junit_xml(text, JUnitFlavour.PHPUNIT)


__all__ = [
    "NIX_TEST_FILE_CANDIDATES",
    "CargoTestReporter",
    "GoTestReporter",
    "JestReporter",
    "NixUnitReporter",
    "PhpunitReporter",
    "PytestReporter",
    "VitestReporter",
    "discover_nix_test_file",
]
