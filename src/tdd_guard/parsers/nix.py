# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parsers for Nix tooling: statix, nixf-tidy and nix-unit."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Final, TypeAlias

from ..assembler import TestResultBuilder
from ..core.models import (
    COMPILATION_MODULE_ID,
    EVALUATION_TEST_NAME,
    NIX_MODULE_ID,
    LintIssue,
    TestError,
    TestResult,
    TestState,
)
from ..core.normalize import (
    clamp_position,
    extract_rule,
    offset_to_position,
    one_based,
    substitute_placeholders,
)
from ..core.serialization import (
    JsonValue,
    as_mapping,
    coerce_optional_int,
    coerce_optional_str,
    coerce_str_list,
    iter_dicts,
    load_json_stream,
)
from ..core.severity import nixf_severity, statix_severity
from .base import is_blank, load_payload, strip_ansi


def _statix_position(at: JsonValue, source: str | None) -> tuple[int, int]:
    start = as_mapping(at).get("from")
    if isinstance(start, Mapping):
        # Newer statix releases report 1-based line/column pairs.
        return (
            clamp_position(coerce_optional_int(start.get("line"))),
            clamp_position(coerce_optional_int(start.get("column"))),
        )
    offset = coerce_optional_int(start)
    if offset is None:
        return 1, 1
    return offset_to_position(offset, source)


def parse_statix(stdout: str, sources: Mapping[str, str] | None = None) -> list[LintIssue]:
    """Parse ``statix check --output json`` reports.

    Statix locates suggestions by character offset. When the checked file's
    text is supplied through ``sources`` the offset is translated into a real
    line and column; otherwise the issue is reported on line ``1`` with the
    offset as its column.

    Args:
        stdout: Newline-delimited JSON reports.
        sources: Optional mapping of reported file path to file contents.

    Returns:
        list[LintIssue]: One issue per suggestion, in emission order.
    """

    issues: list[LintIssue] = []
    for report in iter_dicts(load_json_stream(stdout, source="statix")):
        path = coerce_optional_str(report.get("file")) or ""
        severity = statix_severity(coerce_optional_str(report.get("report_kind")))
        report_note = coerce_optional_str(report.get("note")) or ""
        source = sources.get(path) if sources else None
        for suggestion in iter_dicts(report.get("suggestions")):
            note = coerce_optional_str(suggestion.get("note")) or report_note
            line, column = _statix_position(suggestion.get("at"), source)
            issues.append(
                LintIssue(
                    file=path,
                    line=line,
                    column=column,
                    severity=severity,
                    message=note,
                    rule=extract_rule(note) or extract_rule(report_note),
                ),
            )
    return issues


def parse_nixf_tidy(stdout: str, file_path: str) -> list[LintIssue]:
    """Parse the JSON diagnostics ``nixf-tidy`` emits for one file.

    Args:
        stdout: JSON array (or single object) of diagnostics.
        file_path: Path of the file that was piped to ``nixf-tidy``.

    Returns:
        list[LintIssue]: Issues with 1-based positions and substituted messages.
    """

    payload = load_payload(stdout, source="nixf-tidy")
    if isinstance(payload, Mapping):
        payload = [payload]
    issues: list[LintIssue] = []
    for diagnostic in iter_dicts(payload):
        start = as_mapping(as_mapping(diagnostic.get("range")).get("lCur"))
        template = coerce_optional_str(diagnostic.get("message")) or ""
        message = substitute_placeholders(template, coerce_str_list(diagnostic.get("args")))
        issues.append(
            LintIssue(
                file=file_path,
                line=one_based(coerce_optional_int(start.get("line"))),
                column=one_based(coerce_optional_int(start.get("column"))),
                severity=nixf_severity(coerce_optional_int(diagnostic.get("severity"))),
                message=message,
                rule=coerce_optional_str(diagnostic.get("sname")) or extract_rule(message),
            ),
        )
    return issues


# nix-unit annotated text -----------------------------------------------------

_TEST_LINE: Final[re.Pattern[str]] = re.compile(r"^(?P<glyph>✅|❌)\s+(?P<name>\S+)")
_SUMMARY_LINE: Final[re.Pattern[str]] = re.compile(
    r"^(?P<glyph>🎉|😢)\s+(?P<passed>\d+)/(?P<total>\d+)\s+successful",
)
_ERROR_LINE: Final[re.Pattern[str]] = re.compile(r"error:|Error:|syntax\s+error")
_WARNING_PREFIX: Final[str] = "warning:"
_PASS_GLYPH: Final[str] = "✅"
_SAD_GLYPH: Final[str] = "😢"
EVALUATION_ERROR_NAME: Final[str] = "NixEvaluationError"


class ParserState(Enum):
    """States of the nix-unit line scanner."""

    SCANNING = "scanning"
    COLLECTING_ERROR = "collecting_error"


class LineKind(Enum):
    """Classification of one line of nix-unit output."""

    BLANK = "blank"
    WARNING = "warning"
    PASS = "pass"
    FAIL = "fail"
    SUMMARY = "summary"
    ERROR = "error"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class ClassifiedLine:
    """A colour-stripped line together with its kind and pattern match."""

    kind: LineKind
    text: str
    match: re.Match[str] | None = None

    def group(self, name: str) -> str:
        """Return the named pattern group, or an empty string when unmatched."""

        return self.match.group(name) if self.match is not None else ""


def classify_line(raw: str) -> ClassifiedLine:
    """Return the :class:`LineKind` of ``raw`` after stripping colour codes."""

    text = strip_ansi(raw).rstrip()
    if is_blank(text):
        return ClassifiedLine(LineKind.BLANK, text)
    if text.startswith(_WARNING_PREFIX):
        return ClassifiedLine(LineKind.WARNING, text)
    if match := _TEST_LINE.match(text):
        kind = LineKind.PASS if match.group("glyph") == _PASS_GLYPH else LineKind.FAIL
        return ClassifiedLine(kind, text, match)
    if match := _SUMMARY_LINE.match(text):
        return ClassifiedLine(LineKind.SUMMARY, text, match)
    if _ERROR_LINE.search(text):
        return ClassifiedLine(LineKind.ERROR, text)
    return ClassifiedLine(LineKind.OTHER, text)


@dataclass(slots=True)
class _PendingFailure:
    module_id: str
    name: str
    details: list[str] = field(default_factory=list)
    unhandled: bool = False


Transition: TypeAlias = Callable[["NixUnitParser", ClassifiedLine], ParserState]


class NixUnitParser:
    """Single-pass state machine turning nix-unit output into a :class:`TestResult`.

    Feed lines with :meth:`feed` and call :meth:`finish` once at end of input.
    The behaviour for every ``(state, line kind)`` pair is listed in
    :attr:`TRANSITIONS`; pairs that are absent leave the state unchanged.
    """

    TRANSITIONS: ClassVar[dict[tuple[ParserState, LineKind], Transition]]

    def __init__(self, module_id: str = NIX_MODULE_ID) -> None:
        self._module_id = module_id
        self._builder = TestResultBuilder()
        self._state = ParserState.SCANNING
        self._pending: _PendingFailure | None = None
        self._seen_test = False
        self._recognised = False
        self._captured: list[str] = []

    @property
    def state(self) -> ParserState:
        """Return the current scanner state."""

        return self._state

    def feed(self, raw: str) -> None:
        """Consume one line of output."""

        line = classify_line(raw)
        if line.kind not in (LineKind.BLANK, LineKind.WARNING):
            self._captured.append(line.text)
        transition = self.TRANSITIONS.get((self._state, line.kind))
        if transition is not None:
            self._state = transition(self, line)

    def finish(self) -> TestResult:
        """Flush pending state, apply the fallback policy and build the result."""

        self._flush_pending()
        self._state = ParserState.SCANNING
        if not self._seen_test and not self._recognised and self._captured:
            self._builder.add_synthetic_failure(
                COMPILATION_MODULE_ID,
                EVALUATION_TEST_NAME,
                "\n".join(self._captured),
                full_name=f"{COMPILATION_MODULE_ID}.{EVALUATION_TEST_NAME}",
            )
        return self._builder.build()

    # transition actions ------------------------------------------------------

    def _on_pass(self, line: ClassifiedLine) -> ParserState:
        self._flush_pending()
        name = self._test_name(line)
        self._builder.add_test(
            self._module_id,
            name,
            TestState.PASSED,
            full_name=f"{self._module_id}.{name}",
        )
        return ParserState.SCANNING

    def _on_fail(self, line: ClassifiedLine) -> ParserState:
        self._flush_pending()
        self._pending = _PendingFailure(self._module_id, self._test_name(line))
        self._mark_seen()
        return ParserState.COLLECTING_ERROR

    def _on_summary(self, line: ClassifiedLine) -> ParserState:
        self._flush_pending()
        self._recognised = True
        passed = int(line.group("passed") or 0)
        total = int(line.group("total") or 0)
        if line.group("glyph") == _SAD_GLYPH or passed != total:
            self._builder.mark_failed()
        return ParserState.SCANNING

    def _on_error(self, line: ClassifiedLine) -> ParserState:
        if self._seen_test:
            # The trace that follows belongs to one unhandled error.
            self._pending = _PendingFailure(self._module_id, EVALUATION_ERROR_NAME, [line.text], unhandled=True)
            return ParserState.COLLECTING_ERROR
        self._pending = _PendingFailure(COMPILATION_MODULE_ID, EVALUATION_TEST_NAME, [line.text])
        self._mark_seen()
        return ParserState.COLLECTING_ERROR

    def _on_detail(self, line: ClassifiedLine) -> ParserState:
        if self._pending is not None:
            self._pending.details.append(line.text)
        return ParserState.COLLECTING_ERROR

    # helpers -----------------------------------------------------------------

    def _test_name(self, line: ClassifiedLine) -> str:
        self._mark_seen()
        return line.group("name")

    def _mark_seen(self) -> None:
        self._seen_test = True
        self._recognised = True

    def _flush_pending(self) -> None:
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        if pending.unhandled:
            self._builder.add_unhandled_error("\n".join(pending.details), name=pending.name)
            return
        errors = (TestError(message="\n".join(pending.details)),) if pending.details else ()
        self._builder.add_test(
            pending.module_id,
            pending.name,
            TestState.FAILED,
            full_name=f"{pending.module_id}.{pending.name}",
            errors=errors,
        )


NixUnitParser.TRANSITIONS = {
    (ParserState.SCANNING, LineKind.PASS): NixUnitParser._on_pass,
    (ParserState.SCANNING, LineKind.FAIL): NixUnitParser._on_fail,
    (ParserState.SCANNING, LineKind.SUMMARY): NixUnitParser._on_summary,
    (ParserState.SCANNING, LineKind.ERROR): NixUnitParser._on_error,
    (ParserState.COLLECTING_ERROR, LineKind.PASS): NixUnitParser._on_pass,
    (ParserState.COLLECTING_ERROR, LineKind.FAIL): NixUnitParser._on_fail,
    (ParserState.COLLECTING_ERROR, LineKind.SUMMARY): NixUnitParser._on_summary,
    (ParserState.COLLECTING_ERROR, LineKind.ERROR): NixUnitParser._on_detail,
    (ParserState.COLLECTING_ERROR, LineKind.OTHER): NixUnitParser._on_detail,
}


def parse_nix_unit(lines: Iterable[str]) -> TestResult:
    """Parse complete nix-unit output into a canonical :class:`TestResult`."""

    parser = NixUnitParser()
    for line in lines:
        parser.feed(line)
    return parser.finish()


__all__ = [
    "EVALUATION_ERROR_NAME",
    "ClassifiedLine",
    "LineKind",
    "NixUnitParser",
    "ParserState",
    "classify_line",
    "parse_nix_unit",
    "parse_nixf_tidy",
    "parse_statix",
]
