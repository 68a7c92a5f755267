# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parsers converting raw toolchain output into canonical records."""

from __future__ import annotations

from .go import parse_go_test, parse_golangci_lint
from .javascript import parse_eslint, parse_jest_json
from .junit import JUnitFlavour, parse_junit_xml
from .nix import NixUnitParser, parse_nix_unit, parse_nixf_tidy, parse_statix
from .rust import parse_cargo_test

__all__ = [
    "JUnitFlavour",
    "NixUnitParser",
    "parse_cargo_test",
    "parse_eslint",
    "parse_go_test",
    "parse_golangci_lint",
    "parse_jest_json",
    "parse_junit_xml",
    "parse_nix_unit",
    "parse_nixf_tidy",
    "parse_statix",
]
