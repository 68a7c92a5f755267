# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Return an absolute, existing project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def nix_project(project_root: Path) -> Path:
    """Return a project root containing a ``tests.nix`` entry point."""
    (project_root / "tests.nix").write_text("{ testA = { expr = 1; expected = 1; }; }\n", encoding="utf-8")
    return project_root
