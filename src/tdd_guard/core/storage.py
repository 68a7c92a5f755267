# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persist canonical documents at their well-known locations."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final, TypeVar

from .models import CanonicalModel

DATA_DIR: Final[str] = ".claude/tdd-guard/data"
TEST_RESULTS_FILE: Final[str] = "test.json"
LINT_RESULTS_FILE: Final[str] = "lint.json"

ModelT = TypeVar("ModelT", bound=CanonicalModel)


@dataclass(slots=True, frozen=True)
class StoragePaths:
    """Destination paths for the documents of one project."""

    data_dir: Path
    test_results: Path
    lint_results: Path

    @classmethod
    def for_project(cls, project_root: Path) -> StoragePaths:
        """Return the storage layout rooted at ``project_root``."""

        data_dir = project_root.resolve() / DATA_DIR
        return cls(
            data_dir=data_dir,
            test_results=data_dir / TEST_RESULTS_FILE,
            lint_results=data_dir / LINT_RESULTS_FILE,
        )


def write_document(path: Path, document: CanonicalModel) -> Path:
    """Atomically write ``document`` as pretty JSON to ``path``.

    The payload is written to a temporary sibling of ``path`` and renamed over
    it, so readers observe either the previous document or the new one.

    Args:
        path: Destination file.
        document: Canonical document to serialise.

    Returns:
        Path: The destination path.

    Raises:
        OSError: If the directory cannot be created or the file cannot be
            written or renamed. The temporary file is removed first.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = document.to_json(indent=2) + "\n"
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(handle.name)
    try:
        with handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise
    return path


def read_document(path: Path, model: type[ModelT]) -> ModelT:
    """Load and validate the document stored at ``path``."""

    return model.model_validate_json(path.read_text(encoding="utf-8"))


__all__ = [
    "DATA_DIR",
    "LINT_RESULTS_FILE",
    "TEST_RESULTS_FILE",
    "StoragePaths",
    "read_document",
    "write_document",
]
