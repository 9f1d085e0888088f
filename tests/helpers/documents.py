"""Helpers for building document trees and inspecting reduction results."""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple


class DocumentTree:
    """Write AsciiDoc files relative to a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def write(self, name: str, content: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def path(self, name: str) -> str:
        """The file id docfold assigns to ``name``."""
        return os.path.normpath(os.path.abspath(self.root / name))


def origins(result) -> List[Tuple[str, int]]:
    """``(basename, line)`` for every output line."""
    return [(os.path.basename(ref.file_id), ref.line_number) for ref in result.source_map]


def messages(result) -> List[str]:
    return [d.message for d in result.diagnostics]
