"""Sink adapter for reduced output.

A target may be:
- a path (``str`` or ``Path``): the file is created or truncated, missing
  parent directories are created
- ``"-"``: standard output
- any object with a ``write`` method (``sys.stdout``, ``io.StringIO``, ...)
- ``None``, ``str`` or ``"/dev/null"``: nothing is written
"""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Optional, Union

import yaml

Target = Union[str, Path, Any, None]


def is_null_target(target: Target) -> bool:
    return target is None or target is str or (isinstance(target, (str, Path)) and str(target) == os.devnull)


class OutputWriter:
    """Write reduced text, or a structured source map, to a target."""

    def __init__(self, encoding: str = "utf-8", json_indent: int = 2) -> None:
        """Initialize the writer.

        Args:
            encoding: File encoding (default: utf-8).
            json_indent: JSON indentation level (default: 2).
        """
        self.encoding = encoding
        self.json_indent = json_indent

    def write(self, target: Target, content: str) -> Optional[Path]:
        """Send ``content`` to ``target``.

        Returns:
            The path written, or None for streams and null targets.

        Raises:
            IsADirectoryError: If ``target`` names an existing directory
        """
        if is_null_target(target):
            return None
        if isinstance(target, str) and target == "-":
            sys.stdout.write(content)
            sys.stdout.flush()
            return None
        if isinstance(target, (str, Path)):
            resolved = Path(target)
            if resolved.is_dir():
                raise IsADirectoryError(f"output is a directory: {resolved}")
            resolved.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps "\n" line endings on every platform.
            with open(resolved, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
            return resolved
        if hasattr(target, "write"):
            target.write(content)
            return None
        raise TypeError(f"unsupported output target: {target!r}")

    def write_json(self, target: Target, data: Any, sort_keys: bool = False) -> Optional[Path]:
        text = json.dumps(data, indent=self.json_indent, sort_keys=sort_keys, ensure_ascii=False)
        return self.write(target, text + "\n")

    def write_yaml(self, target: Target, data: Any) -> Optional[Path]:
        text = yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        return self.write(target, text)


__all__ = ["OutputWriter", "is_null_target"]
