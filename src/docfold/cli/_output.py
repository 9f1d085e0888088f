"""CLI output formatting.

Reduced documents go to their output target; everything the command line
says about a run goes through :class:`OutputFormatter`, either as plain
``docfold: ...`` lines on stderr or as JSON.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional

PROG = "docfold"


class OutputFormatter:
    """Output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def success(self, data: Dict[str, Any], message: Optional[str] = None, *, status: str = "success") -> None:
        """Report a successful run.

        In text mode nothing is printed unless ``message`` is given, so the
        reduced document is the only thing on stdout.
        """
        if self.json_mode:
            print(json.dumps({"status": status, **data}, indent=self.indent, default=str))
        elif message:
            print(message, file=sys.stderr)

    def error(self, error: Exception | str, message: Optional[str] = None, *, error_code: str = "error") -> None:
        """Report a failed run on stderr.

        Args:
            error: The exception (or message) that ended the run
            message: Optional human-readable message (defaults to str(error))
            error_code: Error code for JSON output
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            to_json = getattr(error, "to_json_error", None)
            if callable(to_json):
                output["context"] = to_json().get("context", {})
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print_error(msg)


def print_error(message: str) -> None:
    """Print ``docfold: message`` to stderr."""
    print(f"{PROG}: {message}", file=sys.stderr)


__all__ = ["OutputFormatter", "print_error", "PROG"]
