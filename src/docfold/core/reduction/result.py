"""Reduction result: flattened lines, source map, diagnostics and verdict."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from docfold.core.exceptions import ReductionFailed

from .buffer import SourceLine, SourceRef
from .diagnostics import Diagnostic, Severity


@dataclass
class ReductionResult:
    """Outcome of one reduction.

    The lines are always the best-effort flattening, even when the verdict
    failed; :attr:`ok` says whether they can be trusted.
    """

    file_id: str
    lines: List[SourceLine] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    failure_level: Severity = Severity.ERROR
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        if not self.lines:
            return ""
        return "\n".join(line.text for line in self.lines) + "\n"

    @property
    def source_lines(self) -> List[str]:
        return [line.text for line in self.lines]

    @property
    def source_map(self) -> List[SourceRef]:
        return [line.origin for line in self.lines]

    def origin_of(self, line_number: int) -> SourceRef:
        """Provenance of the 1-based output line ``line_number``.

        Raises:
            IndexError: If the output has no such line
        """
        if not 1 <= line_number <= len(self.lines):
            raise IndexError(f"output line {line_number} out of range (1..{len(self.lines)})")
        return self.lines[line_number - 1].origin

    @property
    def first_fatal(self) -> Optional[Diagnostic]:
        for diagnostic in self.diagnostics:
            if diagnostic.is_fatal(self.failure_level):
                return diagnostic
        return None

    @property
    def ok(self) -> bool:
        return self.first_fatal is None

    def raise_for_failure(self) -> "ReductionResult":
        """Raise :class:`ReductionFailed` when the verdict failed, else return self."""
        fatal = self.first_fatal
        if fatal is not None:
            raise ReductionFailed(fatal, self)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file_id,
            "ok": self.ok,
            "lines": [
                {"number": n, "text": line.text, "origin": line.origin.to_dict()}
                for n, line in enumerate(self.lines, start=1)
            ],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


__all__ = ["ReductionResult"]
