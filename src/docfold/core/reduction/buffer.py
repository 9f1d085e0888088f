"""Line buffer and provenance records for the reduction engine.

Every line in a :class:`DocumentBuffer` carries a :class:`SourceRef` naming
the file and 1-based line it was read from, plus the chain of include
directives that led to that file. Lines are replaced, never edited in place.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Sequence, Tuple, overload

IncludeFrame = Tuple[str, int]


@dataclass(frozen=True)
class SourceRef:
    """Where a line came from.

    ``include_stack`` lists ``(file_id, line_number)`` of each include
    directive from the root document down to the one that pulled this line
    in. It is empty for lines of the root document.
    """

    file_id: str
    line_number: int
    include_stack: Tuple[IncludeFrame, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.include_stack)

    @property
    def basename(self) -> str:
        return os.path.basename(self.file_id) or self.file_id

    def lineage(self) -> Tuple[str, ...]:
        """File ids from the root document to this line's file, inclusive."""
        return tuple(f for f, _ in self.include_stack) + (self.file_id,)

    def child(self, file_id: str, line_number: int) -> "SourceRef":
        """Ref for a line of a file included by the directive at ``self``."""
        return SourceRef(
            file_id=file_id,
            line_number=line_number,
            include_stack=self.include_stack + ((self.file_id, self.line_number),),
        )

    def describe(self) -> str:
        """Human-readable location, e.g. ``b.adoc: line 2, included from a.adoc: line 5``."""
        text = f"{self.file_id}: line {self.line_number}"
        for file_id, line_number in reversed(self.include_stack):
            text += f", included from {file_id}: line {line_number}"
        return text

    def to_dict(self) -> dict:
        return {
            "file": self.file_id,
            "line": self.line_number,
            "include_stack": [{"file": f, "line": n} for f, n in self.include_stack],
        }


@dataclass(frozen=True)
class SourceLine:
    text: str
    origin: SourceRef


def lines_from_text(text: str, file_id: str, parent: SourceRef | None = None) -> List[SourceLine]:
    """Split ``text`` into :class:`SourceLine` records numbered from 1.

    A trailing newline does not produce an empty last line. When ``parent``
    is given the refs are children of that include directive.
    """
    raw = split_lines(text)
    if parent is None:
        return [SourceLine(t, SourceRef(file_id, n)) for n, t in enumerate(raw, start=1)]
    return [SourceLine(t, parent.child(file_id, n)) for n, t in enumerate(raw, start=1)]


def split_lines(text: str) -> List[str]:
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class LinesView(Sequence[SourceLine]):
    """Read-only, restartable view over a buffer's current lines."""

    def __init__(self, lines: List[SourceLine]) -> None:
        self._lines = lines

    @overload
    def __getitem__(self, index: int) -> SourceLine: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[SourceLine]: ...

    def __getitem__(self, index):
        return self._lines[index]

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[SourceLine]:
        return iter(self._lines)


@dataclass
class DocumentBuffer:
    """Ordered, mutable sequence of :class:`SourceLine`.

    The only mutation is :meth:`replace`, so the order of ``lines`` always
    reflects the reading order of the document reduced so far.
    """

    lines: List[SourceLine] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str, file_id: str) -> "DocumentBuffer":
        return cls(lines_from_text(text, file_id))

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> SourceLine:
        return self.lines[index]

    def replace(self, start: int, end: int, new_lines: Iterable[SourceLine] = ()) -> int:
        """Remove ``[start, end)`` and insert ``new_lines`` at ``start``.

        Returns the number of lines inserted.
        """
        if not 0 <= start <= end <= len(self.lines):
            raise IndexError(f"invalid splice range [{start}, {end}) for buffer of {len(self.lines)} lines")
        inserted = list(new_lines)
        self.lines[start:end] = inserted
        return len(inserted)

    def current_lines(self) -> LinesView:
        return LinesView(self.lines)

    def text(self) -> str:
        """Joined text; non-empty output always ends with a newline."""
        if not self.lines:
            return ""
        return "\n".join(line.text for line in self.lines) + "\n"


__all__ = [
    "SourceRef",
    "SourceLine",
    "DocumentBuffer",
    "LinesView",
    "lines_from_text",
    "split_lines",
]
