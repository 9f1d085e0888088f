"""Directive variants and the forward scanner that finds them.

Directives occupy a whole line. Anything that does not match one of the
fixed patterns exactly (including a directive escaped with a leading
backslash) is ordinary text.

Recognized forms:
- include::target[attrs]
- ifdef::name[] / ifdef::a,b[] (any) / ifdef::a+b[] (all) / ifdef::name[text]
- ifndef::... (same shapes as ifdef)
- ifeval::[lhs op rhs]
- endif::[] / endif::name[]

Attribute entries (``:name: value``) are reported too, so the caller can
keep the accumulated attribute set current while the scan moves forward.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from .buffer import DocumentBuffer


class MatchMode(str, Enum):
    SINGLE = "single"
    ANY = "any"  # names joined by ","
    ALL = "all"  # names joined by "+"


@dataclass(frozen=True)
class Directive:
    raw: str
    index: int


@dataclass(frozen=True)
class Include(Directive):
    target: str
    attrlist: str = ""


@dataclass(frozen=True)
class ConditionalDirective(Directive):
    keyword: str = ""
    target: str = ""
    text: Optional[str] = None


@dataclass(frozen=True)
class IfDef(ConditionalDirective):
    names: Tuple[str, ...] = ()
    mode: MatchMode = MatchMode.SINGLE


@dataclass(frozen=True)
class IfNDef(ConditionalDirective):
    names: Tuple[str, ...] = ()
    mode: MatchMode = MatchMode.SINGLE


@dataclass(frozen=True)
class IfEval(ConditionalDirective):
    @property
    def expression(self) -> Optional[str]:
        return self.text


@dataclass(frozen=True)
class EndIf(ConditionalDirective):
    pass


@dataclass(frozen=True)
class AttributeEntry:
    """``:name: value`` / ``:name!:`` line seen by the scanner."""

    raw: str
    index: int
    name: str
    value: Optional[str]

    @property
    def unset(self) -> bool:
        return self.value is None


ScanHit = Union[Include, IfDef, IfNDef, IfEval, EndIf, AttributeEntry]

_CONDITIONAL_TYPES = {"ifdef": IfDef, "ifndef": IfNDef, "ifeval": IfEval, "endif": EndIf}


@dataclass
class BlockEnd:
    """Result of skipping over an inactive conditional block."""

    index: Optional[int]
    problems: List[Tuple[int, str]] = field(default_factory=list)


class DirectiveScanner:
    """Find the next directive at or after a buffer index.

    The scanner tracks verbatim delimited blocks (listing, literal, comment,
    passthrough, fenced code) so that attribute entries inside them are not
    reported. Directives are reported everywhere.
    """

    INCLUDE_PATTERN = re.compile(r"^(\\)?include::([^\s\[](?:[^\[]*[^\s\[])?)\[(.+)?\]$")

    CONDITIONAL_PATTERN = re.compile(
        r"^(\\)?(ifdef|ifndef|ifeval|endif)::(\S*?(?:([,+])\S*?)?)\[(.+)?\]$"
    )

    ATTRIBUTE_ENTRY_PATTERN = re.compile(r"^:(!?\w[^:]*):(?:[ \t]+(.*))?$")

    VERBATIM_DELIMITER_PATTERN = re.compile(r"^(?:-{4,}|\.{4,}|/{4,}|\+{4,}|```)")

    def __init__(self) -> None:
        self._verbatim: Optional[str] = None

    @property
    def in_verbatim_block(self) -> bool:
        return self._verbatim is not None

    def scan(self, buffer: DocumentBuffer, start: int) -> Optional[ScanHit]:
        """Return the first directive or attribute entry at or after ``start``.

        Returns None when the end of the buffer is reached.
        """
        for index in range(start, len(buffer)):
            line = buffer[index].text.rstrip()
            hit = self.parse_directive(line, index)
            if hit is not None:
                return hit
            if self._track_verbatim(line):
                continue
            if self._verbatim is None and line.startswith(":"):
                entry = self.parse_attribute_entry(line, index)
                if entry is not None:
                    return entry
        return None

    def _track_verbatim(self, line: str) -> bool:
        if not self.VERBATIM_DELIMITER_PATTERN.match(line):
            return False
        if line.startswith("```"):
            delimiter = "```"
        elif len(set(line)) == 1:
            delimiter = line
        else:
            return False
        if self._verbatim is None:
            self._verbatim = delimiter
            return True
        if self._verbatim == delimiter:
            self._verbatim = None
            return True
        return False

    @classmethod
    def parse_directive(cls, line: str, index: int = 0) -> Optional[Directive]:
        """Parse ``line`` as a directive, or return None for ordinary text."""
        if "::" not in line or not line.endswith("]"):
            return None
        if line.startswith(("include::", "\\include::")):
            m = cls.INCLUDE_PATTERN.match(line)
            if m is None or m.group(1):
                return None
            return Include(raw=line, index=index, target=m.group(2), attrlist=m.group(3) or "")
        m = cls.CONDITIONAL_PATTERN.match(line)
        if m is None or m.group(1):
            return None
        keyword, target, delimiter, text = m.group(2), m.group(3), m.group(4), m.group(5)
        kind = _CONDITIONAL_TYPES[keyword]
        # Attribute names are case-insensitive.
        target = target.lower()
        if kind in (IfDef, IfNDef):
            if delimiter == ",":
                mode = MatchMode.ANY
            elif delimiter == "+":
                mode = MatchMode.ALL
            else:
                mode = MatchMode.SINGLE
            names = tuple(target.split(delimiter)) if delimiter else (target,)
            return kind(
                raw=line, index=index, keyword=keyword, target=target, text=text, names=names, mode=mode
            )
        return kind(raw=line, index=index, keyword=keyword, target=target, text=text)

    @classmethod
    def parse_attribute_entry(cls, line: str, index: int = 0) -> Optional[AttributeEntry]:
        m = cls.ATTRIBUTE_ENTRY_PATTERN.match(line)
        if m is None:
            return None
        name, value = m.group(1), m.group(2)
        if name.startswith("!"):
            return AttributeEntry(raw=line, index=index, name=name[1:].strip().lower(), value=None)
        if name.endswith("!"):
            return AttributeEntry(raw=line, index=index, name=name[:-1].strip().lower(), value=None)
        return AttributeEntry(raw=line, index=index, name=name.strip().lower(), value=(value or "").strip())

    def find_block_end(self, buffer: DocumentBuffer, open_index: int, open_target: str) -> BlockEnd:
        """Locate the ``endif`` closing the block opened at ``open_index``.

        Nested conditionals inside the block are matched by name but never
        evaluated. Includes inside the block are not expanded.
        """
        stack = [open_target]
        result = BlockEnd(index=None)
        for index in range(open_index + 1, len(buffer)):
            directive = self.parse_directive(buffer[index].text.rstrip(), index)
            if not isinstance(directive, ConditionalDirective):
                continue
            if isinstance(directive, EndIf):
                if directive.text is not None:
                    result.problems.append(
                        (index, f"malformed preprocessor directive - text not permitted: {directive.raw}")
                    )
                elif not directive.target or directive.target == stack[-1]:
                    stack.pop()
                    if not stack:
                        result.index = index
                        return result
                else:
                    result.problems.append(
                        (
                            index,
                            f"mismatched preprocessor directive: endif::{directive.target}[], "
                            f"expected endif::{stack[-1]}[]",
                        )
                    )
            elif isinstance(directive, IfEval):
                if not directive.target:
                    stack.append("")
            elif directive.target and directive.text is None:
                stack.append(directive.target)
        return result


__all__ = [
    "MatchMode",
    "Directive",
    "Include",
    "ConditionalDirective",
    "IfDef",
    "IfNDef",
    "IfEval",
    "EndIf",
    "AttributeEntry",
    "ScanHit",
    "BlockEnd",
    "DirectiveScanner",
]
