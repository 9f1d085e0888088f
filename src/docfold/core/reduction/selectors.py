"""Line and tag selection for include directives.

``lines=`` takes ranges separated by ``;`` or ``,`` (quote the value when
using commas): ``1..3;5;10..`` where an empty or negative end means "to
the end of the file".

``tag=``/``tags=`` select regions delimited in the target file by
``tag::name[]`` and ``end::name[]`` markers, usually inside comments.
``!name`` excludes a tag, ``*`` stands for every tag and ``**`` for every
line. The marker lines themselves are never selected.

When both are given, ``lines`` wins.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

TAG_DIRECTIVE_PATTERN = re.compile(r"\b(?:tag|(e)nd)::(\S+?)\[\](?=$|[ \r])")
DATA_DELIMITER_PATTERN = re.compile(r"[,;]")

LineRange = Tuple[int, Optional[int]]


@dataclass
class Selection:
    """Selected ``(line_number, text)`` pairs plus selection warnings."""

    lines: List[Tuple[int, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _to_int(raw: str) -> int:
    m = re.match(r"\s*[-+]?\d+", raw)
    return int(m.group(0)) if m else 0


def parse_line_ranges(value: str) -> List[LineRange]:
    """Parse a ``lines=`` value into inclusive ranges (None = open end)."""
    ranges: List[LineRange] = []
    for token in DATA_DELIMITER_PATTERN.split(value):
        token = token.strip()
        if not token:
            continue
        if ".." in token:
            start, _, end = token.partition("..")
            if not end.strip() or _to_int(end) < 0:
                ranges.append((_to_int(start), None))
            else:
                ranges.append((_to_int(start), _to_int(end)))
        else:
            number = _to_int(token)
            ranges.append((number, number))
    return ranges


def select_line_ranges(lines: List[str], ranges: List[LineRange]) -> Selection:
    selection = Selection()
    for number, text in enumerate(lines, start=1):
        for start, end in ranges:
            if number >= start and (end is None or number <= end):
                selection.lines.append((number, text))
                break
    return selection


def parse_tags(attrs: Mapping[str, str]) -> Optional[Dict[str, bool]]:
    """Build the ordered ``{tag: include?}`` mapping from ``tag``/``tags``."""
    if "tag" in attrs:
        tag = attrs["tag"].strip()
        if not tag or tag == "!":
            return None
        return {tag[1:]: False} if tag.startswith("!") else {tag: True}
    if "tags" in attrs:
        tags: Dict[str, bool] = {}
        for tag in DATA_DELIMITER_PATTERN.split(attrs["tags"]):
            tag = tag.strip()
            if not tag or tag == "!":
                continue
            if tag.startswith("!"):
                tags[tag[1:]] = False
            else:
                tags[tag] = True
        return tags or None
    return None


def select_tags(lines: List[str], tags: Mapping[str, bool], source: str) -> Selection:
    """Select the lines of ``lines`` covered by ``tags``.

    Args:
        lines: Every line of the target file
        tags: Ordered mapping from :func:`parse_tags`
        source: Target file name used in warnings

    Returns:
        Selection with the chosen lines and any tag warnings
    """
    tags = dict(tags)
    wildcard: Optional[bool] = None
    if "**" in tags:
        select = base_select = tags.pop("**")
        if "*" in tags:
            wildcard = tags.pop("*")
        elif not select and next(iter(tags.values()), None) is False:
            wildcard = True
    elif "*" in tags:
        if next(iter(tags)) == "*":
            wildcard = tags.pop("*")
            select = base_select = not wildcard
        else:
            select = base_select = False
            wildcard = tags.pop("*")
    else:
        select = base_select = True not in tags.values()

    selection = Selection()
    tag_stack: List[Tuple[str, bool, int]] = []
    active_tag: Optional[str] = None
    found = set()

    for number, text in enumerate(lines, start=1):
        m = TAG_DIRECTIVE_PATTERN.search(text) if "::" in text and "[]" in text else None
        if m is None:
            if select:
                selection.lines.append((number, text))
            continue

        this_tag = m.group(2)
        if m.group(1):
            if this_tag == active_tag:
                tag_stack.pop()
                if tag_stack:
                    active_tag, select = tag_stack[-1][0], tag_stack[-1][1]
                else:
                    active_tag, select = None, base_select
            elif this_tag in tags:
                idx = next((i for i in range(len(tag_stack) - 1, -1, -1) if tag_stack[i][0] == this_tag), None)
                if idx is not None:
                    del tag_stack[idx]
                    selection.warnings.append(
                        f"mismatched end tag (expected '{active_tag}' but found '{this_tag}') "
                        f"at line {number} of include file: {source}"
                    )
                else:
                    selection.warnings.append(
                        f"unexpected end tag '{this_tag}' at line {number} of include file: {source}"
                    )
        elif this_tag in tags:
            select = tags[this_tag]
            if select:
                found.add(this_tag)
            active_tag = this_tag
            tag_stack.append((this_tag, select, number))
        elif wildcard is not None:
            select = False if active_tag and not select else wildcard
            active_tag = this_tag
            tag_stack.append((this_tag, select, number))

    for name, _, number in tag_stack:
        selection.warnings.append(
            f"detected unclosed tag '{name}' starting at line {number} of include file: {source}"
        )

    missing = [name for name, wanted in tags.items() if wanted and name not in found]
    if missing:
        plural = "s" if len(missing) > 1 else ""
        selection.warnings.append(f"tag{plural} '{', '.join(missing)}' not found in include file: {source}")
    return selection


def select(lines: List[str], attrs: Mapping[str, str], source: str) -> Selection:
    """Apply the ``lines``/``tag``/``tags`` attributes of an include."""
    if attrs.get("lines"):
        ranges = parse_line_ranges(attrs["lines"])
        if ranges:
            return select_line_ranges(lines, ranges)
    tags = parse_tags(attrs)
    if tags:
        return select_tags(lines, tags, source)
    return Selection(lines=list(enumerate(lines, start=1)))


__all__ = [
    "Selection",
    "parse_line_ranges",
    "select_line_ranges",
    "parse_tags",
    "select_tags",
    "select",
    "TAG_DIRECTIVE_PATTERN",
]
