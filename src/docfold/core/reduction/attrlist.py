"""Parse the bracketed attribute list of an include directive.

    include::chapter.adoc[lines="1..5,9",tag=intro,opts=optional]

Named entries are ``key=value`` pairs separated by commas; values may be
single- or double-quoted to contain commas. Entries without ``=`` are
positional and are stored under ``"$1"``, ``"$2"``... A positional entry
starting with ``%`` (``%optional``) adds options.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Set


def _split_top_level(text: str) -> List[str]:
    items: List[str] = []
    current = ""
    quote = ""
    escaped = False

    for char in text:
        if escaped:
            current += char
            escaped = False
        elif char == "\\" and quote:
            escaped = True
            current += char
        elif quote:
            current += char
            if char == quote:
                quote = ""
        elif char in "\"'" and (not current.strip() or current.rstrip().endswith("=")):
            # Quotes only open at the start of a value.
            quote = char
            current += char
        elif char == ",":
            items.append(current)
            current = ""
        else:
            current += char

    if current.strip() or items:
        items.append(current)
    return items


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        quote = value[0]
        return value[1:-1].replace("\\" + quote, quote)
    return value


def parse_attrlist(text: str) -> Dict[str, str]:
    """Parse ``text`` into a mapping of named and positional attributes."""
    attrs: Dict[str, str] = {}
    if not text or not text.strip():
        return attrs

    position = 0
    for item in _split_top_level(text):
        if not item.strip():
            continue
        key, sep, value = item.partition("=")
        if sep and key.strip() and not key.strip().startswith(("\"", "'")):
            attrs[key.strip().lower()] = _unquote(value)
            continue
        position += 1
        positional = _unquote(item)
        attrs[f"${position}"] = positional
        if positional.startswith("%"):
            existing = attrs.get("opts", "")
            added = ",".join(o for o in positional[1:].split("%") if o)
            attrs["opts"] = f"{existing},{added}" if existing else added
    return attrs


def option_set(attrs: Mapping[str, str]) -> Set[str]:
    """Options named by ``opts=``/``options=``/``%name`` entries."""
    options: Set[str] = set()
    for key in ("opts", "options"):
        raw = attrs.get(key)
        if raw:
            options.update(o.strip() for o in raw.split(",") if o.strip())
    return options


__all__ = ["parse_attrlist", "option_set"]
