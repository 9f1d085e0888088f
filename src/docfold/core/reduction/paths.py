"""Include path resolution under the safe-mode containment policy.

Checks are lexical: paths are made absolute and normalized, symlinks are
not followed. Three policies:

- ``unsafe``: targets resolve anywhere
- ``safe``: targets must stay inside the jail, or inside ``include_root``
- ``strict``: no ``..`` segment at all, absolute targets must lie inside the jail
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

URI_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9.+-]*://")


class SafeMode(str, Enum):
    UNSAFE = "unsafe"
    SAFE = "safe"
    STRICT = "strict"

    @classmethod
    def parse(cls, value: Union["SafeMode", str]) -> "SafeMode":
        if isinstance(value, SafeMode):
            return value
        name = str(value).strip().lower()
        aliases = {"unconstrained": "unsafe", "jailed_with_escape": "safe", "secure": "strict"}
        try:
            return cls(aliases.get(name, name))
        except ValueError:
            raise ValueError(f"invalid safe mode: {value}") from None


def is_uri(target: str) -> bool:
    return URI_PATTERN.match(target) is not None


def normalize(path: Union[str, Path]) -> str:
    """Absolute, normalized path string used as a file identity."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def is_within(path: str, root: str) -> bool:
    if path == root:
        return True
    return path.startswith(root.rstrip(os.sep) + os.sep)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one include target.

    Exactly one of ``path`` and ``violation`` is set.
    """

    path: Optional[str] = None
    violation: Optional[str] = None


class PathJail:
    """Resolve include targets relative to the including file's directory."""

    def __init__(
        self,
        mode: Union[SafeMode, str] = SafeMode.UNSAFE,
        jail: Union[str, Path, None] = None,
        include_root: Union[str, Path, None] = None,
    ) -> None:
        self.mode = SafeMode.parse(mode)
        self.jail = normalize(jail if jail is not None else os.getcwd())
        self.include_root = normalize(include_root) if include_root is not None else None

    def resolve(self, target: str, base_dir: Union[str, Path]) -> Resolution:
        candidate = normalize(os.path.join(os.fspath(base_dir), target))
        if self.mode is SafeMode.UNSAFE:
            return Resolution(path=candidate)

        if self.mode is SafeMode.STRICT:
            segments = re.split(r"[/\\]", target)
            if ".." in segments:
                return Resolution(
                    violation=f"include file has illegal reference to ancestor of jail: {target}"
                )
            if is_within(candidate, self.jail):
                return Resolution(path=candidate)
            return Resolution(violation=f"include file is outside of jail: {target}")

        if is_within(candidate, self.jail):
            return Resolution(path=candidate)
        if self.include_root is not None and is_within(candidate, self.include_root):
            return Resolution(path=candidate)
        if os.path.isabs(target):
            return Resolution(violation=f"include file is outside of jail: {target}")
        return Resolution(violation=f"include file has illegal reference to ancestor of jail: {target}")


__all__ = ["SafeMode", "PathJail", "Resolution", "is_uri", "is_within", "normalize", "URI_PATTERN"]
