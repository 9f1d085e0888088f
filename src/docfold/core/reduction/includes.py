"""Include resolution for the reduction engine.

Handles:
- include::path[] - splice the whole file
- include::path[lines=...] / include::path[tag=...] - splice a selection
- include::path[opts=optional] - a missing file drops the directive quietly
- include::path[leveloffset=+1] - wrap the splice in leveloffset entries
- include::https://host/file[] - replaced by a link (no network access)

The resolver never raises for document problems. Each failure is recorded
as a diagnostic and the directive resolves to a replacement (possibly
empty) so the scan can continue.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .attributes import AttributeSet
from .attrlist import option_set, parse_attrlist
from .buffer import SourceLine, SourceRef, split_lines
from .diagnostics import Category, DiagnosticLog, Severity
from .directives import Include
from .extensions import ExtensionRegistry
from .options import ReductionOptions
from .paths import PathJail, is_uri
from . import selectors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncludeRequest:
    """An include directive after attribute substitution.

    Passed to include processors registered as extensions.
    """

    target: str
    attributes: Dict[str, str]
    ref: SourceRef
    directive: Include
    attributes_in_scope: Dict[str, str] = field(default_factory=dict)

    @property
    def optional(self) -> bool:
        return "optional" in option_set(self.attributes)


class IncludeResolver:
    """Resolve include directives to the lines that replace them.

    One resolver serves one reduction: it remembers the directory of every
    file it has read so nested relative includes resolve against the file
    that contains them.
    """

    def __init__(
        self,
        options: ReductionOptions,
        diagnostics: DiagnosticLog,
        registry: ExtensionRegistry,
        jail: PathJail,
        root_id: str,
        root_dir: str,
    ) -> None:
        self.options = options
        self.diagnostics = diagnostics
        self.registry = registry
        self.jail = jail
        self._dirs: Dict[str, str] = {root_id: root_dir}
        self._root_dir = root_dir

    def base_dir(self, ref: SourceRef) -> str:
        return self._dirs.get(ref.file_id, self._root_dir)

    def resolve(self, directive: Include, ref: SourceRef, attributes: AttributeSet) -> List[SourceLine]:
        """Return the lines that replace the directive line at ``ref``."""
        target = directive.target
        attrlist = directive.attrlist
        missing_mode = attributes.get("attribute-missing") or "skip"

        if "{" in target or "{" in attrlist:
            mode = "drop" if missing_mode == "drop" else "skip"
            target_sub = attributes.substitute(target, missing=mode)
            attrlist_sub = attributes.substitute(attrlist, missing=mode)
            if (target_sub.missing or attrlist_sub.missing) and missing_mode in ("drop-line", "warn"):
                severity = Severity.WARNING if missing_mode == "warn" else Severity.INFO
                self.diagnostics.emit(
                    severity,
                    f"include dropped due to missing attribute: include::{target}[{attrlist}]",
                    ref,
                )
                return []
            target, attrlist = target_sub.text.strip(), attrlist_sub.text

        if not target:
            self.diagnostics.emit(
                Severity.WARNING,
                f"include dropped due to missing attribute: include::{directive.target}[{directive.attrlist}]",
                ref,
            )
            return []

        attrs = parse_attrlist(attrlist)
        request = IncludeRequest(target, attrs, ref, directive, attributes.snapshot())

        if ref.depth + 1 > self.options.max_include_depth:
            self.diagnostics.structural(
                f"maximum include depth of {self.options.max_include_depth} exceeded", ref
            )
            return self._unresolved(request)

        for processor in self.registry.claim(target):
            supplied = processor.process(request)
            if supplied is not None:
                logger.debug("include %s supplied by extension %s", target, processor.name)
                self._dirs.setdefault(target, self.base_dir(ref))
                lines = [SourceLine(str(text), ref.child(target, n)) for n, text in enumerate(supplied, start=1)]
                return self._wrap_leveloffset(lines, attrs, ref, attributes)

        if is_uri(target):
            return [SourceLine(f"link:{target}[role=include]", ref)]

        resolution = self.jail.resolve(target, self.base_dir(ref))
        path = resolution.path
        if path is None:
            self.diagnostics.emit(
                self.options.jail_violation_severity, str(resolution.violation), ref, Category.RESOLUTION
            )
            return self._unresolved(request)

        if path in ref.lineage():
            self.diagnostics.structural(f"circular include detected: {target}", ref)
            return self._unresolved(request)

        if not os.path.isfile(path):
            if request.optional:
                self.diagnostics.emit(
                    Severity.INFO, f"optional include dropped because include file not found: {path}", ref
                )
                return []
            self.diagnostics.emit(
                self.options.missing_include_severity,
                f"include file not found: {path}",
                ref,
                Category.RESOLUTION,
            )
            return self._unresolved(request)

        encoding = attrs.get("encoding") or self.options.encoding
        try:
            with open(path, "r", encoding=encoding, newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError, LookupError) as exc:
            self.diagnostics.emit(
                self.options.missing_include_severity,
                f"include file not readable: {path} ({exc})",
                ref,
                Category.RESOLUTION,
            )
            return self._unresolved(request)

        self._dirs[path] = os.path.dirname(path)
        selection = selectors.select(split_lines(text), attrs, path)
        for warning in selection.warnings:
            self.diagnostics.emit(Severity.WARNING, warning, ref)

        lines = [SourceLine(line, ref.child(path, n)) for n, line in selection.lines]
        logger.debug("included %s (%d lines)", path, len(lines))
        return self._wrap_leveloffset(lines, attrs, ref, attributes)

    def _wrap_leveloffset(
        self,
        lines: List[SourceLine],
        attrs: Dict[str, str],
        ref: SourceRef,
        attributes: AttributeSet,
    ) -> List[SourceLine]:
        offset = attrs.get("leveloffset")
        if not offset or not lines:
            return lines
        previous: Optional[str] = attributes.get("leveloffset")
        restore = f":leveloffset: {previous}" if previous is not None else ":leveloffset!:"
        return [SourceLine(f":leveloffset: {offset}", ref), *lines, SourceLine(restore, ref)]

    def _unresolved(self, request: IncludeRequest) -> List[SourceLine]:
        if not self.options.unresolved_placeholder:
            return []
        text = (
            f"Unresolved directive in {request.ref.basename} - "
            f"include::{request.target}[{request.directive.attrlist}]"
        )
        return [SourceLine(text, request.ref)]


__all__ = ["IncludeRequest", "IncludeResolver"]
