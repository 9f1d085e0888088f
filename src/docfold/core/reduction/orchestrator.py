"""Reduction orchestrator: the scan, resolve and splice loop.

The loop keeps one cursor into the :class:`DocumentBuffer`. Each step asks
the scanner for the next directive at or after the cursor and acts on it:

1. attribute entry  - update the attribute set, move past it
2. include          - replace the line with the resolved lines, rescan there
3. open conditional - active: drop the directive line and push a frame;
                      inactive: drop the whole block in one splice
4. endif            - pop the matching frame, drop the line

Rescanning at the splice point is what makes included content (and the
text of a single-line ``ifdef``) subject to reduction in turn. Lines the
cursor has passed are never scanned again.

With ``preserve_conditionals`` the markers and both branches stay in the
output and includes in either branch are expanded. Conditions are still
evaluated so that attribute entries are applied only along the branches a
normal reduction would keep.
"""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from docfold.core.exceptions import EvaluationError

from .attributes import AttributeSet, ExpressionEvaluator
from .buffer import DocumentBuffer, SourceLine, SourceRef
from .conditionals import ConditionalEvaluator, ConditionalFrame
from .diagnostics import Category, DiagnosticLog, Severity
from .directives import AttributeEntry, ConditionalDirective, DirectiveScanner, EndIf, IfDef, IfNDef, Include
from .extensions import ExtensionRegistry
from .includes import IncludeResolver
from .options import ReductionOptions
from .paths import PathJail
from .result import ReductionResult

logger = logging.getLogger(__name__)


class Reducer:
    """Reduce one document. Instances are single-use and never shared."""

    def __init__(
        self,
        options: ReductionOptions,
        registry: ExtensionRegistry,
        *,
        root_id: str,
        root_dir: str,
        jail_dir: Optional[str] = None,
        intrinsics: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.options = options
        self.registry = registry
        self.root_id = root_id
        self.diagnostics = DiagnosticLog(options.log_threshold)
        self.attributes = AttributeSet.from_options(options.attributes, intrinsics)
        if options.evaluator_factory is not None:
            evaluator = options.evaluator_factory(self.attributes)
        else:
            evaluator = ExpressionEvaluator(self.attributes)
        self.conditionals = ConditionalEvaluator(evaluator)
        self.scanner = DirectiveScanner()
        self.frames: List[ConditionalFrame] = []
        jail = PathJail(options.safe_mode, jail_dir or root_dir, options.include_root)
        self.includes = IncludeResolver(options, self.diagnostics, registry, jail, root_id, root_dir)

    def reduce(self, buffer: DocumentBuffer) -> ReductionResult:
        """Reduce ``buffer`` in place and return the result."""
        cursor = 0
        while True:
            hit = self.scanner.scan(buffer, cursor)
            if hit is None:
                break
            index = hit.index
            ref = buffer[index].origin
            if isinstance(hit, AttributeEntry):
                if not self._branch_active():
                    logger.debug("inside an inactive branch; ignoring %s", hit.raw)
                elif not self.attributes.apply_entry(hit):
                    logger.debug("attribute %s is locked; ignoring %s", hit.name, hit.raw)
                cursor = index + 1
            elif isinstance(hit, Include):
                buffer.replace(index, index + 1, self.includes.resolve(hit, ref, self.attributes))
                cursor = index
            elif isinstance(hit, EndIf):
                cursor = self._close(buffer, hit, ref)
            else:
                cursor = self._open(buffer, hit, ref)

        for frame in self.frames:
            self.diagnostics.structural(
                f"detected unterminated preprocessor conditional directive: {frame.directive.raw}",
                frame.ref or SourceRef(self.root_id, 1),
            )

        return ReductionResult(
            file_id=self.root_id,
            lines=list(buffer.current_lines()),
            diagnostics=self.diagnostics.snapshot(),
            failure_level=self.options.failure_level,
            attributes=self.attributes.snapshot(),
        )

    def _close(self, buffer: DocumentBuffer, directive: EndIf, ref: SourceRef) -> int:
        index = directive.index
        problem = self.conditionals.close(self.frames, directive)
        if problem is not None:
            self.diagnostics.structural(problem, ref)
        if self.options.preserve_conditionals:
            return index + 1
        buffer.replace(index, index + 1)
        return index

    def _branch_active(self) -> bool:
        return not self.frames or self.frames[-1].active

    def _decide(self, directive: ConditionalDirective, ref: SourceRef) -> bool:
        try:
            return self.conditionals.evaluate(directive).active
        except EvaluationError as exc:
            self._evaluation_failed(exc, ref)
            return False

    def _open(self, buffer: DocumentBuffer, directive: ConditionalDirective, ref: SourceRef) -> int:
        index = directive.index
        single_line = isinstance(directive, (IfDef, IfNDef)) and directive.text is not None

        if self.options.preserve_conditionals:
            return self._open_preserved(buffer, directive, ref, single_line)

        active = self._decide(directive, ref)

        if single_line:
            replacement = [SourceLine(str(directive.text), ref)] if active else []
            buffer.replace(index, index + 1, replacement)
            return index

        if active:
            self.frames.append(ConditionalFrame(directive, active=True, ref=ref))
            buffer.replace(index, index + 1)
            return index

        end = self.scanner.find_block_end(buffer, index, directive.target)
        for problem_index, message in end.problems:
            self.diagnostics.structural(message, buffer[problem_index].origin)
        if end.index is None:
            self.diagnostics.structural(
                f"detected unterminated preprocessor conditional directive: {directive.raw}", ref
            )
            buffer.replace(index, len(buffer))
        else:
            buffer.replace(index, end.index + 1)
        return index

    def _open_preserved(
        self, buffer: DocumentBuffer, directive: ConditionalDirective, ref: SourceRef, single_line: bool
    ) -> int:
        """Keep the markers and both branches; only attribute entries follow the branch taken."""
        index = directive.index
        if single_line:
            if not isinstance(DirectiveScanner.parse_directive(str(directive.text)), Include):
                return index + 1
            # Rewritten to block form so the include can be expanded between markers.
            open_marker = f"{directive.keyword}::{directive.target}[]"
            close_marker = f"endif::{directive.target}[]"
            buffer.replace(
                index,
                index + 1,
                [
                    SourceLine(open_marker, ref),
                    SourceLine(str(directive.text), ref),
                    SourceLine(close_marker, ref),
                ],
            )
            return index
        active = self._branch_active() and self._decide(directive, ref)
        self.frames.append(ConditionalFrame(directive, active=active, ref=ref))
        return index + 1

    def _evaluation_failed(self, exc: EvaluationError, ref: SourceRef) -> None:
        if exc.recoverable:
            self.diagnostics.emit(Severity.WARNING, str(exc), ref, Category.EVALUATION)
        else:
            self.diagnostics.emit(Severity.FATAL, str(exc), ref, Category.EVALUATION)


__all__ = ["Reducer"]
