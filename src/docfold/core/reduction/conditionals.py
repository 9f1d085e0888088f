"""Condition evaluation for preprocessor conditionals.

Supported checks:
- ifdef::name[]      name is defined
- ifdef::a,b[]       any of the names is defined
- ifdef::a+b[]       all of the names are defined
- ifndef::...        the negations above (``a,b``: none defined; ``a+b``: not all defined)
- ifeval::[expr]     expression delegated to the attribute evaluator

Example usage:
    ifdef::backend-html5[]
    HTML-only content
    endif::[]

    ifeval::["{build}" == "release"]
    Release notes
    endif::[]
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from docfold.core.exceptions import EvaluationError

from .attributes import AttributeEvaluator
from .buffer import SourceRef
from .directives import ConditionalDirective, IfDef, IfEval, IfNDef, MatchMode


@dataclass
class ConditionalFrame:
    """One open conditional block.

    ``active`` is false when this block, or any block enclosing it, was
    decided false. Only preserved blocks can be inactive.
    """

    directive: ConditionalDirective
    active: bool
    ref: Optional[SourceRef] = None

    @property
    def target(self) -> str:
        return self.directive.target


@dataclass(frozen=True)
class Decision:
    active: bool


class ConditionalEvaluator:
    """Decide whether a conditional block is retained.

    Attribute questions go through the injected :class:`AttributeEvaluator`
    so the engine never needs a full document parser.
    """

    def __init__(self, evaluator: AttributeEvaluator) -> None:
        self.evaluator = evaluator

    def evaluate(self, directive: ConditionalDirective) -> Decision:
        """Evaluate an opening directive.

        Raises:
            EvaluationError: If the directive is malformed or its expression
                cannot be evaluated. ``recoverable`` is carried over from the
                delegate's error.
        """
        if isinstance(directive, IfEval):
            return self._evaluate_expression(directive)
        if isinstance(directive, (IfDef, IfNDef)):
            return self._evaluate_presence(directive)
        raise TypeError(f"not an opening conditional: {directive.raw}")

    def _evaluate_presence(self, directive: IfDef | IfNDef) -> Decision:
        if not directive.target:
            raise EvaluationError(
                f"malformed preprocessor directive - missing target: {directive.raw}"
            )
        defined: List[bool] = [self.evaluator.is_defined(name) for name in directive.names]
        if isinstance(directive, IfDef):
            if directive.mode is MatchMode.ALL:
                active = all(defined)
            else:
                active = any(defined)
        else:
            if directive.mode is MatchMode.ALL:
                active = not all(defined)
            else:
                active = not any(defined)
        return Decision(active=active)

    def _evaluate_expression(self, directive: IfEval) -> Decision:
        if directive.target:
            raise EvaluationError(
                f"malformed preprocessor directive - target not permitted: {directive.raw}"
            )
        try:
            result = self.evaluator.evaluate(directive.expression)
        except EvaluationError as exc:
            raise EvaluationError(
                f"malformed preprocessor directive - {exc}: {directive.raw}",
                recoverable=exc.recoverable,
            ) from exc
        return Decision(active=bool(result))

    def close(self, frames: List[ConditionalFrame], directive: ConditionalDirective) -> Optional[str]:
        """Pop the frame closed by an ``endif`` directive.

        Returns an error message instead of popping when the directive does
        not close the innermost frame.
        """
        if directive.text is not None:
            return f"malformed preprocessor directive - text not permitted: {directive.raw}"
        if not frames:
            return f"unmatched preprocessor directive: endif::{directive.target}[]"
        top = frames[-1]
        if directive.target and directive.target != top.target:
            return f"mismatched preprocessor directive: endif::{directive.target}[], expected endif::{top.target}[]"
        frames.pop()
        return None


__all__ = ["ConditionalFrame", "ConditionalEvaluator", "Decision"]
