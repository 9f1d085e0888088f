"""Document attributes and the evaluation capability used by conditionals.

The reduction engine only needs a narrow view of attribute semantics:

- is an attribute currently defined?
- substitute ``{name}`` references in a piece of text
- evaluate an ``ifeval`` expression to a boolean

:class:`AttributeEvaluator` names that capability; :class:`ExpressionEvaluator`
is the built-in implementation over an :class:`AttributeSet`. A caller can
supply a different evaluator through ``ReductionOptions.evaluator_factory``.
"""
from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Protocol, Set, Tuple

from docfold import __version__
from docfold.core.exceptions import EvaluationError

from .directives import AttributeEntry

INTRINSIC_ATTRIBUTES: Dict[str, str] = {
    "empty": "",
    "sp": " ",
    "nbsp": "&#160;",
    "zwsp": "&#8203;",
    "docfold-version": __version__,
}

ATTRIBUTE_REFERENCE_PATTERN = re.compile(r"(\\)?\{(\w[\w-]*)\}")


@dataclass(frozen=True)
class Substitution:
    text: str
    missing: Tuple[str, ...] = ()


class AttributeSet:
    """Accumulated attribute values at the current scan position.

    Attributes passed in through options are locked: document entries
    cannot redefine or unset them. A trailing ``@`` on the option name or
    value makes it a soft default instead.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None, locked: Optional[Set[str]] = None) -> None:
        self._values: Dict[str, str] = dict(values or {})
        self._locked: Set[str] = set(locked or ())

    @classmethod
    def from_options(
        cls,
        attributes: Optional[Mapping[str, Any]] = None,
        intrinsics: Optional[Mapping[str, str]] = None,
    ) -> "AttributeSet":
        attrs = cls(dict(INTRINSIC_ATTRIBUTES))
        for name, value in (intrinsics or {}).items():
            attrs._values[name] = value
        for raw_name, raw_value in (attributes or {}).items():
            name = str(raw_name).strip().lower()
            soft = False
            if name.endswith("@"):
                name, soft = name[:-1], True
            unset = raw_value is None or raw_value is False
            if name.startswith("!"):
                name, unset = name[1:], True
            elif name.endswith("!"):
                name, unset = name[:-1], True
            if unset:
                attrs._values.pop(name, None)
            else:
                value = "" if raw_value is True else str(raw_value)
                if value.endswith("@"):
                    value, soft = value[:-1], True
                attrs._values[name] = value
            if not soft:
                attrs._locked.add(name)
        return attrs

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(name.lower(), default)

    def is_locked(self, name: str) -> bool:
        return name.lower() in self._locked

    def set(self, name: str, value: str) -> bool:
        """Define ``name`` from a document entry; returns False when locked."""
        name = name.lower()
        if name in self._locked:
            return False
        self._values[name] = value
        return True

    def unset(self, name: str) -> bool:
        name = name.lower()
        if name in self._locked:
            return False
        self._values.pop(name, None)
        return True

    def apply_entry(self, entry: AttributeEntry) -> bool:
        if entry.unset:
            return self.unset(entry.name)
        value = entry.value or ""
        if "{" in value:
            value = self.substitute(value).text
        return self.set(entry.name, value)

    def substitute(self, text: str, missing: Optional[str] = None) -> Substitution:
        """Replace ``{name}`` references with attribute values.

        ``missing`` overrides the document's ``attribute-missing`` setting
        for this call. ``\\{name}`` produces a literal ``{name}``.
        """
        mode = missing or self._values.get("attribute-missing") or "skip"
        unresolved = []

        def replace(m: re.Match[str]) -> str:
            if m.group(1):
                return m.group(0)[1:]
            name = m.group(2).lower()
            if name in self._values:
                return self._values[name]
            unresolved.append(name)
            return "" if mode == "drop" else m.group(0)

        result = ATTRIBUTE_REFERENCE_PATTERN.sub(replace, text)
        return Substitution(result, tuple(unresolved))

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)


class AttributeEvaluator(Protocol):
    """Capability the reduction engine delegates attribute questions to."""

    def is_defined(self, name: str) -> bool: ...

    def substitute(self, text: str, missing: Optional[str] = None) -> Substitution: ...

    def evaluate(self, expression: Optional[str]) -> bool: ...


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_INT_PREFIX = re.compile(r"^\s*[-+]?\d+")
_FLOAT_PREFIX = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ExpressionEvaluator:
    """Built-in :class:`AttributeEvaluator` over an :class:`AttributeSet`.

    ``ifeval`` expressions have the form ``LHS OP RHS``. Quoted operands are
    strings (after attribute substitution); unquoted operands are coerced to
    None, booleans, floats or integers.
    """

    EXPRESSION_PATTERN = re.compile(r"^(.+?) *([=!><]=|[><]) *(.+)$")

    def __init__(self, attributes: AttributeSet) -> None:
        self.attributes = attributes

    def is_defined(self, name: str) -> bool:
        return name in self.attributes

    def substitute(self, text: str, missing: Optional[str] = None) -> Substitution:
        return self.attributes.substitute(text, missing)

    def evaluate(self, expression: Optional[str]) -> bool:
        """Evaluate ``expression``.

        Raises:
            EvaluationError: If the expression is missing or does not parse
        """
        if expression is None or not expression.strip():
            raise EvaluationError("missing expression")
        m = self.EXPRESSION_PATTERN.match(expression.strip())
        if m is None:
            raise EvaluationError("invalid expression")
        lhs = self.resolve_value(m.group(1))
        rhs = self.resolve_value(m.group(3))
        op = m.group(2)
        if type(lhs) is not type(rhs) and not (_is_number(lhs) and _is_number(rhs)):
            # Values of different kinds are never equal and never ordered.
            return op == "!="
        try:
            return bool(_OPERATORS[op](lhs, rhs))
        except TypeError:
            return False

    def resolve_value(self, raw: str) -> Any:
        val = raw.strip()
        quoted = len(val) >= 2 and val[0] == val[-1] and val[0] in "\"'"
        if quoted:
            val = val[1:-1]
        if "{" in val:
            val = self.attributes.substitute(val, missing="drop").text
        if quoted:
            return val
        if val == "":
            return None
        if val == "true":
            return True
        if val == "false":
            return False
        if not val.strip():
            return " "
        if "." in val:
            m = _FLOAT_PREFIX.match(val)
            return float(m.group(0)) if m else 0.0
        m = _INT_PREFIX.match(val)
        return int(m.group(0)) if m else 0


__all__ = [
    "AttributeSet",
    "AttributeEvaluator",
    "ExpressionEvaluator",
    "Substitution",
    "INTRINSIC_ATTRIBUTES",
]
