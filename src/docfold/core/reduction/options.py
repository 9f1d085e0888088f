"""Per-call configuration bundle for a reduction."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from .attributes import AttributeEvaluator, AttributeSet
from .diagnostics import Severity
from .extensions import ExtensionRegistry
from .paths import SafeMode

EvaluatorFactory = Callable[[AttributeSet], AttributeEvaluator]


@dataclass
class ReductionOptions:
    """Options for one call to :func:`docfold.reduce`.

    Attributes:
        attributes: Attributes visible from the first line. Values set here
            are locked unless the name or value ends with ``@``; a None
            value locks the attribute as undefined.
        preserve_conditionals: Keep conditional directive lines and every
            branch instead of evaluating them.
        safe_mode: Containment policy for include paths.
        include_root: The one directory outside the jail that ``safe`` mode
            allows includes from.
        base_dir: Directory that relative includes of text or stream input
            resolve against (defaults to the working directory).
        max_include_depth: Deepest include nesting allowed.
        unresolved_placeholder: Replace an unresolved required include with
            an ``Unresolved directive`` line rather than nothing.
        failure_level: Lowest diagnostic severity that fails the reduction.
        missing_include_severity: Severity of a missing include target.
        jail_violation_severity: Severity of an include escaping the jail.
        log_threshold: Diagnostics below this severity are recorded but not
            logged.
        extensions: Hook registry for this call (None = global registry).
        evaluator_factory: Builds the attribute evaluator used by
            conditionals from the running attribute set.
        encoding: Default encoding for included files.
    """

    attributes: Dict[str, Any] = field(default_factory=dict)
    preserve_conditionals: bool = False
    safe_mode: SafeMode = SafeMode.UNSAFE
    include_root: Optional[Path] = None
    base_dir: Optional[Path] = None
    max_include_depth: int = 64
    unresolved_placeholder: bool = True
    failure_level: Severity = Severity.ERROR
    missing_include_severity: Severity = Severity.ERROR
    jail_violation_severity: Severity = Severity.ERROR
    log_threshold: Severity = Severity.DEBUG
    extensions: Optional[ExtensionRegistry] = None
    evaluator_factory: Optional[EvaluatorFactory] = None
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        self.safe_mode = SafeMode.parse(self.safe_mode)
        self.failure_level = Severity.parse(self.failure_level)
        self.missing_include_severity = Severity.parse(self.missing_include_severity)
        self.jail_violation_severity = Severity.parse(self.jail_violation_severity)
        self.log_threshold = Severity.parse(self.log_threshold)
        if self.include_root is not None:
            self.include_root = Path(self.include_root)
        if self.base_dir is not None:
            self.base_dir = Path(self.base_dir)
        if self.max_include_depth < 1:
            raise ValueError(f"max_include_depth must be positive: {self.max_include_depth}")

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **overrides: Any) -> "ReductionOptions":
        """Build options from a loaded configuration mapping.

        Only the ``reducer`` section is read. Keyword ``overrides`` win over
        configured values; ``attributes`` overrides are merged on top of the
        configured attributes instead of replacing them.
        """
        reducer = dict(config.get("reducer") or {})
        severity = reducer.get("severity") or {}
        values: Dict[str, Any] = {
            "attributes": dict(reducer.get("attributes") or {}),
            "preserve_conditionals": bool(reducer.get("preserve_conditionals", False)),
            "safe_mode": reducer.get("safe_mode", SafeMode.UNSAFE),
            "include_root": reducer.get("include_root"),
            "max_include_depth": int(reducer.get("max_include_depth", 64)),
            "unresolved_placeholder": bool(reducer.get("unresolved_placeholder", True)),
            "failure_level": reducer.get("failure_level", Severity.ERROR),
            "missing_include_severity": severity.get("missing_include", Severity.ERROR),
            "jail_violation_severity": severity.get("jail_violation", Severity.ERROR),
        }
        extra_attributes = overrides.pop("attributes", None)
        if extra_attributes:
            values["attributes"].update(extra_attributes)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "ReductionOptions":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise TypeError(f"unknown reduction option(s): {', '.join(unknown)}")
        return replace(self, **overrides)


__all__ = ["ReductionOptions", "EvaluatorFactory"]
