from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping

if TYPE_CHECKING:
    from docfold.core.reduction.diagnostics import Diagnostic
    from docfold.core.reduction.result import ReductionResult


class DocfoldError(Exception):
    """Base exception for docfold."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigError(DocfoldError, ValueError):
    """Raised when configuration cannot be loaded or fails schema validation."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        DocfoldError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class ExtensionLoadError(DocfoldError, ImportError):
    """Raised when an extension module requested with ``-r`` cannot be imported."""

    def __init__(self, name: str, *, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        ctx["name"] = name
        DocfoldError.__init__(self, f"'{name}' could not be required", context=ctx)
        ImportError.__init__(self, f"'{name}' could not be required")


class EvaluationError(DocfoldError):
    """Raised by an attribute evaluator when an expression cannot be evaluated.

    A recoverable error only falsifies the guarded region; a non-recoverable
    one is reported as a fatal structural problem.
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.recoverable = recoverable


class ReductionFailed(DocfoldError):
    """Raised when a reduction ends with at least one fatal diagnostic.

    The best-effort result is still attached so callers can inspect the
    flattened lines and the complete diagnostic list.
    """

    def __init__(self, diagnostic: "Diagnostic", result: "ReductionResult") -> None:
        super().__init__(
            diagnostic.message,
            context={"location": diagnostic.ref.describe(), "severity": diagnostic.severity.label},
        )
        self.diagnostic = diagnostic
        self.result = result


__all__ = [
    "DocfoldError",
    "ConfigError",
    "ExtensionLoadError",
    "EvaluationError",
    "ReductionFailed",
]
