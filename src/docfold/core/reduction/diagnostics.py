"""Diagnostics collected during a reduction.

Diagnostics never interrupt the scan. They are accumulated in a
:class:`DiagnosticLog`, mirrored to the ``docfold.reduction`` logger, and
judged once at the end against the configured failure level.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Iterator, List

from .buffer import SourceRef

logger = logging.getLogger("docfold.reduction")


class Severity(IntEnum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    FATAL = 50

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def log_level(self) -> int:
        return logging.CRITICAL if self is Severity.FATAL else int(self)

    @classmethod
    def parse(cls, value: "Severity | str") -> "Severity":
        if isinstance(value, Severity):
            return value
        name = str(value).strip().lower()
        if name == "warn":
            name = "warning"
        elif name == "critical":
            name = "fatal"
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"invalid severity: {value}") from None


class Category(str, Enum):
    """What kind of problem a diagnostic reports."""

    STRUCTURAL = "structural"  # cycles, unbalanced conditionals, malformed directives
    RESOLUTION = "resolution"  # missing files, jail violations
    EVALUATION = "evaluation"  # delegated attribute/expression failures
    NOTICE = "notice"  # tag selection warnings, dropped optional includes


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    ref: SourceRef
    category: Category = Category.NOTICE

    @property
    def always_fatal(self) -> bool:
        return self.category is Category.STRUCTURAL or (
            self.category is Category.EVALUATION and self.severity is Severity.FATAL
        )

    def is_fatal(self, failure_level: Severity) -> bool:
        return self.always_fatal or self.severity >= failure_level

    def format(self) -> str:
        return f"{self.ref.describe()}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.label,
            "category": self.category.value,
            "message": self.message,
            "location": self.ref.to_dict(),
        }


class DiagnosticLog:
    """Ordered diagnostic collection owned by one reduction."""

    def __init__(self, log_threshold: Severity = Severity.DEBUG) -> None:
        self._items: List[Diagnostic] = []
        self.log_threshold = log_threshold

    def emit(
        self,
        severity: Severity,
        message: str,
        ref: SourceRef,
        category: Category = Category.NOTICE,
    ) -> Diagnostic:
        diagnostic = Diagnostic(severity, message, ref, category)
        self._items.append(diagnostic)
        if severity >= self.log_threshold:
            logger.log(severity.log_level, "%s", diagnostic.format())
        return diagnostic

    def structural(self, message: str, ref: SourceRef) -> Diagnostic:
        return self.emit(Severity.FATAL, message, ref, Category.STRUCTURAL)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def snapshot(self) -> List[Diagnostic]:
        return list(self._items)


__all__ = ["Severity", "Category", "Diagnostic", "DiagnosticLog"]
