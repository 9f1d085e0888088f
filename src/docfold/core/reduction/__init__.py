"""Reduction engine: include expansion, conditionals and provenance.

Public surface:
- :func:`reduce` / :func:`reduce_file` - library entry points
- :class:`ReductionOptions` - per-call configuration bundle
- :class:`ReductionResult` - flattened lines, source map and diagnostics
- :class:`ExtensionRegistry` - include processors, pre- and postprocessors
"""
from __future__ import annotations

from .api import STDIN_ID, reduce, reduce_file
from .attributes import AttributeEvaluator, AttributeSet, ExpressionEvaluator
from .buffer import DocumentBuffer, SourceLine, SourceRef
from .diagnostics import Category, Diagnostic, Severity
from .extensions import ExtensionRegistry, IncludeProcessor, global_registry, load_extension, register_include_processor
from .includes import IncludeRequest
from .options import ReductionOptions
from .orchestrator import Reducer
from .paths import SafeMode
from .result import ReductionResult

__all__ = [
    "reduce",
    "reduce_file",
    "STDIN_ID",
    "ReductionOptions",
    "ReductionResult",
    "Reducer",
    "SourceRef",
    "SourceLine",
    "DocumentBuffer",
    "Diagnostic",
    "Severity",
    "Category",
    "SafeMode",
    "AttributeSet",
    "AttributeEvaluator",
    "ExpressionEvaluator",
    "ExtensionRegistry",
    "IncludeProcessor",
    "IncludeRequest",
    "global_registry",
    "register_include_processor",
    "load_extension",
]
