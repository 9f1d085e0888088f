"""Output sinks for reduced documents."""
from __future__ import annotations

from .writer import OutputWriter, is_null_target

__all__ = ["OutputWriter", "is_null_target"]
