"""Shared helpers for docfold core modules."""
from .merge import deep_merge

__all__ = ["deep_merge"]
