"""Test helper modules for the docfold test suite.

- documents: DocumentTree for writing document trees, result inspection helpers
"""
from __future__ import annotations

from helpers.documents import DocumentTree, messages, origins

__all__ = ["DocumentTree", "messages", "origins"]
