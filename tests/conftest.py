import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'docfold' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from docfold.core.reduction import global_registry
from docfold.core.stdlib_logging import reset_logging_for_tests
from helpers.documents import DocumentTree


@pytest.fixture(autouse=True)
def _isolate_docfold_state(monkeypatch):
    """Drop DOCFOLD_* overrides and undo process-wide registrations."""
    for key in list(os.environ):
        if key.startswith("DOCFOLD_"):
            monkeypatch.delenv(key, raising=False)
    yield
    global_registry.clear()
    reset_logging_for_tests()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch):
    """Run the test from an empty project directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def docs(tmp_path) -> DocumentTree:
    """Writer for small document trees under tmp_path."""
    return DocumentTree(tmp_path)
