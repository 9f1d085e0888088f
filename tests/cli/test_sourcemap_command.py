"""Tests for ``docfold sourcemap FILE``."""
from __future__ import annotations

import json
import os

import pytest
import yaml

from docfold.cli._dispatcher import main


@pytest.fixture
def project(isolated_project_env, docs):
    docs.write("index.adoc", "before\ninclude::child.adoc[]\nafter\n")
    docs.write("child.adoc", "child\n")
    return docs


class TestSourcemap:
    def test_json(self, project, capsys):
        assert main(["sourcemap", "index.adoc"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["ok"] is True
        assert data["file"] == project.path("index.adoc")
        assert [line["text"] for line in data["lines"]] == ["before", "child", "after"]
        child = data["lines"][1]
        assert child["number"] == 2
        assert child["origin"] == {
            "file": project.path("child.adoc"),
            "line": 1,
            "include_stack": [{"file": project.path("index.adoc"), "line": 2}],
        }

    def test_yaml(self, project, capsys):
        assert main(["sourcemap", "index.adoc", "--format", "yaml"]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert os.path.basename(data["lines"][1]["origin"]["file"]) == "child.adoc"

    def test_output_file(self, project, capsys):
        assert main(["sourcemap", "index.adoc", "-o", "map.json"]) == 0
        data = json.loads((project.root / "map.json").read_text(encoding="utf-8"))
        assert len(data["lines"]) == 3

    def test_failed_reduction_still_prints_map(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "a\nendif::[]\n")
        assert main(["sourcemap", "-q", "index.adoc"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["ok"] is False
        assert data["diagnostics"][0]["category"] == "structural"

    def test_requires_document(self, isolated_project_env, capsys):
        assert main(["sourcemap"]) == 1
        out, err = capsys.readouterr()
        assert err == "docfold: Please specify a document to reduce.\n"
        assert out.startswith("usage: docfold sourcemap")
