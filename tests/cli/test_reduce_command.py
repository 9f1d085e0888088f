"""Tests for ``docfold [reduce] FILE``."""
from __future__ import annotations

import io
import json

import pytest

from docfold.cli._dispatcher import main


@pytest.fixture
def project(isolated_project_env, docs):
    docs.write("index.adoc", "before\ninclude::child.adoc[]\nafter\n")
    docs.write("child.adoc", "child\n")
    return docs


class TestReduce:
    def test_reduces_to_stdout(self, project, capsys):
        """The bare form is the reduce command."""
        assert main(["index.adoc"]) == 0
        out, err = capsys.readouterr()
        assert out == "before\nchild\nafter\n"
        assert err == ""

    def test_explicit_command(self, project, capsys):
        assert main(["reduce", "index.adoc"]) == 0
        assert capsys.readouterr().out == "before\nchild\nafter\n"

    def test_output_file(self, project, capsys):
        assert main(["index.adoc", "-o", "build/book.adoc"]) == 0
        assert capsys.readouterr().out == ""
        assert (project.root / "build" / "book.adoc").read_text(encoding="utf-8") == "before\nchild\nafter\n"

    def test_output_dash_is_stdout(self, project, capsys):
        assert main(["index.adoc", "-o", "-"]) == 0
        assert capsys.readouterr().out == "before\nchild\nafter\n"

    def test_output_directory_fails(self, project, capsys):
        assert main(["index.adoc", "-o", str(project.root)]) == 1
        assert "docfold: output is a directory" in capsys.readouterr().err

    def test_stdin(self, isolated_project_env, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("ifdef::x[]\nhidden\nendif::[]\nshown\n"))
        assert main(["-"]) == 0
        assert capsys.readouterr().out == "shown\n"

    def test_missing_input_file(self, isolated_project_env, capsys):
        assert main(["absent.adoc"]) == 1
        assert capsys.readouterr().err.startswith("docfold: cannot read input:")


class TestAttributes:
    def test_attribute_flag(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "ifdef::flag[]\nyes\nendif::[]\n")
        assert main(["-a", "flag", "index.adoc"]) == 0
        assert capsys.readouterr().out == "yes\n"

    def test_attribute_value(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", 'ifeval::["{env}" == "ci"]\nci only\nendif::[]\n')
        assert main(["index.adoc", "-a", "env=ci"]) == 0
        assert capsys.readouterr().out == "ci only\n"

    def test_attribute_locks_document_entry(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", ":flag!:\nifdef::flag[]\nyes\nendif::[]\n")
        assert main(["index.adoc", "--attribute", "flag"]) == 0
        assert capsys.readouterr().out == ":flag!:\nyes\n"

    def test_preserve_conditionals(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "ifdef::flag[]\nyes\nendif::[]\n")
        assert main(["--preserve-conditionals", "index.adoc"]) == 0
        assert capsys.readouterr().out == "ifdef::flag[]\nyes\nendif::[]\n"


class TestDiagnostics:
    @pytest.fixture
    def broken(self, isolated_project_env, docs):
        docs.write("index.adoc", "include::no-such-file.adoc[]\nafter\n")
        return docs

    def test_missing_include_is_reported_but_not_fatal(self, broken, capsys):
        assert main(["index.adoc"]) == 0
        out, err = capsys.readouterr()
        assert out == "Unresolved directive in index.adoc - include::no-such-file.adoc[]\nafter\n"
        assert err.startswith("docfold: ERROR: ")
        assert "include file not found" in err

    def test_log_level_hides_messages(self, broken, capsys):
        assert main(["index.adoc", "--log-level", "fatal"]) == 0
        assert capsys.readouterr().err == ""

    def test_quiet(self, broken, capsys):
        assert main(["-q", "index.adoc"]) == 0
        assert capsys.readouterr().err == ""

    def test_failure_level(self, broken, capsys):
        assert main(["index.adoc", "--failure-level", "error"]) == 1
        out, err = capsys.readouterr()
        assert out == ""
        assert "docfold: include file not found: " in err

    def test_optional_include_only_shown_at_info(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "include::nope.adoc[opts=optional]\n")
        assert main(["index.adoc"]) == 0
        assert capsys.readouterr().err == ""
        assert main(["index.adoc", "--log-level", "info"]) == 0
        assert "optional include dropped" in capsys.readouterr().err

    def test_structural_problem_fails(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "include::index.adoc[]\n")
        assert main(["index.adoc"]) == 1
        out, err = capsys.readouterr()
        assert out == ""
        assert "docfold: circular include detected: index.adoc" in err

    def test_safe_mode(self, isolated_project_env, docs, capsys):
        docs.write("secret.adoc", "secret\n")
        docs.write("docs/index.adoc", "include::../secret.adoc[]\n")
        assert main(["-S", "safe", "docs/index.adoc"]) == 0
        out, err = capsys.readouterr()
        assert out == "Unresolved directive in index.adoc - include::../secret.adoc[]\n"
        assert "illegal reference to ancestor of jail" in err

    def test_include_root(self, isolated_project_env, docs, capsys):
        docs.write("secret.adoc", "secret\n")
        docs.write("docs/index.adoc", "include::../secret.adoc[]\n")
        root = str(docs.root)
        assert main(["-S", "safe", "--include-root", root, "docs/index.adoc"]) == 0
        assert capsys.readouterr().out == "secret\n"


class TestConfiguration:
    def test_project_config(self, isolated_project_env, docs, capsys):
        docs.write(".docfold.yml", "cli:\n  failure_level: error\n")
        docs.write("index.adoc", "include::nope.adoc[]\n")
        assert main(["index.adoc"]) == 1

    def test_config_flag(self, isolated_project_env, docs, capsys):
        docs.write("strict.yml", "reducer:\n  safe_mode: strict\n")
        docs.write("secret.adoc", "secret\n")
        docs.write("docs/index.adoc", "include::../secret.adoc[]\n")
        assert main(["docs/index.adoc", "--config", "strict.yml"]) == 0
        assert "illegal reference to ancestor of jail" in capsys.readouterr().err

    def test_env_override(self, isolated_project_env, docs, monkeypatch, capsys):
        monkeypatch.setenv("DOCFOLD_LOGGING__LEVEL", "fatal")
        docs.write("index.adoc", "include::nope.adoc[]\n")
        assert main(["index.adoc"]) == 0
        assert capsys.readouterr().err == ""

    def test_invalid_config(self, isolated_project_env, docs, capsys):
        docs.write(".docfold.yml", "reducer:\n  safe_mode: nope\n")
        docs.write("index.adoc", "x\n")
        assert main(["index.adoc"]) == 1
        assert capsys.readouterr().err.startswith("docfold: Invalid configuration at reducer.safe_mode")


class TestRequire:
    def test_require_file(self, isolated_project_env, docs, capsys):
        docs.write(
            "banner.py",
            "def register(registry):\n"
            "    registry.preprocessor(lambda lines: ['// generated'] + lines)\n",
        )
        docs.write("index.adoc", "x\n")
        assert main(["-r", "./banner.py", "index.adoc"]) == 0
        assert capsys.readouterr().out == "// generated\nx\n"

    def test_comma_separated(self, isolated_project_env, docs, capsys):
        docs.write("one.py", "def register(registry):\n    registry.preprocessor(lambda lines: lines + ['one'])\n")
        docs.write("two.py", "def register(registry):\n    registry.preprocessor(lambda lines: lines + ['two'])\n")
        docs.write("index.adoc", "x\n")
        assert main(["-r", "one.py,two.py", "index.adoc"]) == 0
        assert capsys.readouterr().out == "x\none\ntwo\n"

    def test_missing_extension(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "x\n")
        assert main(["-r", "no_such_docfold_ext", "index.adoc"]) == 1
        out, err = capsys.readouterr()
        assert out == ""
        assert err == "docfold: 'no_such_docfold_ext' could not be required\n"


class TestJson:
    def test_success(self, project, capsys):
        assert main(["--json", "index.adoc"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "success"
        assert data["text"] == "before\nchild\nafter\n"
        assert data["diagnostics"] == []

    def test_output_file_summary(self, project, capsys):
        assert main(["--json", "index.adoc", "-o", "out.adoc"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["lines"] == 3
        assert data["output"].endswith("out.adoc")

    def test_failure(self, isolated_project_env, docs, capsys):
        docs.write("index.adoc", "endif::[]\n")
        assert main(["--json", "-q", "index.adoc"]) == 1
        data = json.loads(capsys.readouterr().err)
        assert data == {"error": "reduction_failed", "message": "unmatched preprocessor directive: endif::[]"}
