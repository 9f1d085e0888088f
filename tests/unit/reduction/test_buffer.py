"""Tests for the line buffer and provenance records."""
from __future__ import annotations

import pytest

from docfold.core.reduction.buffer import (
    DocumentBuffer,
    SourceLine,
    SourceRef,
    lines_from_text,
    split_lines,
)


class TestSplitLines:
    def test_trailing_newline_does_not_add_a_line(self):
        """A final newline terminates the last line instead of starting a new one."""
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_crlf_is_stripped(self):
        assert split_lines("a\r\nb\r\n") == ["a", "b"]

    def test_bom_is_dropped(self):
        assert split_lines("\ufefftitle\n") == ["title"]

    def test_empty_text_has_no_lines(self):
        assert split_lines("") == []

    def test_blank_line_is_kept(self):
        assert split_lines("\n") == [""]
        assert split_lines("a\n\nb") == ["a", "", "b"]


class TestSourceRef:
    def test_root_ref_has_no_depth(self):
        ref = SourceRef("index.adoc", 3)
        assert ref.depth == 0
        assert ref.lineage() == ("index.adoc",)

    def test_child_extends_include_stack(self):
        """A child ref records the directive that included it."""
        child = SourceRef("a.adoc", 5).child("b.adoc", 1)
        assert child.include_stack == (("a.adoc", 5),)
        assert child.depth == 1
        assert child.lineage() == ("a.adoc", "b.adoc")

    def test_describe_lists_innermost_first(self):
        ref = SourceRef("a.adoc", 5).child("b.adoc", 7).child("c.adoc", 2)
        assert ref.describe() == (
            "c.adoc: line 2, included from b.adoc: line 7, included from a.adoc: line 5"
        )

    def test_basename(self):
        assert SourceRef("/docs/chapters/one.adoc", 1).basename == "one.adoc"
        assert SourceRef("<stdin>", 1).basename == "<stdin>"

    def test_to_dict(self):
        ref = SourceRef("a.adoc", 5).child("b.adoc", 1)
        assert ref.to_dict() == {
            "file": "b.adoc",
            "line": 1,
            "include_stack": [{"file": "a.adoc", "line": 5}],
        }


class TestLinesFromText:
    def test_numbered_from_one(self):
        lines = lines_from_text("x\ny\n", "f.adoc")
        assert [(l.text, l.origin.line_number) for l in lines] == [("x", 1), ("y", 2)]

    def test_parent_makes_child_refs(self):
        parent = SourceRef("root.adoc", 4)
        lines = lines_from_text("x\n", "child.adoc", parent)
        assert lines[0].origin == SourceRef("child.adoc", 1, (("root.adoc", 4),))


class TestDocumentBuffer:
    @pytest.fixture
    def buffer(self):
        return DocumentBuffer.from_text("1\n2\n3\n", "r.adoc")

    def test_replace_splices_lines(self, buffer):
        """Replacing one line with another keeps the surrounding order."""
        ref = SourceRef("other.adoc", 1)
        inserted = buffer.replace(1, 2, [SourceLine("x", ref)])
        assert inserted == 1
        assert [line.text for line in buffer.current_lines()] == ["1", "x", "3"]

    def test_replace_can_insert_and_delete(self, buffer):
        buffer.replace(0, 0, [SourceLine("0", SourceRef("r.adoc", 0))])
        buffer.replace(2, 4)
        assert [line.text for line in buffer.current_lines()] == ["0", "1"]

    def test_replace_rejects_bad_range(self, buffer):
        with pytest.raises(IndexError):
            buffer.replace(2, 5)
        with pytest.raises(IndexError):
            buffer.replace(2, 1)

    def test_current_lines_is_restartable(self, buffer):
        view = buffer.current_lines()
        assert [l.text for l in view] == [l.text for l in view]
        assert len(view) == 3
        assert view[0].origin.line_number == 1

    def test_text_ends_with_newline(self, buffer):
        assert buffer.text() == "1\n2\n3\n"
        assert DocumentBuffer().text() == ""
