"""Tests for the attribute set and the built-in expression evaluator."""
from __future__ import annotations

import pytest

from docfold import __version__
from docfold.core.exceptions import EvaluationError
from docfold.core.reduction.attributes import AttributeSet, ExpressionEvaluator
from docfold.core.reduction.directives import AttributeEntry


def entry(name, value):
    return AttributeEntry(raw=f":{name}:", index=0, name=name, value=value)


class TestFromOptions:
    def test_option_attributes_are_locked(self):
        """Document entries cannot override values passed in by the caller."""
        attrs = AttributeSet.from_options({"foo": "bar"})
        assert attrs.get("foo") == "bar"
        assert attrs.is_locked("foo")
        assert attrs.set("foo", "other") is False
        assert attrs.get("foo") == "bar"

    @pytest.mark.parametrize("options", [{"foo@": "bar"}, {"foo": "bar@"}])
    def test_trailing_at_makes_soft_default(self, options):
        attrs = AttributeSet.from_options(options)
        assert attrs.get("foo") == "bar"
        assert not attrs.is_locked("foo")
        assert attrs.set("foo", "doc") is True
        assert attrs.get("foo") == "doc"

    @pytest.mark.parametrize("options", [{"foo": None}, {"!foo": ""}, {"foo!": ""}])
    def test_locked_undefined(self, options):
        attrs = AttributeSet.from_options(options)
        assert "foo" not in attrs
        assert attrs.set("foo", "x") is False
        assert "foo" not in attrs

    def test_true_means_empty_value(self):
        assert AttributeSet.from_options({"flag": True}).get("flag") == ""

    def test_intrinsics(self):
        attrs = AttributeSet.from_options({}, {"docname": "index"})
        assert attrs.get("sp") == " "
        assert attrs.get("empty") == ""
        assert attrs.get("docfold-version") == __version__
        assert attrs.get("docname") == "index"

    def test_names_are_case_insensitive(self):
        attrs = AttributeSet.from_options({"Foo": "1"})
        assert "FOO" in attrs
        assert attrs.get("foo") == "1"


class TestSubstitute:
    @pytest.fixture
    def attrs(self):
        return AttributeSet({"x": "1", "name": "docs"})

    def test_replaces_references(self, attrs):
        sub = attrs.substitute("a{x}b/{name}")
        assert sub.text == "a1b/docs"
        assert sub.missing == ()

    def test_missing_reference_is_kept_by_default(self, attrs):
        sub = attrs.substitute("{nope}.adoc")
        assert sub.text == "{nope}.adoc"
        assert sub.missing == ("nope",)

    def test_drop_mode(self, attrs):
        assert attrs.substitute("{nope}.adoc", missing="drop").text == ".adoc"

    def test_document_setting_applies(self, attrs):
        attrs.set("attribute-missing", "drop")
        assert attrs.substitute("{nope}").text == ""

    def test_escaped_reference_is_literal(self, attrs):
        assert attrs.substitute("\\{x}").text == "{x}"


class TestApplyEntry:
    def test_value_is_substituted(self):
        attrs = AttributeSet({"x": "1"})
        assert attrs.apply_entry(entry("foo", "{x}y")) is True
        assert attrs.get("foo") == "1y"

    def test_unset(self):
        attrs = AttributeSet({"foo": "1"})
        attrs.apply_entry(entry("foo", None))
        assert "foo" not in attrs

    def test_locked_entry_is_ignored(self):
        attrs = AttributeSet.from_options({"foo": "cli"})
        assert attrs.apply_entry(entry("foo", "doc")) is False
        assert attrs.apply_entry(entry("foo", None)) is False
        assert attrs.get("foo") == "cli"


class TestExpressionEvaluator:
    @pytest.fixture
    def evaluator(self):
        return ExpressionEvaluator(AttributeSet({"n": "3", "s": "abc", "flag": ""}))

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("{n} > 2", True),
            ("{n} <= 2", False),
            ("{n} == 3", True),
            ('"{s}" == "abc"', True),
            ("'{s}' != 'abc'", False),
            ('"b" > "a"', True),
            ("1.5 < 2", True),
            ("true == true", True),
            ('"a" == 1', False),
            ('"a" != 1', True),
        ],
    )
    def test_evaluate(self, evaluator, expression, expected):
        assert evaluator.evaluate(expression) is expected

    def test_is_defined(self, evaluator):
        assert evaluator.is_defined("flag")
        assert not evaluator.is_defined("other")

    @pytest.mark.parametrize("expression", [None, "", "   "])
    def test_missing_expression(self, evaluator, expression):
        with pytest.raises(EvaluationError, match="missing expression"):
            evaluator.evaluate(expression)

    def test_invalid_expression(self, evaluator):
        with pytest.raises(EvaluationError, match="invalid expression") as excinfo:
            evaluator.evaluate("nonsense")
        assert excinfo.value.recoverable is False
