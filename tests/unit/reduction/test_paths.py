"""Tests for safe-mode include path resolution."""
from __future__ import annotations

import os

import pytest

from docfold.core.reduction.paths import PathJail, SafeMode, is_uri, is_within, normalize


@pytest.fixture
def layout(tmp_path):
    docs = tmp_path / "docs"
    (docs / "sub").mkdir(parents=True)
    return tmp_path, docs


class TestSafeMode:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("SAFE", SafeMode.SAFE),
            ("strict", SafeMode.STRICT),
            ("unconstrained", SafeMode.UNSAFE),
            ("jailed_with_escape", SafeMode.SAFE),
            ("secure", SafeMode.STRICT),
            (SafeMode.SAFE, SafeMode.SAFE),
        ],
    )
    def test_parse(self, value, expected):
        assert SafeMode.parse(value) is expected

    def test_invalid(self):
        with pytest.raises(ValueError, match="invalid safe mode"):
            SafeMode.parse("bogus")


class TestHelpers:
    def test_is_uri(self):
        assert is_uri("https://example.org/a.adoc")
        assert not is_uri("a.adoc")
        assert not is_uri("c:/docs/a.adoc")

    def test_is_within(self):
        assert is_within("/a/b", "/a")
        assert is_within("/a", "/a")
        assert not is_within("/ab", "/a")


class TestUnsafe:
    def test_anything_resolves(self, layout):
        root, docs = layout
        resolution = PathJail(SafeMode.UNSAFE, docs).resolve("../secret.adoc", docs)
        assert resolution.path == normalize(root / "secret.adoc")
        assert resolution.violation is None


class TestStrict:
    def test_parent_reference_rejected(self, layout):
        _, docs = layout
        resolution = PathJail(SafeMode.STRICT, docs).resolve("../secret.adoc", docs)
        assert resolution.path is None
        assert resolution.violation == "include file has illegal reference to ancestor of jail: ../secret.adoc"

    def test_any_parent_segment_rejected(self, layout):
        """Even a '..' that stays inside the jail is refused."""
        _, docs = layout
        resolution = PathJail(SafeMode.STRICT, docs).resolve("sub/../a.adoc", docs)
        assert resolution.violation is not None

    def test_absolute_inside_jail(self, layout):
        _, docs = layout
        target = os.path.join(str(docs), "sub", "a.adoc")
        assert PathJail(SafeMode.STRICT, docs).resolve(target, docs).path == normalize(target)

    def test_absolute_outside_jail(self, layout):
        root, docs = layout
        target = str(root / "secret.adoc")
        resolution = PathJail(SafeMode.STRICT, docs).resolve(target, docs)
        assert resolution.violation == f"include file is outside of jail: {target}"


class TestSafe:
    def test_parent_reference_rejected(self, layout):
        _, docs = layout
        resolution = PathJail(SafeMode.SAFE, docs).resolve("../secret.adoc", docs)
        assert "illegal reference to ancestor of jail" in resolution.violation

    def test_parent_segment_inside_jail_allowed(self, layout):
        _, docs = layout
        resolution = PathJail(SafeMode.SAFE, docs).resolve("sub/../a.adoc", docs)
        assert resolution.path == normalize(docs / "a.adoc")

    def test_include_root_allows_escape(self, layout):
        root, docs = layout
        jail = PathJail(SafeMode.SAFE, docs, include_root=root)
        assert jail.resolve("../secret.adoc", docs).path == normalize(root / "secret.adoc")

    def test_relative_to_including_directory(self, layout):
        _, docs = layout
        resolution = PathJail(SafeMode.SAFE, docs).resolve("b.adoc", docs / "sub")
        assert resolution.path == normalize(docs / "sub" / "b.adoc")
