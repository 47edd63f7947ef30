"""Tests for rewrite.globs — brace expansion and path matching."""

import pytest

from rewrite.globs import expand_braces, glob_match, has_magic


class TestExpandBraces:
    def test_no_braces(self):
        assert expand_braces("lib/*.ex") == ["lib/*.ex"]

    def test_alternatives_in_order(self):
        assert expand_braces("{lib,test}/*.{ex,exs}") == [
            "lib/*.ex",
            "lib/*.exs",
            "test/*.ex",
            "test/*.exs",
        ]

    def test_duplicates_dropped(self):
        assert expand_braces("*.{ex,ex}") == ["*.ex"]

    def test_empty_alternative(self):
        assert expand_braces("a{,.bak}") == ["a", "a.bak"]


@pytest.mark.parametrize(
    "path, pattern, expected",
    [
        ("a.ex", "*.ex", True),
        ("lib/a.ex", "*.ex", False),
        ("lib/a.ex", "**/*.ex", True),
        ("a.ex", "**/*.ex", True),
        ("lib/deep/a.ex", "lib/**", True),
        ("lib/a.exs", "lib/*.{ex,exs}", True),
        ("lib/a.ex", "lib/?.ex", True),
        ("lib/ab.ex", "lib/?.ex", False),
        ("lib/a.ex", "lib/a.ex", True),
        ("lib/a.ex.bak", "lib/*.ex", False),
        ("a+b.ex", "a+b.ex", True),
        ("lib/a.ex", "lib/[ab].ex", True),
        ("lib/c.ex", "lib/[ab].ex", False),
        ("lib/c.ex", "lib/[!ab].ex", True),
        ("lib/a.ex", "lib/[!ab].ex", False),
        ("lib/b.ex", "lib/[a-c].ex", True),
        ("lib/].ex", "lib/[]].ex", True),
        ("lib/a/x", "lib[/]a/x", False),
        ("lib/a/x", "lib[!a]a/x", False),
        ("[x.ex", "[x.ex", True),
    ],
)
def test_glob_match(path, pattern, expected):
    assert glob_match(path, pattern) is expected


def test_has_magic():
    assert has_magic("lib/*.ex")
    assert has_magic("{a,b}")
    assert not has_magic("lib/a.ex")
