"""Tests for shell glob translation."""

from __future__ import annotations

import re

import pytest

from metafind.globs import glob_to_regex


def matches(glob: str, text: str) -> bool:
    return re.search(glob_to_regex(glob), text) is not None


def test_star_suffix() -> None:
    assert glob_to_regex("*.txt") == "^.*\\.txt(?!\n)$"
    assert matches("*.txt", "notes.txt")
    assert matches("*.txt", ".txt")
    assert not matches("*.txt", "notes.txt.bak")
    assert not matches("*.txt", "notesxtxt")


def test_question_mark_is_exactly_one_character() -> None:
    assert matches("a?c", "abc")
    assert not matches("a?c", "ac")
    assert not matches("a?c", "abbc")


def test_regex_specials_are_literal() -> None:
    """Parentheses in a glob are matched literally, not as a group."""
    assert matches("(literal)", "(literal)")
    assert not matches("(literal)", "literal")
    assert matches("a|b", "a|b")
    assert not matches("a|b", "a")
    assert matches("x+y{2}$", "x+y{2}$")
    assert matches("^a", "^a")


def test_anchored_against_trailing_newline() -> None:
    assert not matches("abc", "abc\n")
    assert not matches("abc", "xabc")


class TestBrackets:
    def test_set(self) -> None:
        assert matches("[ab]c", "ac")
        assert matches("[ab]c", "bc")
        assert not matches("[ab]c", "cc")

    def test_range(self) -> None:
        assert matches("file[0-9]", "file7")
        assert not matches("file[0-9]", "fileX")

    def test_negated_with_bang(self) -> None:
        assert matches("[!a]bc", "xbc")
        assert not matches("[!a]bc", "abc")

    def test_leading_bracket_is_a_member(self) -> None:
        assert matches("[]a]", "]")
        assert matches("[]a]", "a")
        assert not matches("[]a]", "b")

    def test_unclosed_bracket_is_literal(self) -> None:
        assert matches("[ab", "[ab")
        assert not matches("[ab", "a")

    def test_lone_closing_bracket_is_literal(self) -> None:
        assert matches("a]", "a]")

    def test_character_class(self) -> None:
        assert matches("[[:digit:]]*", "5abc")
        assert not matches("[[:digit:]]*", "abc")
        assert not matches("[[:digit:]]*", "t]x")

    def test_character_class_among_other_members(self) -> None:
        assert matches("[[:alpha:]_]x", "_x")
        assert matches("[[:alpha:]_]x", "Qx")
        assert not matches("[[:alpha:]_]x", "1x")

    def test_negated_character_class(self) -> None:
        assert matches("[![:upper:]]", "a")
        assert not matches("[![:upper:]]", "A")

    @pytest.mark.parametrize(
        ("glob", "text"),
        [
            ("[[:alnum:]]", "7"),
            ("[[:lower:]]", "q"),
            ("[[:space:]]", "\t"),
            ("[[:blank:]]", " "),
            ("[[:punct:]]", "]"),
            ("[[:punct:]]", "\\"),
            ("[[:xdigit:]]", "F"),
            ("[[:graph:]]", "~"),
            ("[[:print:]]", " "),
            ("[[:cntrl:]]", "\x07"),
        ],
    )
    def test_every_character_class(self, glob: str, text: str) -> None:
        assert matches(glob, text)

    def test_unknown_class_is_not_special(self) -> None:
        re.compile(glob_to_regex("[[:bogus:]]"))
        assert not matches("[[:bogus:]]", "b")


class TestEscapes:
    @pytest.mark.parametrize(("glob", "text"), [("\\*", "*"), ("\\?", "?"), ("\\[a]", "[a]")])
    def test_escaped_wildcards(self, glob: str, text: str) -> None:
        assert matches(glob, text)
        assert not matches(glob, "x")

    def test_escaped_ordinary_character(self) -> None:
        assert matches("\\a", "a")

    def test_trailing_backslash_is_literal(self) -> None:
        assert matches("a\\", "a\\")
        assert not matches("a\\", "a")


@pytest.mark.parametrize("glob", ["", "*", "[", "]", "\\", "[!", "[]", "(((", "a{1,2}"])
def test_every_glob_compiles(glob: str) -> None:
    re.compile(glob_to_regex(glob))
