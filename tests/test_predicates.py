"""Tests for predicate compilers."""

from __future__ import annotations

import stat

import pytest

from metafind.entries import Entry
from metafind.exceptions import MetafindError, UsageError
from metafind.filters import (
    AndExpression,
    FieldComparison,
    FilterArena,
    FilterField,
    FilterOperator,
    evaluate,
)
from metafind.predicates import MAX_SECONDS, PredicateCompiler, TimeUnit, str_to_seconds
from metafind.tokens import Predicate

NOW = 1_700_000_000
DAY = 86400


@pytest.fixture
def compiler() -> PredicateCompiler:
    return PredicateCompiler(FilterArena(), now=NOW)


def entry_aged(days: float) -> Entry:
    return Entry(path=f"/d/{days}", name=str(days), mtime=int(NOW - days * DAY))


# =============================================================================
# Time
# =============================================================================


class TestTime:
    def test_older_than(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.MTIME, "+2")
        assert isinstance(f, FieldComparison)
        assert f.field is FilterField.MTIME
        assert f.operator is FilterOperator.STRICTLY_LOWER
        assert f.value == NOW - 2 * DAY

    def test_newer_than(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.MMIN, "-30")
        assert isinstance(f, FieldComparison)
        assert f.operator is FilterOperator.STRICTLY_GREATER
        assert f.value == NOW - 30 * 60

    def test_exact_is_a_half_unit_window(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.ATIME, "2")
        assert isinstance(f, AndExpression)
        low, high = f.children
        assert isinstance(low, FieldComparison)
        assert isinstance(high, FieldComparison)
        assert low.field is FilterField.ATIME
        assert (low.operator, low.value) == (
            FilterOperator.STRICTLY_GREATER,
            NOW - 2 * DAY - DAY // 2,
        )
        assert (high.operator, high.value) == (
            FilterOperator.STRICTLY_LOWER,
            NOW - 2 * DAY + DAY // 2,
        )

    def test_mtime_selection(self, compiler: PredicateCompiler) -> None:
        """Entries aged 0.5, 2 and 5 days against +2, -2 and 2."""
        entries = [entry_aged(0.5), entry_aged(2.0), entry_aged(5.0)]

        def select(argument: str) -> list[str]:
            f = compiler.compile(Predicate.MTIME, argument)
            return [e.name for e in entries if evaluate(f, e)]

        assert select("2") == ["2.0"]
        assert select("+2") == ["5.0"]
        assert select("-2") == ["0.5"]

    @pytest.mark.parametrize(
        ("predicate", "field"),
        [
            (Predicate.AMIN, FilterField.ATIME),
            (Predicate.CMIN, FilterField.CTIME),
            (Predicate.CTIME, FilterField.CTIME),
            (Predicate.MTIME, FilterField.MTIME),
        ],
    )
    def test_fields(self, compiler: PredicateCompiler, predicate: Predicate, field) -> None:
        f = compiler.compile(predicate, "+1")
        assert isinstance(f, FieldComparison)
        assert f.field is field

    @pytest.mark.parametrize("argument", ["", "+", "abc", "1.5", "++1", "1d", " 1"])
    def test_invalid(self, compiler: PredicateCompiler, argument: str) -> None:
        with pytest.raises(UsageError, match="-mtime"):
            compiler.compile(Predicate.MTIME, argument)

    def test_out_of_range(self, compiler: PredicateCompiler) -> None:
        with pytest.raises(UsageError, match="out of range"):
            compiler.compile(Predicate.MTIME, str(MAX_SECONDS))


def test_str_to_seconds() -> None:
    assert str_to_seconds("3", TimeUnit.HOUR) == 3 * 3600
    assert str_to_seconds(str(MAX_SECONDS), TimeUnit.SECOND) == MAX_SECONDS
    with pytest.raises(ValueError):
        str_to_seconds(str(MAX_SECONDS + 1), TimeUnit.SECOND)
    with pytest.raises(ValueError):
        str_to_seconds("-1", TimeUnit.SECOND)


# =============================================================================
# Size
# =============================================================================


class TestSize:
    @pytest.mark.parametrize(
        ("argument", "operator", "value"),
        [
            ("+1k", FilterOperator.STRICTLY_GREATER, 1024),
            ("-3c", FilterOperator.STRICTLY_LOWER, 3),
            ("2w", FilterOperator.EQUAL, 4),
            ("10", FilterOperator.EQUAL, 5120),
            ("1b", FilterOperator.EQUAL, 512),
            ("+2M", FilterOperator.STRICTLY_GREATER, 2 * 1024**2),
            ("1G", FilterOperator.EQUAL, 1024**3),
            ("1T", FilterOperator.EQUAL, 1024**4),
        ],
    )
    def test_units(
        self, compiler: PredicateCompiler, argument: str, operator: FilterOperator, value: int
    ) -> None:
        f = compiler.compile(Predicate.SIZE, argument)
        assert isinstance(f, FieldComparison)
        assert f.field is FilterField.SIZE
        assert f.operator is operator
        assert f.value == value

    def test_exact_size_is_not_widened(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.SIZE, "1k")
        assert not evaluate(f, Entry(size=1000))
        assert evaluate(f, Entry(size=1024))

    @pytest.mark.parametrize("argument", ["", "k", "1x", "1kk", "+-1", "1.5k"])
    def test_invalid(self, compiler: PredicateCompiler, argument: str) -> None:
        with pytest.raises(UsageError, match="-size"):
            compiler.compile(Predicate.SIZE, argument)


# =============================================================================
# Type, names, regexes, permissions
# =============================================================================


@pytest.mark.parametrize(
    ("letter", "file_type"),
    [
        ("b", stat.S_IFBLK),
        ("c", stat.S_IFCHR),
        ("d", stat.S_IFDIR),
        ("f", stat.S_IFREG),
        ("l", stat.S_IFLNK),
        ("p", stat.S_IFIFO),
        ("s", stat.S_IFSOCK),
    ],
)
def test_type(compiler: PredicateCompiler, letter: str, file_type: int) -> None:
    f = compiler.compile(Predicate.TYPE, letter)
    assert isinstance(f, FieldComparison)
    assert (f.field, f.operator, f.value) == (FilterField.TYPE, FilterOperator.EQUAL, file_type)


def test_type_errors(compiler: PredicateCompiler) -> None:
    with pytest.raises(UsageError, match="only contain one letter"):
        compiler.compile(Predicate.TYPE, "df")
    with pytest.raises(UsageError, match="unknown argument to -type"):
        compiler.compile(Predicate.TYPE, "z")


class TestNames:
    def test_name_matches_basename(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.NAME, "*.txt")
        assert isinstance(f, FieldComparison)
        assert f.field is FilterField.NAME
        assert f.operator is FilterOperator.REGEX
        assert evaluate(f, Entry(name="a.txt"))
        assert not evaluate(f, Entry(name="a.TXT"))

    def test_iname(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.INAME, "*.txt")
        assert evaluate(f, Entry(name="a.TXT"))

    @pytest.mark.parametrize("predicate", [Predicate.PATH, Predicate.WHOLENAME])
    def test_path(self, compiler: PredicateCompiler, predicate: Predicate) -> None:
        f = compiler.compile(predicate, "/data/*/a")
        assert evaluate(f, Entry(path="/data/x/y/a"))
        assert not evaluate(f, Entry(path="/data/x/A"))

    @pytest.mark.parametrize("predicate", [Predicate.IPATH, Predicate.IWHOLENAME])
    def test_ipath(self, compiler: PredicateCompiler, predicate: Predicate) -> None:
        f = compiler.compile(predicate, "/DATA/*")
        assert evaluate(f, Entry(path="/data/x"))

    def test_regex_matches_whole_path(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.REGEX, ".*\\.py")
        assert isinstance(f, FieldComparison)
        assert f.field is FilterField.PATH
        assert evaluate(f, Entry(path="/src/a.py"))
        assert not evaluate(f, Entry(path="/src/a.pyc"))

    def test_regex_alternation_is_anchored(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.REGEX, "/a|/b")
        assert not evaluate(f, Entry(path="/a/c"))
        assert evaluate(f, Entry(path="/b"))

    def test_iregex(self, compiler: PredicateCompiler) -> None:
        f = compiler.compile(Predicate.IREGEX, ".*\\.PY")
        assert evaluate(f, Entry(path="/src/a.py"))

    def test_invalid_regex(self, compiler: PredicateCompiler) -> None:
        with pytest.raises(UsageError, match="invalid regular expression"):
            compiler.compile(Predicate.REGEX, "(")


def test_perm(compiler: PredicateCompiler) -> None:
    f = compiler.compile(Predicate.PERM, "-g+w")
    assert isinstance(f, FieldComparison)
    assert (f.field, f.operator, f.value) == (FilterField.MODE, FilterOperator.BITS_ALL_SET, 0o020)


def test_perm_uses_umask() -> None:
    compiler = PredicateCompiler(FilterArena(), now=NOW, umask=0o022)
    f = compiler.compile(Predicate.PERM, "+w")
    assert isinstance(f, FieldComparison)
    assert f.value == 0o200


@pytest.mark.parametrize("predicate", [Predicate.NEWER, Predicate.EMPTY, Predicate.USER])
def test_unsupported_predicates(compiler: PredicateCompiler, predicate: Predicate) -> None:
    assert not compiler.supports(predicate)
    with pytest.raises(MetafindError, match="not implemented") as excinfo:
        compiler.compile(predicate, "x")
    assert excinfo.value.error_type == "not_implemented"
    assert excinfo.value.exit_code == 1


def test_now_defaults_to_current_time() -> None:
    compiler = PredicateCompiler(FilterArena())
    assert compiler.now > NOW
