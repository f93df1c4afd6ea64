from __future__ import annotations

import pytest

from metafind.entries import Entry
from metafind.exceptions import UsageError
from metafind.filters import FilterField
from metafind.sorting import SortEntry, SortList, field_from_string, sort_entries


def test_sort_list_append_and_snapshot() -> None:
    sorts = SortList()
    sorts.append("size")
    snapshot = sorts.snapshot()
    sorts.append("name", ascending=False)
    assert snapshot == (SortEntry(FilterField.SIZE),)
    assert len(sorts) == 2
    assert sorts[1] == SortEntry(FilterField.NAME, ascending=False)
    assert list(sorts) == [SortEntry(FilterField.SIZE), SortEntry(FilterField.NAME, False)]
    assert repr(sorts) == "SortList([size asc, name desc])"


def test_duplicate_fields_are_kept() -> None:
    sorts = SortList()
    sorts.append("size")
    sorts.append("size", ascending=False)
    assert len(sorts) == 2


def test_field_from_string() -> None:
    assert field_from_string("mtime") is FilterField.MTIME
    with pytest.raises(UsageError, match="Supported fields"):
        field_from_string("bogus")


class TestSortEntries:
    def test_primary_key_then_tie_breaker(self) -> None:
        entries = [
            Entry(name="b", size=1),
            Entry(name="c", size=2),
            Entry(name="a", size=1),
            Entry(name="d", size=1),
        ]
        sorts = [SortEntry(FilterField.SIZE), SortEntry(FilterField.NAME, ascending=False)]
        assert [e.name for e in sort_entries(entries, sorts)] == ["d", "b", "a", "c"]

    def test_descending(self) -> None:
        entries = [Entry(name="x", mtime=1), Entry(name="y", mtime=3), Entry(name="z", mtime=2)]
        result = sort_entries(entries, [SortEntry(FilterField.MTIME, ascending=False)])
        assert [e.name for e in result] == ["y", "z", "x"]

    def test_no_keys_keeps_order(self) -> None:
        entries = [Entry(name="b"), Entry(name="a")]
        assert [e.name for e in sort_entries(entries, [])] == ["b", "a"]

    def test_missing_values_sort_last(self) -> None:
        entries = [Entry(name="b", path=None), Entry(name="a", path="/a")]
        result = sort_entries(entries, [SortEntry(FilterField.PATH)])
        assert [e.name for e in result] == ["a", "b"]

    def test_missing_values_sort_last_when_descending(self) -> None:
        entries = [Entry(name="n", path=None), Entry(name="a", path="/a"), Entry(name="b", path="/b")]
        result = sort_entries(entries, [SortEntry(FilterField.PATH, ascending=False)])
        assert [e.path for e in result] == ["/b", "/a", None]

    def test_missing_values_keep_their_order_under_a_secondary_key(self) -> None:
        entries = [
            Entry(name="x", size=1),
            Entry(name="m", path="/m", size=1),
            Entry(name="y", size=1),
            Entry(name="k", path="/k", size=2),
        ]
        sorts = [SortEntry(FilterField.SIZE, ascending=False), SortEntry(FilterField.PATH)]
        assert [e.name for e in sort_entries(entries, sorts)] == ["k", "m", "x", "y"]
