"""Sort directives (``-sort FIELD`` / ``-rsort FIELD``)."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .entries import Entry
from .exceptions import UsageError
from .filters import FilterField

SORT_FIELDS = {field.value: field for field in FilterField}


def field_from_string(name: str) -> FilterField:
    field = SORT_FIELDS.get(name)
    if field is None:
        raise UsageError(
            f"unknown sort field `{name}'. Supported fields: {', '.join(sorted(SORT_FIELDS))}"
        )
    return field


@dataclass(frozen=True, slots=True)
class SortEntry:
    field: FilterField
    ascending: bool = True


class SortList:
    """
    Append-only list of sort keys, in the order they appeared.

    The first entry is the primary key; later ones break ties. Duplicate fields
    are kept.
    """

    def __init__(self) -> None:
        self._items: list[SortEntry] = []

    def append(self, field_name: str, *, ascending: bool = True) -> SortEntry:
        item = SortEntry(field_from_string(field_name), ascending)
        self._items.append(item)
        return item

    def __iter__(self) -> Iterator[SortEntry]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> SortEntry:
        return self._items[index]

    def snapshot(self) -> tuple[SortEntry, ...]:
        """The sort keys as they are right now (later appends are not seen)."""
        return tuple(self._items)

    def __repr__(self) -> str:
        keys = ", ".join(f"{s.field.value} {'asc' if s.ascending else 'desc'}" for s in self)
        return f"SortList([{keys}])"


def sort_entries(entries: Iterable[Entry], sorts: Iterable[SortEntry]) -> list[Entry]:
    """Sort entries by every key, the first key being the primary one."""
    result = list(entries)
    for item in reversed(tuple(sorts)):
        value_of = item.field.value_of
        present = [entry for entry in result if value_of(entry) is not None]
        # Entries missing the attribute sort last, whatever the direction
        missing = [entry for entry in result if value_of(entry) is None]
        present.sort(key=value_of, reverse=not item.ascending)
        result = present + missing
    return result
