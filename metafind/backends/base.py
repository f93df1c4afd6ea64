"""
Backend interface.

A backend is a queryable store of filesystem entries. ``filter`` returns the
entries matching a compiled filter, ordered by a sort list, with every known
attribute materialized.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from enum import Flag, auto
from types import TracebackType

from ..entries import Entry
from ..exceptions import BackendError, TryAgain
from ..filters import Filter, evaluate
from ..sorting import SortEntry, sort_entries

logger = logging.getLogger(__name__)


class Projection(Flag):
    """Attributes a backend is asked to materialize for each entry."""

    NAME = auto()
    PATH = auto()
    STATX = auto()
    SYMLINK = auto()
    ALL = NAME | PATH | STATX | SYMLINK


class Backend(ABC):
    """Base class for backends."""

    name: str = "backend"

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def filter(
        self,
        filter_: Filter,
        sorts: Sequence[SortEntry] = (),
        projection: Projection = Projection.ALL,
    ) -> Iterator[Entry]:
        """
        Entries matching ``filter_``, ordered by ``sorts``.

        Raises:
            BackendError: If the backend was closed or cannot be read
        """
        if self._closed:
            raise BackendError(f"{self.name}: backend is closed")
        logger.debug("%s: filtering with projection %s", self.name, projection)
        matching = _Matching(iter(self.entries()), filter_)
        if not sorts:
            return matching
        return iter(sort_entries(_retrying(matching, self.name), sorts))

    @abstractmethod
    def entries(self) -> Iterator[Entry]:
        """
        Every entry of the backend, unfiltered.

        The iterator may raise ``TryAgain`` when an entry is not ready yet. It
        must stay usable afterwards, so a generator cannot do this.
        """
        ...

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> Backend:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class _Matching(Iterator[Entry]):
    """
    Entries of ``source`` that match a filter.

    ``TryAgain`` from the source propagates without ending the iteration, so
    the caller can call ``next()`` again.
    """

    def __init__(self, source: Iterator[Entry], filter_: Filter) -> None:
        self._source = source
        self._filter = filter_

    def __next__(self) -> Entry:
        while True:
            entry = next(self._source)
            if evaluate(self._filter, entry):
                return entry


def _retrying(entries: Iterator[Entry], name: str) -> Iterator[Entry]:
    while True:
        try:
            yield next(entries)
        except TryAgain:
            logger.debug("%s: entry not ready, retrying", name)
        except StopIteration:
            return


class MemoryBackend(Backend):
    """Backend over a fixed list of entries."""

    name = "memory"

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        super().__init__()
        self._entries = list(entries)

    def entries(self) -> Iterator[Entry]:
        return iter(self._entries)
