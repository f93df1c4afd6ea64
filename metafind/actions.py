"""
Action execution.

An action runs in three steps: ``pre`` opens whatever the action writes to,
``exec`` is applied to every entry each backend returns for the filter, and
``post`` reports totals and closes files. Every backend is drained fully
before the next one is queried.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, Sequence
from typing import TextIO

from .backends import Backend, Projection
from .entries import Entry, ListingFormatter, path_of
from .exceptions import ActionError, BackendError, MetafindError, TryAgain
from .filters import Filter, RenderedFilter
from .sorting import SortEntry
from .tokens import Action

logger = logging.getLogger(__name__)

_STDOUT_ACTIONS = frozenset([Action.PRINT, Action.PRINT0, Action.LS])
_FILE_ACTIONS = frozenset([Action.FPRINT, Action.FPRINT0, Action.FLS])


class QuitRequested(Exception):
    """Raised by ``-quit`` once an entry matched; ends the run successfully."""


class ActionRunner:
    """
    Run actions against a fixed set of backends.

    Args:
        backends: Backends every action queries, in order
        stdout: Stream ``-print``, ``-print0``, ``-ls`` and ``-count`` write to
            (defaults to ``sys.stdout`` at call time)
        formatter: Renders ``-ls`` and ``-fls`` lines
    """

    def __init__(
        self,
        backends: Sequence[Backend],
        *,
        stdout: TextIO | None = None,
        formatter: ListingFormatter | None = None,
    ) -> None:
        self.backends = list(backends)
        self._stdout = stdout
        self.formatter = formatter or ListingFormatter()

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    def run(
        self,
        action: Action,
        filter_: Filter,
        sorts: Sequence[SortEntry] = (),
        argument: str | None = None,
    ) -> int:
        """
        Run ``action`` on every entry matching ``filter_``.

        Returns:
            The number of entries the action was applied to

        Raises:
            QuitRequested: For ``-quit``, as soon as one entry matched
            ActionError: If an output file cannot be opened or closed
            BackendError: If a backend fails while returning entries
            MetafindError: If the action is not implemented
        """
        logger.info("%s on %s", action.value, RenderedFilter(filter_))

        if action is Action.QUIT:
            for _ in self._matching(filter_, sorts):
                raise QuitRequested()
            return 0

        if action is Action.COUNT:
            count = sum(1 for _ in self._matching(filter_, sorts))
            self.stdout.write(f"{count} matching entries\n")
            return count

        if action in _STDOUT_ACTIONS:
            return self._write_all(action, self.stdout, filter_, sorts)

        if action in _FILE_ACTIONS:
            if argument is None:
                raise ActionError(f"missing argument to `{action.value}'", exit_code=2)
            stream = self._open(argument)
            try:
                count = self._write_all(action, stream, filter_, sorts)
            except BaseException:
                stream.close()
                raise
            self._close(stream, argument)
            return count

        raise MetafindError(f"{action.value}: not implemented", error_type="not_implemented")

    def _write_all(
        self, action: Action, stream: TextIO, filter_: Filter, sorts: Sequence[SortEntry]
    ) -> int:
        count = 0
        for entry in self._matching(filter_, sorts):
            stream.write(self._render(action, entry))
            count += 1
        return count

    def _render(self, action: Action, entry: Entry) -> str:
        if action in (Action.LS, Action.FLS):
            return self.formatter.format(entry) + "\n"
        path = path_of(entry) or ""
        if action in (Action.PRINT0, Action.FPRINT0):
            return path + "\0"
        return path + "\n"

    def _matching(self, filter_: Filter, sorts: Sequence[SortEntry]) -> Iterator[Entry]:
        for backend in self.backends:
            yield from _drain(backend, filter_, sorts)

    @staticmethod
    def _open(filename: str) -> TextIO:
        try:
            return open(filename, "w", encoding="utf-8")  # noqa: SIM115
        except OSError as e:
            raise ActionError(
                f"fopen: {filename}: {e.strerror}", details={"file": filename}
            ) from e

    @staticmethod
    def _close(stream: TextIO, filename: str) -> None:
        try:
            stream.close()
        except OSError as e:
            raise ActionError(
                f"fclose: {filename}: {e.strerror}", details={"file": filename}
            ) from e


def _drain(backend: Backend, filter_: Filter, sorts: Sequence[SortEntry]) -> Iterator[Entry]:
    """Pull every entry from one backend, retrying transient failures."""
    try:
        entries = backend.filter(filter_, sorts, Projection.ALL)
    except OSError as e:
        raise BackendError(f"{backend.name}: filter failed: {e}") from e

    while True:
        try:
            entry = next(entries)
        except TryAgain:
            logger.debug("%s: entry not ready, retrying", backend.name)
            continue
        except StopIteration:
            return
        except OSError as e:
            raise BackendError(f"{backend.name}: iteration failed: {e}") from e
        yield entry
