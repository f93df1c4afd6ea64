"""
Top-level entry point: resolve backends, compile the expression, run actions.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TextIO

from .actions import ActionRunner, QuitRequested
from .backends import Backend, resolve
from .entries import ListingFormatter
from .exceptions import UsageError
from .filters import FilterArena
from .parser import CompiledQuery, compile_expression
from .tokens import Action, split_uris

logger = logging.getLogger(__name__)


def find(
    args: Sequence[str],
    *,
    now: int | None = None,
    umask: int = 0,
    stdout: TextIO | None = None,
    posixly_correct: bool | None = None,
) -> CompiledQuery | None:
    """
    Run a whole command line: URIs first, then the expression.

    If the expression reaches no action, ``-print`` runs once with the final
    filter and sort list. Backends are closed and the filter arena released
    however the run ends.

    Returns:
        The compiled query, or ``None`` if ``-quit`` ended the run early

    Raises:
        UsageError: If no URI was given or the expression is malformed
        BackendError: If a backend cannot be resolved or queried
        ActionError: If an action cannot open or close its output file
    """
    uris, expression = split_uris(args)
    if not uris:
        raise UsageError("missing at least one URI")

    backends: list[Backend] = []
    arena = FilterArena()
    try:
        for uri in uris:
            backends.append(resolve(uri))
        formatter = ListingFormatter(posixly_correct=posixly_correct)
        runner = ActionRunner(backends, stdout=stdout, formatter=formatter)

        query = compile_expression(
            expression, arena=arena, on_action=runner.run, now=now, umask=umask
        )
        if not query.action_done:
            runner.run(Action.PRINT, query.filter, query.sorts)
        return query
    except QuitRequested:
        logger.debug("-quit: stopping after the first match")
        return None
    finally:
        for backend in backends:
            backend.close()
        arena.release()
