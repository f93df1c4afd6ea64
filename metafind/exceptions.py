"""
Exception hierarchy for metafind.

Every error raised while compiling or running an expression is fatal: it
propagates to the command line entry point, which closes the backends, renders
the message and exits with ``exit_code``.
"""

from __future__ import annotations

from typing import Any


class MetafindError(Exception):
    """Base class for all metafind errors."""

    default_exit_code = 1
    default_error_type = "error"

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = self.default_exit_code if exit_code is None else exit_code
        self.error_type = error_type or self.default_error_type
        self.details = details

    def __str__(self) -> str:
        return self.message


class UsageError(MetafindError):
    """Malformed command line: bad token sequence or predicate argument."""

    default_exit_code = 2
    default_error_type = "usage_error"


class BackendError(MetafindError):
    """A backend could not be resolved, queried or iterated."""

    default_error_type = "backend_error"


class ActionError(MetafindError):
    """An action failed to open, write or close its output."""

    default_error_type = "io_error"


class TryAgain(MetafindError):
    """
    Transient condition raised while pulling entries from a backend.

    The entry sequence stays usable: callers retry ``next()`` until it yields an
    entry or is exhausted.
    """

    default_error_type = "try_again"
