from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import click

from ..exceptions import MetafindError, UsageError


@dataclass
class CLIContext:
    verbosity: int
    quiet: bool
    umask: int
    log_file: Path | None
    posixly_correct: bool = False

    @classmethod
    def from_environment(
        cls, *, verbosity: int, quiet: bool, umask: int, log_file: Path | None
    ) -> CLIContext:
        return cls(
            verbosity=verbosity,
            quiet=quiet,
            umask=umask,
            log_file=log_file,
            posixly_correct="POSIXLY_CORRECT" in os.environ,
        )


def exit_code_for_exception(exc: Exception) -> int:
    if isinstance(exc, MetafindError):
        return exc.exit_code
    if isinstance(exc, click.UsageError):
        return 2
    return 1


def hint_for_exception(exc: Exception) -> str | None:
    if isinstance(exc, UsageError):
        return "Try 'metafind --help' for more information."
    return None
