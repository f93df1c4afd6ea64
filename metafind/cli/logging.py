from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from ..exceptions import MetafindError

_LOGGER_NAME = "metafind"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True, slots=True)
class LoggingState:
    level: int
    handlers: list[logging.Handler]
    propagate: bool


def _console_level(verbosity: int, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(
    *,
    verbosity: int = 0,
    log_file: Path | None = None,
    quiet: bool = False,
) -> LoggingState:
    """
    Route the package's log records to stderr, and to ``log_file`` if given.

    Returns the previous configuration, for ``restore_logging``.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    previous = LoggingState(logger.level, list(logger.handlers), logger.propagate)

    level = _console_level(verbosity, quiet)
    console = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=verbosity >= 2,
    )
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]

    if log_file is not None:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            raise MetafindError(f"cannot open log file '{log_file}': {e.strerror}") from e
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)
        level = logging.DEBUG

    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = False
    return previous


def restore_logging(state: LoggingState) -> None:
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in logger.handlers:
        if handler not in state.handlers:
            handler.close()
    logger.handlers = state.handlers
    logger.setLevel(state.level)
    logger.propagate = state.propagate
