from __future__ import annotations

import logging
from pathlib import Path

import click
import rich_click
from rich.console import Console

import metafind

from ..exceptions import MetafindError
from ..find import find
from .context import CLIContext, exit_code_for_exception, hint_for_exception
from .logging import configure_logging, restore_logging

logger = logging.getLogger(__name__)

_HELP = """\
Search filesystem metadata backends, find(1) style.

ARGS are one or more backend URIs (a directory, posix:DIR or snapshot:FILE,
optionally prefixed with rbh:) followed by an expression of predicates,
operators, sort directives and actions, e.g.

    metafind /data -name '*.log' -size +1M -print

Options must come before the first URI.
"""


def _parse_umask(_ctx: click.Context, _param: click.Parameter, value: str) -> int:
    try:
        umask = int(value, 8)
    except ValueError:
        raise click.BadParameter(f"not an octal number: {value}") from None
    if not 0 <= umask <= 0o777:
        raise click.BadParameter(f"out of range: {value}")
    return umask


def _report(exc: Exception) -> None:
    stderr = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)
    stderr.print(f"metafind: {exc}", markup=False)
    hint = hint_for_exception(exc)
    if hint is not None:
        stderr.print(hint, markup=False)


@click.command(
    name="metafind",
    cls=rich_click.RichCommand,
    help=_HELP,
    context_settings={
        "help_option_names": ["--help"],
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
)
@click.option("--verbose", "verbose", count=True, help="Increase verbosity (repeat for debug).")
@click.option("--quiet", is_flag=True, help="Only report errors on stderr.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    envvar="METAFIND_LOG_FILE",
    default=None,
    help="Also write debug logs to this file.",
)
@click.option(
    "--umask",
    type=str,
    envvar="METAFIND_UMASK",
    default="0",
    show_default=True,
    callback=_parse_umask,
    help="Mask applied to symbolic -perm modes that name no class.",
)
@click.version_option(version=metafind.__version__, prog_name="metafind")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    verbose: int,
    quiet: bool,
    log_file: str | None,
    umask: int,
    args: tuple[str, ...],
) -> None:
    ctx = CLIContext.from_environment(
        verbosity=verbose,
        quiet=quiet,
        umask=umask,
        log_file=Path(log_file) if log_file else None,
    )
    click_ctx.obj = ctx

    try:
        previous_logging = configure_logging(
            verbosity=ctx.verbosity, log_file=ctx.log_file, quiet=ctx.quiet
        )
    except MetafindError as exc:
        _report(exc)
        raise click.exceptions.Exit(exit_code_for_exception(exc)) from exc
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))

    try:
        find(args, umask=ctx.umask, posixly_correct=ctx.posixly_correct)
    except MetafindError as exc:
        logger.debug("%s: %s", exc.error_type, exc.details or {})
        _report(exc)
        raise click.exceptions.Exit(exit_code_for_exception(exc)) from exc
    except Exception as exc:
        logger.debug("unexpected error", exc_info=True)
        _report(exc)
        raise click.exceptions.Exit(exit_code_for_exception(exc)) from exc


def main() -> None:
    cli(prog_name="metafind")
