"""
Recursive descent parser for find expressions.

Consumes the tokens that follow the backend URIs and builds one filter, one
sort list, and, whenever an action is reached, runs that action right away
against the filter built so far.

Precedence, tightest first: ``-not``, then implicit or explicit ``-and``, then
``-or``. ``-or`` ends the current nesting level: its right operand absorbs
everything up to the next unmatched ``)`` or the end of the command line.

The ``-or`` rewrite:
    A backend is scanned once per action, so ``A -o B`` cannot be evaluated
    the way find(1) does, testing B only on entries A rejected. Instead the
    right operand is parsed with ``!(A & context)`` as its context, so every
    action inside B only sees entries that did not match the left side, and
    the whole expression becomes ``A | B``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .exceptions import MetafindError, UsageError
from .filters import Filter, FilterArena, RenderedFilter
from .predicates import PredicateCompiler
from .sorting import SortEntry, SortList
from .tokens import (
    Action,
    Token,
    TokenKind,
    action_from_string,
    classify,
    predicate_from_string,
)

logger = logging.getLogger(__name__)

ActionCallback = Callable[[Action, Filter, tuple[SortEntry, ...], str | None], None]

# Tokens a binary operator may follow
_TERM_ENDS = frozenset([TokenKind.PREDICATE, TokenKind.ACTION, TokenKind.PAREN_CLOSE])


@dataclass
class Cursor:
    """
    Position in the expression, shared by every level of the recursion.

    ``previous`` is the kind of the last token classified, whichever level
    classified it.
    """

    args: Sequence[str]
    index: int = 0
    previous: TokenKind = TokenKind.URI

    @property
    def at_end(self) -> bool:
        return self.index >= len(self.args)

    @property
    def current(self) -> str:
        return self.args[self.index]

    def take_argument(self, keyword: str) -> str:
        """Consume the argument that follows ``keyword``."""
        if self.index + 1 >= len(self.args):
            raise UsageError(f"missing argument to `{keyword}'")
        self.index += 1
        return self.args[self.index]


@dataclass(frozen=True, slots=True)
class ActionCall:
    """An action reached while parsing, with the filter it ran against."""

    action: Action
    filter: Filter
    sorts: tuple[SortEntry, ...]
    argument: str | None = None


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    filter: Filter
    sorts: tuple[SortEntry, ...]
    action_done: bool
    actions: tuple[ActionCall, ...] = field(default_factory=tuple)


class ExpressionParser:
    """
    Parse an expression into filters allocated from ``arena``.

    ``on_action`` is called, synchronously, each time an action token is
    reached; parsing resumes once it returns.
    """

    def __init__(
        self,
        arena: FilterArena,
        compiler: PredicateCompiler,
        *,
        sorts: SortList | None = None,
        on_action: ActionCallback | None = None,
    ) -> None:
        self.arena = arena
        self.compiler = compiler
        self.sorts = sorts if sorts is not None else SortList()
        self.on_action = on_action
        self.actions: list[ActionCall] = []

    @property
    def action_done(self) -> bool:
        return bool(self.actions)

    def parse(self, cursor: Cursor, context: Filter = None) -> Filter:
        """
        Parse from ``cursor`` until the end of the arguments or a ``)``.

        Args:
            cursor: Where to start; left on the ``)`` that ended this level, or
                past the last argument
            context: Filter parsed by the callers, implicitly ANDed with
                everything parsed here when an action runs

        Returns:
            The filter parsed at this level (``None`` if nothing was)
        """
        running: Filter = None
        negate = False

        while not cursor.at_end:
            arg = cursor.current
            token = classify(arg)
            previous = cursor.previous
            cursor.previous = token.kind

            if token.kind is TokenKind.URI:
                raise UsageError(f"paths must precede expression: {arg}")

            if token.kind in (TokenKind.AND, TokenKind.OR):
                if previous not in _TERM_ENDS:
                    raise UsageError(
                        "invalid expression; you have used a binary operator "
                        f"'{arg}' with nothing before it."
                    )
                if token.kind is TokenKind.OR:
                    cursor.index += 1
                    left = self.arena.and_(running, context)
                    right = self.parse(cursor, self.arena.not_(left))
                    return self.arena.or_(running, right)

            elif token.kind is TokenKind.NOT:
                negate = not negate

            elif token.kind is TokenKind.PAREN_OPEN:
                cursor.index += 1
                sub = self.parse(cursor, self.arena.and_(running, context))
                if cursor.at_end or cursor.previous is not TokenKind.PAREN_CLOSE:
                    raise UsageError(
                        "invalid expression; I was expecting to find a ')' somewhere "
                        "but did not see one."
                    )
                if negate:
                    sub = self.arena.not_(sub)
                    negate = False
                running = self.arena.and_(running, sub)

            elif token.kind is TokenKind.PAREN_CLOSE:
                if previous is TokenKind.PAREN_OPEN:
                    raise UsageError("invalid expression; empty parentheses are not allowed.")
                if negate:
                    raise UsageError("invalid expression; expected an expression after '-not'.")
                return running

            elif token.kind in (TokenKind.SORT, TokenKind.SORT_DESCENDING):
                field_name = cursor.take_argument(arg)
                self.sorts.append(field_name, ascending=token.kind is TokenKind.SORT)

            elif token.kind is TokenKind.PREDICATE:
                leaf = self._parse_predicate(cursor, token)
                if negate:
                    leaf = self.arena.not_(leaf)
                    negate = False
                running = self.arena.and_(running, leaf)

            elif token.kind is TokenKind.ACTION:
                action = action_from_string(arg)
                argument = cursor.take_argument(arg) if action.takes_argument else None
                self._run_action(action, self.arena.and_(running, context), argument)

            cursor.index += 1

        if negate:
            raise UsageError("invalid expression; expected an expression after '-not'.")
        return running

    def _parse_predicate(self, cursor: Cursor, token: Token) -> Filter:
        predicate = predicate_from_string(token.text)
        if not self.compiler.supports(predicate):
            raise MetafindError(f"{token.text}: not implemented", error_type="not_implemented")
        argument = cursor.take_argument(token.text)
        return self.compiler.compile(predicate, argument)

    def _run_action(self, action: Action, filter_: Filter, argument: str | None) -> None:
        call = ActionCall(action, filter_, self.sorts.snapshot(), argument)
        self.actions.append(call)
        logger.debug("running %s with filter %s", action.value, RenderedFilter(filter_))
        if self.on_action is not None:
            self.on_action(call.action, call.filter, call.sorts, call.argument)


def compile_expression(
    args: Sequence[str],
    *,
    arena: FilterArena,
    compiler: PredicateCompiler | None = None,
    on_action: ActionCallback | None = None,
    now: int | None = None,
    umask: int = 0,
) -> CompiledQuery:
    """
    Compile a whole expression (the arguments following the URIs).

    Raises:
        UsageError: If the expression is malformed, including a ``)`` that
            closes nothing
    """
    if compiler is None:
        compiler = PredicateCompiler(arena, now=now, umask=umask)
    parser = ExpressionParser(arena, compiler, on_action=on_action)
    cursor = Cursor(args)

    filter_ = parser.parse(cursor)
    if not cursor.at_end:
        raise UsageError("invalid expression; you have too many ')'")

    logger.debug("compiled filter: %s", RenderedFilter(filter_))
    logger.debug("sort keys: %r", parser.sorts)
    return CompiledQuery(
        filter=filter_,
        sorts=parser.sorts.snapshot(),
        action_done=parser.action_done,
        actions=tuple(parser.actions),
    )
