"""
metafind: find(1)-style queries over filesystem metadata backends.

Example:
    from metafind import FilterArena, compile_expression

    with FilterArena() as arena:
        query = compile_expression(["-name", "*.txt", "-size", "+1M"], arena=arena)
        print(query.filter)
"""

from __future__ import annotations

from .actions import ActionRunner, QuitRequested
from .entries import Entry
from .exceptions import ActionError, BackendError, MetafindError, TryAgain, UsageError
from .filters import FilterArena, FilterExpression, FilterField, FilterOperator
from .find import find
from .parser import CompiledQuery, compile_expression
from .sorting import SortEntry, SortList
from .tokens import Action, Predicate, Token, TokenKind, classify

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionError",
    "ActionRunner",
    "BackendError",
    "CompiledQuery",
    "Entry",
    "FilterArena",
    "FilterExpression",
    "FilterField",
    "FilterOperator",
    "MetafindError",
    "Predicate",
    "QuitRequested",
    "SortEntry",
    "SortList",
    "Token",
    "TokenKind",
    "TryAgain",
    "UsageError",
    "__version__",
    "classify",
    "compile_expression",
    "find",
]
