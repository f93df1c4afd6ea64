"""
Command line token classifier.

Maps one raw argument to the kind of token it most likely represents. The
classifier only reports: it never raises, and unknown strings come back as
``TokenKind.URI``. Deciding whether a URI is legal at a given position is the
caller's job.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from itertools import takewhile

from .exceptions import UsageError


class TokenKind(Enum):
    """Semantic kind of a command line argument."""

    URI = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    PAREN_OPEN = auto()
    PAREN_CLOSE = auto()
    PREDICATE = auto()
    ACTION = auto()
    SORT = auto()
    SORT_DESCENDING = auto()


class Predicate(Enum):
    """Every predicate keyword understood by the classifier."""

    AMIN = "-amin"
    ANEWER = "-anewer"
    ATIME = "-atime"
    CMIN = "-cmin"
    CNEWER = "-cnewer"
    CONTEXT = "-context"
    CTIME = "-ctime"
    EMPTY = "-empty"
    EXECUTABLE = "-executable"
    FALSE = "-false"
    FSTYPE = "-fstype"
    GID = "-gid"
    GROUP = "-group"
    ILNAME = "-ilname"
    INAME = "-iname"
    INUM = "-inum"
    IPATH = "-ipath"
    IREGEX = "-iregex"
    IWHOLENAME = "-iwholename"
    LINKS = "-links"
    LNAME = "-lname"
    MMIN = "-mmin"
    MTIME = "-mtime"
    NAME = "-name"
    NEWER = "-newer"
    NEWERXY = "-newerXY"
    NOGROUP = "-nogroup"
    NOUSER = "-nouser"
    PATH = "-path"
    PERM = "-perm"
    READABLE = "-readable"
    REGEX = "-regex"
    SAMEFILE = "-samefile"
    SIZE = "-size"
    TRUE = "-true"
    TYPE = "-type"
    UID = "-uid"
    USED = "-used"
    USER = "-user"
    WHOLENAME = "-wholename"
    WRITABLE = "-writable"
    XTYPE = "-xtype"


class Action(Enum):
    """Every action keyword understood by the classifier."""

    COUNT = "-count"
    DELETE = "-delete"
    EXEC = "-exec"
    EXECDIR = "-execdir"
    FLS = "-fls"
    FPRINT = "-fprint"
    FPRINT0 = "-fprint0"
    FPRINTF = "-fprintf"
    LS = "-ls"
    OK = "-ok"
    OKDIR = "-okdir"
    PRINT = "-print"
    PRINT0 = "-print0"
    PRINTF = "-printf"
    PRUNE = "-prune"
    QUIT = "-quit"

    @property
    def takes_argument(self) -> bool:
        """Whether the action consumes the next argument (an output file)."""
        return self in _FILE_ACTIONS


_FILE_ACTIONS = frozenset([Action.FLS, Action.FPRINT, Action.FPRINT0])

_OPERATORS: dict[str, TokenKind] = {
    "-and": TokenKind.AND,
    "-a": TokenKind.AND,
    "-or": TokenKind.OR,
    "-o": TokenKind.OR,
    "-not": TokenKind.NOT,
    "!": TokenKind.NOT,
    "(": TokenKind.PAREN_OPEN,
    ")": TokenKind.PAREN_CLOSE,
}

_SORTS: dict[str, TokenKind] = {
    "-sort": TokenKind.SORT,
    "-rsort": TokenKind.SORT_DESCENDING,
}

_PREDICATES = {p.value: p for p in Predicate if p is not Predicate.NEWERXY}
_ACTIONS = {a.value: a for a in Action}

# -newerXY: X and Y name a timestamp of the entry or a literal time
_NEWER_PREFIX = "-newer"
_NEWER_LETTERS = frozenset("aBcmt")


@dataclass(frozen=True, slots=True)
class Token:
    """One classified argument."""

    kind: TokenKind
    text: str
    predicate: Predicate | None = None
    action: Action | None = None

    @property
    def name(self) -> str:
        return self.text


def _is_newerxy(arg: str) -> bool:
    if not arg.startswith(_NEWER_PREFIX) or len(arg) != len(_NEWER_PREFIX) + 2:
        return False
    x, y = arg[-2], arg[-1]
    # "t" only makes sense as the reference side
    return x in _NEWER_LETTERS and x != "t" and y in _NEWER_LETTERS


def classify(arg: str) -> Token:
    """
    Classify a command line argument.

    Operators win over everything else, then sort directives, then predicate and
    action keywords. Anything else is reported as a URI.
    """
    kind = _OPERATORS.get(arg) or _SORTS.get(arg)
    if kind is not None:
        return Token(kind, arg)

    predicate = _PREDICATES.get(arg)
    if predicate is not None:
        return Token(TokenKind.PREDICATE, arg, predicate=predicate)

    action = _ACTIONS.get(arg)
    if action is not None:
        return Token(TokenKind.ACTION, arg, action=action)

    if _is_newerxy(arg):
        return Token(TokenKind.PREDICATE, arg, predicate=Predicate.NEWERXY)

    return Token(TokenKind.URI, arg)


def split_uris(args: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split the leading run of URIs from the expression that follows them."""
    uris = list(takewhile(lambda arg: classify(arg).kind is TokenKind.URI, args))
    return uris, list(args[len(uris) :])


def predicate_from_string(text: str) -> Predicate:
    """Convert a predicate keyword, failing with a usage error if unknown."""
    token = classify(text)
    if token.predicate is None:
        raise UsageError(f"unknown predicate `{text}'")
    return token.predicate


def action_from_string(text: str) -> Action:
    """Convert an action keyword, failing with a usage error if unknown."""
    action = _ACTIONS.get(text)
    if action is None:
        raise UsageError(f"unknown action `{text}'")
    return action
