"""
Predicate compilers.

Each compiler turns a predicate and its trailing argument into one filter
leaf (or a small subtree, for exact time matches). Malformed arguments raise
``UsageError`` with a message naming the predicate and the argument.
"""

from __future__ import annotations

import logging
import re
import stat
import time
from enum import Enum

from .exceptions import MetafindError, UsageError
from .filters import FilterArena, FilterExpression, FilterField, FilterOperator
from .globs import glob_to_regex
from .permissions import parse_permission
from .tokens import Predicate

logger = logging.getLogger(__name__)

# Largest number of seconds a time delta may amount to (an unsigned 64-bit value)
MAX_SECONDS = 2**64 - 1


class TimeUnit(Enum):
    """Granularity of a time predicate, in seconds."""

    SECOND = 1
    MINUTE = 60
    HOUR = 3600
    DAY = 86400


_TIME_PREDICATES: dict[Predicate, tuple[FilterField, TimeUnit]] = {
    Predicate.AMIN: (FilterField.ATIME, TimeUnit.MINUTE),
    Predicate.MMIN: (FilterField.MTIME, TimeUnit.MINUTE),
    Predicate.CMIN: (FilterField.CTIME, TimeUnit.MINUTE),
    Predicate.ATIME: (FilterField.ATIME, TimeUnit.DAY),
    Predicate.MTIME: (FilterField.MTIME, TimeUnit.DAY),
    Predicate.CTIME: (FilterField.CTIME, TimeUnit.DAY),
}

# predicate -> (field, case insensitive)
_PATTERN_PREDICATES: dict[Predicate, tuple[FilterField, bool]] = {
    Predicate.NAME: (FilterField.NAME, False),
    Predicate.INAME: (FilterField.NAME, True),
    Predicate.PATH: (FilterField.PATH, False),
    Predicate.IPATH: (FilterField.PATH, True),
    Predicate.WHOLENAME: (FilterField.PATH, False),
    Predicate.IWHOLENAME: (FilterField.PATH, True),
}

_REGEX_PREDICATES: dict[Predicate, bool] = {
    Predicate.REGEX: False,
    Predicate.IREGEX: True,
}

_FILE_TYPES = {
    "b": stat.S_IFBLK,
    "c": stat.S_IFCHR,
    "d": stat.S_IFDIR,
    "f": stat.S_IFREG,
    "l": stat.S_IFLNK,
    "p": stat.S_IFIFO,
    "s": stat.S_IFSOCK,
}

# Without a suffix, -size counts 512-byte blocks
_SIZE_UNITS = {
    "c": 1,
    "w": 2,
    "b": 512,
    "k": 1024,
    "M": 1024**2,
    "G": 1024**3,
    "T": 1024**4,
}
_DEFAULT_SIZE_UNIT = "b"

_SUPPORTED = frozenset(
    [*_TIME_PREDICATES, *_PATTERN_PREDICATES, *_REGEX_PREDICATES]
    + [Predicate.TYPE, Predicate.SIZE, Predicate.PERM]
)

_DELTA_RE = re.compile(r"([+-]?)([0-9]+)")
_SIZE_RE = re.compile(r"([+-]?)([0-9]+)([a-zA-Z]?)")


def str_to_seconds(text: str, unit: TimeUnit) -> int:
    """
    Convert a non-negative integer count of ``unit`` to seconds.

    Raises:
        ValueError: If ``text`` is not a plain decimal number, or the result
            does not fit in an unsigned 64-bit integer
    """
    if not text.isascii() or not text.isdigit():
        raise ValueError(f"not a number: {text!r}")
    seconds = int(text) * unit.value
    if seconds > MAX_SECONDS:
        raise ValueError(f"{text} {unit.name.lower()}s is out of range")
    return seconds


class PredicateCompiler:
    """
    Compile predicates into filters allocated from ``arena``.

    ``now`` is read once, when the compiler is created, so every time predicate
    of one command line shares the same reference point.
    """

    def __init__(self, arena: FilterArena, *, now: int | None = None, umask: int = 0):
        self.arena = arena
        self.now = int(time.time()) if now is None else now
        self.umask = umask

    @staticmethod
    def supports(predicate: Predicate) -> bool:
        return predicate in _SUPPORTED

    def compile(self, predicate: Predicate, argument: str) -> FilterExpression:
        if predicate in _TIME_PREDICATES:
            field, unit = _TIME_PREDICATES[predicate]
            return self.time_delta(predicate, field, unit, argument)
        if predicate in _PATTERN_PREDICATES:
            field, case_insensitive = _PATTERN_PREDICATES[predicate]
            return self.shell_pattern(field, argument, case_insensitive=case_insensitive)
        if predicate in _REGEX_PREDICATES:
            return self.regex(argument, case_insensitive=_REGEX_PREDICATES[predicate])
        if predicate is Predicate.TYPE:
            return self.file_type(argument)
        if predicate is Predicate.SIZE:
            return self.size(argument)
        if predicate is Predicate.PERM:
            return self.permission(argument)
        raise MetafindError(f"{predicate.value}: not implemented", error_type="not_implemented")

    def time_delta(
        self, predicate: Predicate, field: FilterField, unit: TimeUnit, argument: str
    ) -> FilterExpression:
        """
        ``+N``: more than N units ago. ``-N``: less than N units ago.
        ``N``: within half a unit of exactly N units ago.
        """
        match = _DELTA_RE.fullmatch(argument)
        if match is None:
            raise UsageError(f"invalid argument `{argument}' to `{predicate.value}'")
        sign, digits = match.groups()
        try:
            delta = str_to_seconds(digits, unit)
        except ValueError as e:
            raise UsageError(f"invalid argument `{argument}' to `{predicate.value}': {e}") from None

        then = self.now - delta
        if sign == "+":
            return self.arena.compare(field, FilterOperator.STRICTLY_LOWER, then)
        if sign == "-":
            return self.arena.compare(field, FilterOperator.STRICTLY_GREATER, then)

        half = unit.value // 2
        low = self.arena.compare(field, FilterOperator.STRICTLY_GREATER, then - half)
        high = self.arena.compare(field, FilterOperator.STRICTLY_LOWER, then + half)
        return self.arena.and_(low, high)

    def size(self, argument: str) -> FilterExpression:
        match = _SIZE_RE.fullmatch(argument)
        if match is None:
            raise UsageError(f"invalid argument `{argument}' to `-size'")
        sign, digits, suffix = match.groups()
        unit = _SIZE_UNITS.get(suffix or _DEFAULT_SIZE_UNIT)
        if unit is None:
            raise UsageError(f"invalid -size unit `{suffix}' in `{argument}'")

        size = int(digits) * unit
        if sign == "+":
            operator = FilterOperator.STRICTLY_GREATER
        elif sign == "-":
            operator = FilterOperator.STRICTLY_LOWER
        else:
            operator = FilterOperator.EQUAL
        return self.arena.compare(FilterField.SIZE, operator, size)

    def file_type(self, argument: str) -> FilterExpression:
        if len(argument) != 1:
            raise UsageError("arguments to -type should only contain one letter")
        file_type = _FILE_TYPES.get(argument)
        if file_type is None:
            raise UsageError(f"unknown argument to -type: {argument}")
        return self.arena.compare(FilterField.TYPE, FilterOperator.EQUAL, file_type)

    def shell_pattern(
        self, field: FilterField, pattern: str, *, case_insensitive: bool = False
    ) -> FilterExpression:
        regex = glob_to_regex(pattern)
        logger.debug("translated glob %r into %r", pattern, regex)
        return self.arena.regex(field, regex, case_insensitive=case_insensitive)

    def regex(self, pattern: str, *, case_insensitive: bool = False) -> FilterExpression:
        try:
            re.compile(pattern)
        except re.error as e:
            raise UsageError(f"invalid regular expression `{pattern}': {e}") from None
        anchored = f"^(?:{pattern})(?!\n)$"
        return self.arena.regex(FilterField.PATH, anchored, case_insensitive=case_insensitive)

    def permission(self, argument: str) -> FilterExpression:
        parsed = parse_permission(argument, umask=self.umask)
        return self.arena.compare(FilterField.MODE, parsed.operator, parsed.mode)
