"""
Filter tree built by the expression compiler.

A filter is either a comparison of one entry field against a value, or a
logical combination of filters. ``None`` stands for the empty filter, which
matches every entry, so ``AndExpression(None, x)`` is a valid node and
``NotExpression(None)`` matches nothing.

Nodes are immutable and may be shared: the ``-or`` rewrite references the same
left-hand subtree from two places, which makes the structure a DAG rather than
a tree. All nodes of one compilation are created through a ``FilterArena``.

Example:
    arena = FilterArena()
    txt = arena.regex(FilterField.NAME, "^.*\\.txt(?!\\n)$")
    big = arena.compare(FilterField.SIZE, FilterOperator.STRICTLY_GREATER, 1024)
    both = arena.and_(txt, big)
    both.matches(entry)
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .entries import Entry
from .exceptions import MetafindError


class FilterOperator(Enum):
    """Comparison and logical operators."""

    EQUAL = "=="
    STRICTLY_GREATER = ">"
    STRICTLY_LOWER = "<"
    BITS_ALL_SET = "&="
    BITS_ANY_SET = "&?"
    REGEX = "=~"

    AND = "and"
    OR = "or"
    NOT = "not"

    @property
    def is_logical(self) -> bool:
        return self in (FilterOperator.AND, FilterOperator.OR, FilterOperator.NOT)


class FilterField(Enum):
    """Entry attributes a filter or a sort can refer to."""

    NAME = "name"
    PATH = "path"
    TYPE = "type"
    MODE = "mode"
    SIZE = "size"
    ATIME = "atime"
    MTIME = "mtime"
    CTIME = "ctime"
    INO = "ino"
    NLINK = "nlink"
    UID = "uid"
    GID = "gid"
    BLOCKS = "blocks"

    def value_of(self, entry: Entry) -> Any:
        """Read this field off an entry."""
        return _FIELD_GETTERS[self](entry)


_FIELD_GETTERS: dict[FilterField, Callable[[Entry], Any]] = {
    FilterField.NAME: lambda e: e.name,
    FilterField.PATH: lambda e: e.path,
    FilterField.TYPE: lambda e: e.file_type,
    FilterField.MODE: lambda e: e.permissions,
    FilterField.SIZE: lambda e: e.size,
    FilterField.ATIME: lambda e: e.atime,
    FilterField.MTIME: lambda e: e.mtime,
    FilterField.CTIME: lambda e: e.ctime,
    FilterField.INO: lambda e: e.ino,
    FilterField.NLINK: lambda e: e.nlink,
    FilterField.UID: lambda e: e.uid,
    FilterField.GID: lambda e: e.gid,
    FilterField.BLOCKS: lambda e: e.blocks,
}


def _escape_string(value: str) -> str:
    result = value.replace("\\", "\\\\")
    result = result.replace('"', '\\"')
    result = result.replace("\n", "\\n")
    result = result.replace("\t", "\\t")
    return result


def _format_value(field: FilterField, value: Any) -> str:
    """Format a comparison operand for ``to_string``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if field in (FilterField.MODE, FilterField.TYPE):
            return oct(value)
        return str(value)
    if isinstance(value, bytes):
        return repr(value)
    return f'"{_escape_string(str(value))}"'


class FilterExpression(ABC):
    """Base class for filter nodes."""

    operator: FilterOperator

    @abstractmethod
    def to_string(self) -> str:
        """Render the filter for logs and debugging."""
        ...

    @abstractmethod
    def matches(self, entry: Entry) -> bool:
        """Evaluate the filter against one entry (in-process backends)."""
        ...

    def __str__(self) -> str:
        return self.to_string()


Filter = FilterExpression | None


def evaluate(filter_: Filter, entry: Entry) -> bool:
    """Evaluate a filter that may be the empty filter."""
    if filter_ is None:
        return True
    return filter_.matches(entry)


def render(filter_: Filter) -> str:
    if filter_ is None:
        return "true"
    return filter_.to_string()


class RenderedFilter:
    """Renders a filter only when converted to a string, e.g. by a log record."""

    __slots__ = ("filter",)

    def __init__(self, filter_: Filter) -> None:
        self.filter = filter_

    def __str__(self) -> str:
        return render(self.filter)


@dataclass(frozen=True, eq=False)
class FieldComparison(FilterExpression):
    """A comparison of one entry field against a value."""

    field: FilterField
    operator: FilterOperator
    value: Any
    case_insensitive: bool = False

    def __post_init__(self) -> None:
        if self.operator.is_logical:
            raise MetafindError(f"{self.operator.name} is not a comparison operator")

    def to_string(self) -> str:
        formatted_value = _format_value(self.field, self.value)
        suffix = "i" if self.case_insensitive else ""
        return f"{self.field.value} {self.operator.value} {formatted_value}{suffix}"

    def matches(self, entry: Entry) -> bool:
        actual = self.field.value_of(entry)
        if actual is None:
            return False

        op = self.operator
        if op is FilterOperator.REGEX:
            flags = re.IGNORECASE if self.case_insensitive else 0
            return re.search(self.value, str(actual), flags) is not None
        if op is FilterOperator.EQUAL:
            return bool(actual == self.value)
        if op is FilterOperator.STRICTLY_GREATER:
            return bool(actual > self.value)
        if op is FilterOperator.STRICTLY_LOWER:
            return bool(actual < self.value)
        if op is FilterOperator.BITS_ALL_SET:
            return actual & self.value == self.value
        if op is FilterOperator.BITS_ANY_SET:
            # As in find(1), a mask with no bits at all matches every entry
            return self.value == 0 or actual & self.value != 0
        raise MetafindError(f"Unsupported operator for in-process matching: {op.name}")


@dataclass(frozen=True, eq=False)
class AndExpression(FilterExpression):
    """Both children must match."""

    left: Filter
    right: Filter
    operator = FilterOperator.AND

    @property
    def children(self) -> tuple[Filter, Filter]:
        return (self.left, self.right)

    def to_string(self) -> str:
        return f"({render(self.left)}) & ({render(self.right)})"

    def matches(self, entry: Entry) -> bool:
        return evaluate(self.left, entry) and evaluate(self.right, entry)


@dataclass(frozen=True, eq=False)
class OrExpression(FilterExpression):
    """Either child must match."""

    left: Filter
    right: Filter
    operator = FilterOperator.OR

    @property
    def children(self) -> tuple[Filter, Filter]:
        return (self.left, self.right)

    def to_string(self) -> str:
        return f"({render(self.left)}) | ({render(self.right)})"

    def matches(self, entry: Entry) -> bool:
        return evaluate(self.left, entry) or evaluate(self.right, entry)


@dataclass(frozen=True, eq=False)
class NotExpression(FilterExpression):
    """Negation of its single child."""

    expr: Filter
    operator = FilterOperator.NOT

    @property
    def children(self) -> tuple[Filter]:
        return (self.expr,)

    def to_string(self) -> str:
        return f"!({render(self.expr)})"

    def matches(self, entry: Entry) -> bool:
        return not evaluate(self.expr, entry)


class FilterArena:
    """
    Owner of every filter node built during one compilation.

    Nodes are appended and never freed one by one; the whole arena is released
    once, when compilation and every action it triggered are over. Nothing can
    be built after that.
    """

    def __init__(self) -> None:
        self._nodes: list[FilterExpression] = []
        self._released = False

    def __len__(self) -> int:
        return len(self._nodes)

    def __enter__(self) -> FilterArena:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    @property
    def released(self) -> bool:
        return self._released

    def _push(self, node: FilterExpression) -> FilterExpression:
        if self._released:
            raise MetafindError("filter arena used after release")
        self._nodes.append(node)
        return node

    def compare(self, field: FilterField, operator: FilterOperator, value: Any) -> FieldComparison:
        node = FieldComparison(field, operator, value)
        self._push(node)
        return node

    def regex(
        self, field: FilterField, pattern: str, *, case_insensitive: bool = False
    ) -> FieldComparison:
        try:
            re.compile(pattern)
        except re.error as e:
            raise MetafindError(f"building a regex filter for {pattern}: {e}") from None
        node = FieldComparison(field, FilterOperator.REGEX, pattern, case_insensitive)
        self._push(node)
        return node

    def and_(self, left: Filter, right: Filter) -> AndExpression:
        node = AndExpression(left, right)
        self._push(node)
        return node

    def or_(self, left: Filter, right: Filter) -> OrExpression:
        node = OrExpression(left, right)
        self._push(node)
        return node

    def not_(self, expr: Filter) -> NotExpression:
        node = NotExpression(expr)
        self._push(node)
        return node

    def release(self) -> None:
        """Drop every node at once. Releasing twice is a no-op."""
        if self._released:
            return
        self._nodes.clear()
        self._released = True
