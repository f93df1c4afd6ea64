"""
Permission mode grammar for ``-perm``.

Two notations are accepted:

- octal, e.g. ``644`` or ``04755``: at most ``07777``;
- symbolic, as understood by chmod(1): a comma separated list of clauses
  ``[ugoa]*[+-=]([ugo]|[rwxXst]*)``, applied left to right, each clause seeing
  the mode produced by the previous ones.

``parse_permission`` also handles the ``/`` (any bit set) and ``-`` (all bits
set) prefixes of ``-perm``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .exceptions import UsageError
from .filters import FilterOperator

MAX_MODE = 0o7777

_OCTAL_RE = re.compile(r"[0-7]+")

_CLASS_SHIFTS = {"u": 6, "g": 3, "o": 0}
_SPECIAL_BITS = {"u": 0o4000, "g": 0o2000}
_STICKY = 0o1000
_EXECUTE_ANY = 0o111

_WHO_LETTERS = "ugoa"
_OPERATORS = "+-="
_PERM_BITS = {"r": 4, "w": 2, "x": 1}


@dataclass(frozen=True, slots=True)
class PermissionSpec:
    """A parsed ``-perm`` argument."""

    mode: int
    operator: FilterOperator


def _parse_octal(text: str) -> int:
    if _OCTAL_RE.fullmatch(text) is None:
        raise UsageError(f"invalid mode: {text}")
    mode = int(text, 8)
    if mode > MAX_MODE:
        raise UsageError(f"invalid mode: {text}")
    return mode


class _SymbolicParser:
    """Cursor over a symbolic mode string."""

    def __init__(self, text: str, *, umask: int):
        self.text = text
        self.pos = 0
        self.umask = umask & 0o777

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _error(self, reason: str) -> UsageError:
        return UsageError(f"invalid mode: {self.text} ({reason} at position {self.pos})")

    def parse(self, mode: int) -> int:
        while True:
            mode = self._clause(mode)
            if self._peek() == "":
                return mode
            # _clause only returns on "," or end of input
            self.pos += 1

    def _clause(self, mode: int) -> int:
        who: set[str] = set()
        all_ = False
        while self._peek() and self._peek() in _WHO_LETTERS:
            letter = self._peek()
            if letter == "a":
                all_ = True
                who.update(_CLASS_SHIFTS)
            else:
                who.add(letter)
            self.pos += 1

        op = self._peek()
        if not op or op not in _OPERATORS:
            raise self._error("expected one of '+', '-', '='")
        self.pos += 1

        implicit = not who
        classes = set(_CLASS_SHIFTS) if implicit else who

        perm = self._copy_perm(classes, mode)
        if perm is None:
            perm = self._perm_letters(classes, mode, implicit=implicit, all_=all_, who=who)

        if self._peek() not in ("", ","):
            raise self._error(f"unexpected '{self._peek()}'")

        if implicit:
            perm &= ~self.umask

        if op == "+":
            return mode | perm
        if op == "-":
            return mode & ~perm

        cleared = 0
        for letter in classes:
            cleared |= 0o7 << _CLASS_SHIFTS[letter]
            cleared |= _SPECIAL_BITS.get(letter, 0)
        if implicit or all_:
            cleared |= _STICKY
        if implicit:
            cleared &= ~self.umask
        return (mode & ~cleared) | perm

    def _copy_perm(self, classes: set[str], mode: int) -> int | None:
        """Handle ``u``, ``g`` or ``o`` as the permission: copy that class's bits."""
        source = self._peek()
        if not source or source not in _CLASS_SHIFTS:
            return None
        self.pos += 1
        bits = (mode >> _CLASS_SHIFTS[source]) & 0o7
        perm = 0
        for letter in classes:
            perm |= bits << _CLASS_SHIFTS[letter]
        return perm

    def _perm_letters(
        self, classes: set[str], mode: int, *, implicit: bool, all_: bool, who: set[str]
    ) -> int:
        perm = 0
        while True:
            letter = self._peek()
            if letter in _PERM_BITS:
                for cls in classes:
                    perm |= _PERM_BITS[letter] << _CLASS_SHIFTS[cls]
            elif letter == "X":
                # Only when some execute bit is already set, anywhere in the mode
                if mode & _EXECUTE_ANY:
                    for cls in classes:
                        perm |= 1 << _CLASS_SHIFTS[cls]
            elif letter == "s":
                # Ignored, not an error, for "o" alone
                if who != {"o"}:
                    for cls in classes:
                        perm |= _SPECIAL_BITS.get(cls, 0)
            elif letter == "t":
                if implicit or all_:
                    perm |= _STICKY
            else:
                return perm
            self.pos += 1


def parse_mode(text: str, *, mode: int = 0, umask: int = 0) -> int:
    """
    Parse an octal or symbolic mode.

    Args:
        text: The mode, e.g. ``"644"`` or ``"u=rw,go=r"``
        mode: Starting mode symbolic clauses are applied to
        umask: Bits left alone by clauses that name no class

    Returns:
        The resulting 12-bit mode

    Raises:
        UsageError: If ``text`` is not a valid mode
    """
    if not text:
        raise UsageError(
            "arguments to -perm should contain at least one digit or a symbolic mode"
        )
    if text[0].isdigit():
        return _parse_octal(text)
    return _SymbolicParser(text, umask=umask).parse(mode & MAX_MODE) & MAX_MODE


def parse_permission(argument: str, *, umask: int = 0) -> PermissionSpec:
    """Parse a ``-perm`` argument, with its optional ``/`` or ``-`` prefix."""
    operator = FilterOperator.EQUAL
    text = argument
    if text[:1] == "/":
        operator = FilterOperator.BITS_ANY_SET
        text = text[1:]
    elif text[:1] == "-":
        operator = FilterOperator.BITS_ALL_SET
        text = text[1:]
    return PermissionSpec(parse_mode(text, umask=umask), operator)
