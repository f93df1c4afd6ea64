"""Shell glob to regular expression translation."""

from __future__ import annotations

import string

# Characters that are literal in a glob but special in a regex
_REGEX_SPECIALS = frozenset(".|+(){}^$")
# Characters that keep their backslash when escaped in the glob
_ESCAPABLE = frozenset("*?[]\\") | _REGEX_SPECIALS

_ANCHOR_START = "^"
_ANCHOR_END = "(?!\n)$"

# POSIX character classes, as the contents of a regex set
_CHARACTER_CLASSES = {
    "alnum": "a-zA-Z0-9",
    "alpha": "a-zA-Z",
    "blank": " \\t",
    "cntrl": "\\x00-\\x1f\\x7f",
    "digit": "0-9",
    "graph": "\\x21-\\x7e",
    "lower": "a-z",
    "print": "\\x20-\\x7e",
    "punct": "".join("\\" + ch for ch in string.punctuation),
    "space": " \\t\\n\\r\\f\\v",
    "upper": "A-Z",
    "xdigit": "0-9A-Fa-f",
}


def _class_end(glob: str, start: int) -> int:
    """Index just past the ``[:name:]`` starting at ``start``, or -1 if there is none."""
    if not glob.startswith("[:", start):
        return -1
    close = glob.find(":]", start + 2)
    if close < 0 or glob[start + 2 : close] not in _CHARACTER_CLASSES:
        return -1
    return close + 2


def _bracket_end(glob: str, start: int) -> int:
    """
    Index of the ``]`` closing the bracket expression opened at ``start``.

    A ``]`` right after ``[`` or ``[!`` is part of the set, and so is any
    ``]`` ending a ``[:class:]``. Returns -1 when the bracket is never closed,
    in which case the ``[`` is a literal character.
    """
    i = start + 1
    if i < len(glob) and glob[i] in "!^":
        i += 1
    if i < len(glob) and glob[i] == "]":
        i += 1
    while i < len(glob):
        if glob[i] == "\\":
            i += 2
            continue
        if glob[i] == "]":
            return i
        class_end = _class_end(glob, i)
        i = class_end if class_end >= 0 else i + 1
    return -1


def _translate_bracket(content: str) -> str:
    parts = ["["]
    i = 0
    if content[:1] == "!":
        parts.append("^")
        i = 1
    while i < len(content):
        if content[i] == "\\":
            parts.append(content[i : i + 2])
            i += 2
            continue
        class_end = _class_end(content, i)
        if class_end >= 0:
            parts.append(_CHARACTER_CLASSES[content[i + 2 : class_end - 2]])
            i = class_end
            continue
        parts.append("\\[" if content[i] == "[" else content[i])
        i += 1
    parts.append("]")
    return "".join(parts)


def glob_to_regex(glob: str) -> str:
    """
    Translate a shell glob into an anchored regular expression.

    ``*`` matches any run of characters and ``?`` any single one. Bracket
    expressions are already regex sets and are kept as they are, except that a
    leading ``!`` becomes ``^`` and POSIX classes such as ``[:digit:]`` are
    spelled out. A backslash escapes the next character; before an ordinary
    character it is meaningless and dropped.

    Every string is a valid glob, so this never fails.

    Example:
        >>> glob_to_regex("*.txt")
        '^.*\\\\.txt(?!\\n)$'
    """
    parts = [_ANCHOR_START]
    escaped = False
    i = 0
    while i < len(glob):
        ch = glob[i]
        if escaped:
            parts.append("\\" + ch if ch in _ESCAPABLE else ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            end = _bracket_end(glob, i)
            if end < 0:
                parts.append("\\[")
            else:
                parts.append(_translate_bracket(glob[i + 1 : end]))
                i = end
        elif ch == "]" or ch in _REGEX_SPECIALS:
            parts.append("\\" + ch)
        else:
            parts.append(ch)
        i += 1

    if escaped:
        # A trailing backslash escapes nothing: keep it as a literal
        parts.append("\\\\")
    parts.append(_ANCHOR_END)
    return "".join(parts)
