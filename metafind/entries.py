"""
Filesystem entry model and ``ls``-style rendering.

Backends materialize every known attribute of an entry; the compiler itself
never looks at entries, only the actions and the in-process filter evaluation do.
"""

from __future__ import annotations

import grp
import os
import pwd
import stat
import time
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _EntryModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


class Entry(_EntryModel):
    """
    Metadata of one filesystem entry.

    Timestamps are seconds since the epoch. ``mode`` carries both the file type
    and the permission bits, as ``st_mode`` does.
    """

    path: str | None = None
    name: str = ""
    mode: int = 0
    size: int = 0
    atime: int = 0
    mtime: int = 0
    ctime: int = 0
    ino: int = 0
    nlink: int = 1
    uid: int = 0
    gid: int = 0
    blocks: int = 0
    symlink: str | None = Field(None, description="Target of a symbolic link.")

    @property
    def file_type(self) -> int:
        return stat.S_IFMT(self.mode)

    @property
    def permissions(self) -> int:
        return stat.S_IMODE(self.mode)


def path_of(entry: Entry) -> str | None:
    return entry.path


_TYPE_LETTERS = (
    (stat.S_ISREG, "-"),
    (stat.S_ISDIR, "d"),
    (stat.S_ISLNK, "l"),
    (stat.S_ISCHR, "c"),
    (stat.S_ISBLK, "b"),
    (stat.S_ISFIFO, "p"),
    (stat.S_ISSOCK, "s"),
)

# (bit, set letter, letter when the special bit is set too, special bit)
_MODE_BITS = (
    (stat.S_IRUSR, "r", None, 0),
    (stat.S_IWUSR, "w", None, 0),
    (stat.S_IXUSR, "x", "sS", stat.S_ISUID),
    (stat.S_IRGRP, "r", None, 0),
    (stat.S_IWGRP, "w", None, 0),
    (stat.S_IXGRP, "x", "sS", stat.S_ISGID),
    (stat.S_IROTH, "r", None, 0),
    (stat.S_IWOTH, "w", None, 0),
    (stat.S_IXOTH, "x", "tT", stat.S_ISVTX),
)


def type_letter(mode: int) -> str:
    for predicate, letter in _TYPE_LETTERS:
        if predicate(mode):
            return letter
    return "?"


def mode_string(mode: int) -> str:
    """Render a mode the way ``ls -l`` does, e.g. ``drwxr-sr-t``."""
    chars = [type_letter(mode)]
    for bit, letter, special_letters, special_bit in _MODE_BITS:
        if special_letters is not None and mode & special_bit:
            chars.append(special_letters[0] if mode & bit else special_letters[1])
        else:
            chars.append(letter if mode & bit else "-")
    return "".join(chars)


def _user_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


class ListingFormatter:
    """
    Render entries in the ``find -ls`` layout (``ls -dils``).

    Column widths only ever grow, so that a long listing stays aligned once a
    wide value has been seen.
    """

    def __init__(self, *, posixly_correct: bool | None = None, now: float | None = None):
        if posixly_correct is None:
            posixly_correct = os.environ.get("POSIXLY_CORRECT") is not None
        self._posixly_correct = posixly_correct
        self._current_year = time.localtime(now).tm_year
        self._widths = {"ino": 10, "blocks": 10, "nlink": 5, "user": 10, "group": 10, "size": 10}

    def _column(self, key: str, value: object) -> str:
        text = str(value)
        self._widths[key] = max(self._widths[key], len(text))
        return text.rjust(self._widths[key])

    def _date(self, mtime: int) -> str:
        when = datetime.fromtimestamp(mtime)
        if when.year < self._current_year:
            return when.strftime("%b %e  %Y")
        return when.strftime("%b %e %H:%M")

    def format(self, entry: Entry) -> str:
        # st_blocks counts 512-byte units; ls reports 1K blocks unless POSIXLY_CORRECT
        blocks = entry.blocks if self._posixly_correct else entry.blocks // 2
        parts = [
            self._column("ino", entry.ino),
            self._column("blocks", blocks),
            mode_string(entry.mode),
            self._column("nlink", entry.nlink),
            self._column("user", _user_name(entry.uid)),
            self._column("group", _group_name(entry.gid)),
            self._column("size", entry.size),
            self._date(entry.mtime),
            path_of(entry) or "",
        ]
        line = " ".join(parts)
        if entry.symlink is not None:
            line += f" -> {entry.symlink}"
        return line
