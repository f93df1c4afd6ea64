"""Backend walking a live directory tree."""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterator

from ..entries import Entry
from ..exceptions import BackendError
from .base import Backend

logger = logging.getLogger(__name__)


def entry_from_stat(path: str, name: str, st: os.stat_result) -> Entry:
    symlink = None
    if stat.S_ISLNK(st.st_mode):
        try:
            symlink = os.readlink(path)
        except OSError as e:
            logger.warning("cannot read link '%s': %s", path, e.strerror)
    return Entry(
        path=path,
        name=name,
        mode=st.st_mode,
        size=st.st_size,
        atime=int(st.st_atime),
        mtime=int(st.st_mtime),
        ctime=int(st.st_ctime),
        ino=st.st_ino,
        nlink=st.st_nlink,
        uid=st.st_uid,
        gid=st.st_gid,
        blocks=getattr(st, "st_blocks", 0),
        symlink=symlink,
    )


class PosixBackend(Backend):
    """
    Every entry under ``root``, root included, without following symlinks.

    Unreadable directories are reported and skipped, the way find(1) does.
    """

    name = "posix"

    def __init__(self, root: str) -> None:
        super().__init__()
        try:
            self._root_stat = os.lstat(root)
        except OSError as e:
            raise BackendError(f"cannot access '{root}': {e.strerror}") from e
        self.root = root

    def entries(self) -> Iterator[Entry]:
        root_name = os.path.basename(self.root.rstrip(os.sep)) or self.root
        yield entry_from_stat(self.root, root_name, self._root_stat)
        if not stat.S_ISDIR(self._root_stat.st_mode):
            return

        stack = [self.root]
        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    children = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning("cannot read directory '%s': %s", directory, e.strerror)
                continue

            subdirs: list[str] = []
            for child in children:
                try:
                    st = child.stat(follow_symlinks=False)
                except OSError as e:
                    logger.warning("cannot access '%s': %s", child.path, e.strerror)
                    continue
                yield entry_from_stat(child.path, child.name, st)
                if stat.S_ISDIR(st.st_mode):
                    subdirs.append(child.path)
            # Depth-first, in name order
            stack.extend(reversed(subdirs))
