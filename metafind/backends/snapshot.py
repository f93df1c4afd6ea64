"""
Backend over a metadata snapshot: a JSON-lines file with one entry per line.

Example line:
    {"path": "/data/a.txt", "name": "a.txt", "mode": 33188, "size": 12, "mtime": 1700000000}
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from ..entries import Entry
from ..exceptions import BackendError
from .base import MemoryBackend


def load_snapshot(filepath: str | Path) -> list[Entry]:
    """
    Read every entry of a snapshot file.

    Raises:
        BackendError: If the file cannot be read or a line is not a valid entry
    """
    path = Path(filepath)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BackendError(f"cannot read snapshot '{path}': {e}") from None

    entries: list[Entry] = []
    for lineno, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            entries.append(Entry.model_validate_json(line))
        except ValidationError as e:
            errors = e.errors()
            if len(errors) == 1:
                err = errors[0]
                location = ".".join(str(loc) for loc in err["loc"]) or "entry"
                message = f"{location}: {err['msg']}"
            else:
                message = f"{len(errors)} validation errors"
            raise BackendError(
                f"{path}:{lineno}: invalid entry ({message})",
                details={"file": str(path), "line": lineno},
            ) from None
    return entries


class SnapshotBackend(MemoryBackend):
    name = "snapshot"

    def __init__(self, filepath: str) -> None:
        super().__init__(load_snapshot(filepath))
        self.filepath = filepath
