"""Result snapshot sink — the incremental findings report on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from leaktrail.scanner.models import ResultSnapshot
from leaktrail.state.files import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes a ResultSnapshot as a single JSON document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self, repo: str) -> ResultSnapshot | None:
        """Return the stored snapshot, or None if absent or malformed."""
        if not self._path.exists():
            return None
        try:
            data = read_json(self._path)
            if not isinstance(data, dict):
                raise ValueError("snapshot document must be a JSON object")
            return ResultSnapshot.from_dict(data, repo=repo)
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Discarding unreadable snapshot %s: %s", self._path, e)
            return None

    def write(self, snapshot: ResultSnapshot) -> None:
        write_json_atomic(self._path, snapshot.to_dict())
