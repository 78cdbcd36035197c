"""Checkpoint store — branch name to last fully processed commit."""

from __future__ import annotations

import logging
from pathlib import Path

from leaktrail.scanner.models import BranchCheckpoint, ScanState
from leaktrail.state.files import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class CheckpointStore:
    """In-memory ScanState, flushed to disk after every mutation.

    The file exists only while at least one branch has pending work.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._state = self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def branches(self) -> dict[str, BranchCheckpoint]:
        return dict(self._state.branches)

    def reload(self) -> None:
        """Re-read the file, dropping whatever this instance holds in memory."""
        self._state = self._load()

    def is_empty(self) -> bool:
        return not self._state.branches

    def get(self, branch: str) -> BranchCheckpoint | None:
        return self._state.branches.get(branch)

    def put(self, branch: str, checkpoint: BranchCheckpoint) -> None:
        self._state.branches[branch] = checkpoint
        self._flush()

    def clear(self, branch: str) -> None:
        if branch not in self._state.branches:
            return
        del self._state.branches[branch]
        if self._state.branches:
            self._flush()
        else:
            self.clear_all()

    def clear_all(self) -> None:
        self._state.branches.clear()
        self._path.unlink(missing_ok=True)

    def _flush(self) -> None:
        write_json_atomic(self._path, self._state.to_dict())

    def _load(self) -> ScanState:
        if not self._path.exists():
            return ScanState()
        try:
            data = read_json(self._path)
            if not isinstance(data, dict):
                raise ValueError("checkpoint document must be a JSON object")
            return ScanState.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(
                "Discarding unreadable checkpoint file %s: %s", self._path, e
            )
            return ScanState()
