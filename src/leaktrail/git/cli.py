"""GitProvider backed by the ``git`` command-line client."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from leaktrail.git.base import CommitInfo, GitCommandError

logger = logging.getLogger(__name__)

# Unit separator between log fields; never appears in names or dates.
_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%an", "%ae", "%aI"])


class GitCli:
    """Runs git in a single working directory, one blocking call at a time."""

    def __init__(self, work_dir: str | Path, remote: str = "origin") -> None:
        self._work_dir = Path(work_dir)
        self._remote = remote

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    def clone(self, url: str) -> None:
        self._run(["clone", url, "."])

    def fetch(self) -> None:
        self._run(["fetch", "--prune", self._remote])

    def checkout(self, branch: str) -> None:
        self._run(["checkout", branch])

    def checkout_tracking(self, branch: str, remote_ref: str) -> None:
        self._run(["checkout", "-B", branch, remote_ref])

    def list_remote_branches(self) -> list[str]:
        output = self._run(["branch", "-r"])
        return [line.strip() for line in output.splitlines() if line.strip()]

    def remote_head_branch(self) -> str | None:
        try:
            output = self._run(
                ["symbolic-ref", f"refs/remotes/{self._remote}/HEAD"]
            )
        except GitCommandError as e:
            logger.debug("No symbolic HEAD for %s: %s", self._remote, e)
            return None
        match = re.search(
            rf"refs/remotes/{re.escape(self._remote)}/(.+)$", output.strip()
        )
        return match.group(1) if match else None

    def commit_log(self) -> list[CommitInfo]:
        output = self._run(["log", "--date-order", f"--format={_LOG_FORMAT}"])
        commits = []
        for line in output.splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 4:
                continue
            sha, name, email, date = parts
            commits.append(
                CommitInfo(sha=sha, author_name=name, author_email=email, date=date)
            )
        return commits

    def show_diff(self, sha: str) -> str:
        return self._run(["show", sha, "--unified=0", "--patch", "--no-color"])

    def _run(self, args: list[str]) -> str:
        logger.debug("git %s (in %s)", " ".join(args), self._work_dir)
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self._work_dir,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise GitCommandError(args, 127, f"git executable not found: {e}") from e
        if result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stderr)
        return result.stdout
