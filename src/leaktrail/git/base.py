"""GitProvider protocol — the version-control primitives the scanner consumes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class GitCommandError(Exception):
    """A git invocation exited non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        command = " ".join(["git", *self.command])
        super().__init__(f"`{command}` failed ({returncode}): {self.stderr}")


@dataclass(frozen=True)
class CommitInfo:
    """Metadata for one commit as reported by the log."""

    sha: str
    author_name: str
    author_email: str
    date: str

    @property
    def committer(self) -> str:
        return f"{self.author_name} <{self.author_email}>"


@runtime_checkable
class GitProvider(Protocol):
    """Protocol for a working copy the scanner can clone into and walk."""

    def clone(self, url: str) -> None:
        """Clone ``url`` into the provider's working directory."""
        ...

    def fetch(self) -> None:
        ...

    def checkout(self, branch: str) -> None:
        """Check out an existing branch. Raises GitCommandError if it can't."""
        ...

    def checkout_tracking(self, branch: str, remote_ref: str) -> None:
        """Create or reset ``branch`` to track ``remote_ref`` and check it out."""
        ...

    def list_remote_branches(self) -> list[str]:
        """Remote-qualified branch names, e.g. ``origin/main``."""
        ...

    def remote_head_branch(self) -> str | None:
        """Branch the remote's symbolic HEAD points at, if known."""
        ...

    def commit_log(self) -> list[CommitInfo]:
        """Commits reachable from HEAD, newest first."""
        ...

    def show_diff(self, sha: str) -> str:
        """Unified diff for a single commit with zero context lines."""
        ...
