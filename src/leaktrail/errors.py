"""Error hierarchy shared by the scan engine, CLI and web API."""

from __future__ import annotations


class LeakTrailError(Exception):
    """Base class for errors a caller is expected to handle."""

    status_code = 500


class BranchNotFound(LeakTrailError):
    """Requested branch exists neither locally nor as a remote-tracking ref."""

    status_code = 404

    def __init__(self, branch: str, repo_url: str = "") -> None:
        self.branch = branch
        self.repo_url = repo_url
        where = f" in {repo_url}" if repo_url else ""
        super().__init__(f'Branch "{branch}" does not exist{where}')


class CloneFailure(LeakTrailError):
    """The repository could not be cloned (bad URL or missing credentials)."""

    status_code = 404

    def __init__(self, repo_url: str, reason: str) -> None:
        self.repo_url = repo_url
        self.reason = reason
        super().__init__(f"Unable to clone repository {repo_url}: {reason}")


class NoBranchAvailable(LeakTrailError):
    """No usable branch could be determined by any fallback."""

    status_code = 422

    def __init__(self, repo_url: str = "") -> None:
        self.repo_url = repo_url
        super().__init__(f"Unable to determine a valid branch for {repo_url}")


class PatternError(ValueError):
    """A leak pattern definition is malformed."""
