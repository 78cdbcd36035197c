"""Branch resolution — default-branch fallback chain, enumeration, checkout."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from leaktrail.errors import BranchNotFound, NoBranchAvailable
from leaktrail.git.base import GitCommandError, GitProvider

logger = logging.getLogger(__name__)


class BranchResolver:
    """Decides which branches to scan and positions the working tree on them."""

    def __init__(
        self,
        git: GitProvider,
        repo_url: str = "",
        remote: str = "origin",
    ) -> None:
        self._git = git
        self._repo_url = repo_url
        self._remote = remote
        self.default_branch: str | None = None

    def resolve_default_branch(
        self,
        preferred: str | None,
        explicit: Sequence[str] = (),
    ) -> str:
        """Check out the preferred branch, else remote HEAD, else the first candidate."""
        if preferred:
            try:
                self._git.checkout(preferred)
                self.default_branch = preferred
                return preferred
            except GitCommandError:
                logger.warning(
                    'Default branch "%s" missing, trying remote HEAD fallback',
                    preferred,
                )

        head = self._git.remote_head_branch()
        if head:
            logger.info("Remote HEAD points to %s, checking it out", head)
            self.checkout_branch(head)
            self.default_branch = head
            return head

        candidates = list(explicit) or self._remote_branches()
        if candidates:
            first = candidates[0]
            logger.info('Falling back to first available branch "%s"', first)
            self.checkout_branch(first)
            self.default_branch = first
            return first

        raise NoBranchAvailable(self._repo_url)

    def list_scan_branches(self, explicit: Sequence[str] = ()) -> list[str]:
        """Branches to scan, in order.

        An explicit list is returned verbatim, duplicates included.
        """
        if explicit:
            return list(explicit)
        branches = self._remote_branches()
        if branches:
            return branches
        return [self.default_branch] if self.default_branch else []

    def has_remote_branch(self, branch: str) -> bool:
        target = f"{self._remote}/{branch}"
        return any(name == target for name in self._git.list_remote_branches())

    def checkout_branch(self, branch: str) -> None:
        """Check out ``branch``, creating a tracking branch if only the remote has it."""
        try:
            self._git.checkout(branch)
            return
        except GitCommandError as e:
            logger.debug("Direct checkout of %s failed: %s", branch, e)

        if self.has_remote_branch(branch):
            self._git.checkout_tracking(branch, f"{self._remote}/{branch}")
            return
        raise BranchNotFound(branch, self._repo_url)

    def _remote_branches(self) -> list[str]:
        prefix = f"{self._remote}/"
        names = [
            name[len(prefix) :]
            for name in self._git.list_remote_branches()
            if name.startswith(prefix)
            and "->" not in name
            and not name.endswith("/HEAD")
        ]
        # dict preserves first-seen order
        return list(dict.fromkeys(names))
