"""Scan engine — clones a repository and walks each branch's history."""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

from leaktrail.config import GitAuth, RepoConfig, ScanConfig
from leaktrail.errors import CloneFailure
from leaktrail.git.base import CommitInfo, GitCommandError, GitProvider
from leaktrail.git.cli import GitCli
from leaktrail.scanner.branches import BranchResolver
from leaktrail.scanner.matcher import find_leaks
from leaktrail.scanner.models import (
    BranchCheckpoint,
    BranchScanResult,
    ResultSnapshot,
    ScanResult,
)
from leaktrail.state.checkpoints import CheckpointStore
from leaktrail.state.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

GitFactory = Callable[[Path], GitProvider]


class ScanOrchestrator:
    """Coordinates cloning, branch traversal, checkpointing, and leak detection.

    Each branch goes Resuming -> Walking -> Capped or Exhausted. After every
    commit the snapshot is written first and the checkpoint advanced second,
    so a checkpoint never points past findings that are not on disk.
    """

    def __init__(
        self,
        repo_config: RepoConfig,
        scan_config: ScanConfig,
        checkpoints: CheckpointStore | None = None,
        snapshots: SnapshotStore | None = None,
        auth: GitAuth | None = None,
        git_factory: GitFactory | None = None,
    ) -> None:
        self._repo = repo_config
        self._scan = scan_config
        self._checkpoints = checkpoints or CheckpointStore(scan_config.state_file)
        self._snapshots = snapshots or SnapshotStore(scan_config.output_file)
        self._auth = auth or GitAuth()
        self._git_factory = git_factory or GitCli
        self._snapshot = ResultSnapshot(repo=repo_config.repo_url)
        self._work_dir: Path | None = None

    @property
    def snapshot(self) -> ResultSnapshot:
        return self._snapshot

    @property
    def work_dir(self) -> Path | None:
        return self._work_dir

    def scan(self) -> ScanResult:
        """Clone, scan every selected branch, and return the run's aggregate."""
        logger.info("Initializing scan of %s", self._repo.repo_url)
        self._work_dir = None
        self._checkpoints.reload()
        self._load_snapshot()

        result = ScanResult(repo=self._repo.repo_url, snapshot=self._snapshot)
        try:
            self._work_dir = Path(tempfile.mkdtemp(prefix="leaktrail-"))
            git = self._git_factory(self._work_dir)
            resolver = BranchResolver(git, repo_url=self._repo.repo_url)
            self._prepare_repo(git, resolver)

            branches = resolver.list_scan_branches(self._repo.branches)
            result.branches = list(branches)
            if not branches:
                logger.warning("No branches found to scan")

            for branch in branches:
                logger.info("Scanning branch %s", branch)
                resolver.checkout_branch(branch)
                branch_result = self.scan_branch(git, branch)

                result.findings.extend(branch_result.findings)
                result.processed_commits += branch_result.processed_commits
                if branch_result.completed:
                    result.branch_placeholders.pop(branch, None)
                else:
                    result.branch_placeholders[branch] = branch_result.last_sha

            self._snapshots.write(self._snapshot)
            logger.info(
                "Scan completed: %d commits, %d new findings",
                result.processed_commits,
                len(result.findings),
            )
            return result
        finally:
            if self._repo.remove_clone_on_exit:
                self._cleanup()

    def scan_branch(self, git: GitProvider, branch: str) -> BranchScanResult:
        """Walk one branch newest to oldest, checkpointing after each commit."""
        resume_sha = self._resume_boundary(branch)

        commits = git.commit_log()
        logger.info("Loaded %d commits from %s", len(commits), branch)
        start = _start_index(commits, resume_sha, branch)

        result = BranchScanResult(branch=branch, last_sha=resume_sha)
        limit = self._repo.max_commits_per_run
        pending = commits[start:]
        if limit is not None and len(pending) > limit:
            to_process = pending[:limit]
            result.completed = False
        else:
            to_process = pending
            result.completed = True

        for commit in to_process:
            self._process_commit(git, branch, commit, result)

        if result.completed:
            self._checkpoints.clear(branch)
            self._snapshot.branch_placeholders.pop(branch, None)
            self._snapshots.write(self._snapshot)
            logger.info("Branch %s fully scanned", branch)
        else:
            logger.info(
                "Branch %s capped after %d commits; will resume from %s",
                branch,
                result.processed_commits,
                result.last_sha,
            )
        return result

    def _process_commit(
        self,
        git: GitProvider,
        branch: str,
        commit: CommitInfo,
        result: BranchScanResult,
    ) -> None:
        diff = git.show_diff(commit.sha)
        matches = find_leaks(
            diff,
            self._scan.patterns,
            commit.sha,
            commit.committer,
            commit.date,
            branch,
        )
        added = self._snapshot.add_findings(matches)
        if added:
            logger.info(
                "%d finding(s) in %s on %s", len(added), commit.sha[:8], branch
            )

        result.findings.extend(added)
        result.processed_commits += 1
        result.last_sha = commit.sha

        self._snapshot.processed_commits += 1
        self._snapshot.branch_placeholders[branch] = commit.sha
        self._snapshots.write(self._snapshot)
        self._checkpoints.put(
            branch,
            BranchCheckpoint(last_processed_sha=commit.sha, incomplete=True),
        )

    def _resume_boundary(self, branch: str) -> str | None:
        checkpoint = self._checkpoints.get(branch)
        if checkpoint is None:
            return None
        if self._scan.force_full_scan:
            logger.info("Force full scan: discarding checkpoint for %s", branch)
            self._checkpoints.clear(branch)
            return None
        if checkpoint.incomplete and checkpoint.last_processed_sha:
            return checkpoint.last_processed_sha
        return None

    def _prepare_repo(self, git: GitProvider, resolver: BranchResolver) -> None:
        logger.info("Cloning %s into %s", self._repo.repo_url, self._work_dir)
        try:
            git.clone(self._auth.apply(self._repo.repo_url))
        except GitCommandError as e:
            raise CloneFailure(
                self._repo.repo_url, self._auth.mask(e.stderr or str(e))
            ) from None

        resolver.resolve_default_branch(
            self._repo.default_branch, self._repo.branches
        )
        git.fetch()
        logger.info("Clone completed, starting branch scans")

    def _load_snapshot(self) -> None:
        """Resume the prior report, or start a fresh one for a new scan cycle."""
        repo = self._repo.repo_url
        reset = (
            self._scan.force_full_scan
            or self._checkpoints.is_empty()
            or not self._snapshots.exists()
        )
        previous = None if reset else self._snapshots.load(repo)

        if previous is None:
            self._snapshot = ResultSnapshot(repo=repo)
            self._snapshots.write(self._snapshot)
            return

        previous.repo = repo
        self._snapshot = previous
        logger.info(
            "Resuming report with %d findings over %d commits",
            len(previous.findings),
            previous.processed_commits,
        )

    def _cleanup(self) -> None:
        if self._work_dir is not None:
            shutil.rmtree(self._work_dir, ignore_errors=True)


def _start_index(
    commits: list[CommitInfo], resume_sha: str | None, branch: str
) -> int:
    """Index of the first commit an earlier run has not processed."""
    if not resume_sha:
        return 0
    for i, commit in enumerate(commits):
        if commit.sha == resume_sha:
            return i + 1
    logger.warning(
        "Resume commit %s not found on %s; scanning entire branch",
        resume_sha,
        branch,
    )
    return 0
