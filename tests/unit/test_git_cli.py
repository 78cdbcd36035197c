"""Tests for the git command-line provider."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from leaktrail.git.base import GitCommandError, GitProvider
from leaktrail.git.cli import GitCli


def _completed(stdout: str = "", returncode: int = 0, stderr: str = ""):
    return subprocess.CompletedProcess(
        args=["git"], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def git(tmp_path: Path) -> GitCli:
    return GitCli(tmp_path)


def test_satisfies_protocol(git):
    assert isinstance(git, GitProvider)


def test_runs_in_work_dir(git, tmp_path: Path):
    with patch("leaktrail.git.cli.subprocess.run", return_value=_completed()) as run:
        git.fetch()
    args, kwargs = run.call_args
    assert args[0] == ["git", "fetch", "--prune", "origin"]
    assert kwargs["cwd"] == tmp_path


def test_non_zero_exit_raises(git):
    with patch(
        "leaktrail.git.cli.subprocess.run",
        return_value=_completed(returncode=1, stderr="error: pathspec 'x'\n"),
    ):
        with pytest.raises(GitCommandError) as exc_info:
            git.checkout("x")
    assert exc_info.value.returncode == 1
    assert exc_info.value.stderr == "error: pathspec 'x'"
    assert exc_info.value.command == ["checkout", "x"]


def test_missing_git_binary(git):
    with patch("leaktrail.git.cli.subprocess.run", side_effect=FileNotFoundError("git")):
        with pytest.raises(GitCommandError) as exc_info:
            git.fetch()
    assert exc_info.value.returncode == 127


def test_checkout_tracking(git):
    with patch("leaktrail.git.cli.subprocess.run", return_value=_completed()) as run:
        git.checkout_tracking("dev", "origin/dev")
    assert run.call_args[0][0] == ["git", "checkout", "-B", "dev", "origin/dev"]


def test_list_remote_branches(git):
    output = "  origin/HEAD -> origin/main\n  origin/dev\n  origin/main\n\n"
    with patch("leaktrail.git.cli.subprocess.run", return_value=_completed(output)):
        assert git.list_remote_branches() == [
            "origin/HEAD -> origin/main",
            "origin/dev",
            "origin/main",
        ]


def test_remote_head_branch(git):
    with patch(
        "leaktrail.git.cli.subprocess.run",
        return_value=_completed("refs/remotes/origin/trunk\n"),
    ):
        assert git.remote_head_branch() == "trunk"


def test_remote_head_branch_missing(git):
    with patch(
        "leaktrail.git.cli.subprocess.run",
        return_value=_completed(returncode=128, stderr="fatal: not a symbolic ref"),
    ):
        assert git.remote_head_branch() is None


def test_commit_log_parsing(git):
    output = (
        "bbb\x1fJane Doe\x1fjane@example.com\x1f2024-02-01T10:00:00+00:00\n"
        "aaa\x1fJohn\x1fjohn@example.com\x1f2024-01-01T09:00:00+01:00\n"
    )
    with patch(
        "leaktrail.git.cli.subprocess.run", return_value=_completed(output)
    ) as run:
        commits = git.commit_log()
    assert run.call_args[0][0][:3] == ["git", "log", "--date-order"]
    assert [c.sha for c in commits] == ["bbb", "aaa"]
    assert commits[0].committer == "Jane Doe <jane@example.com>"
    assert commits[1].date == "2024-01-01T09:00:00+01:00"


def test_show_diff_uses_zero_context(git):
    with patch(
        "leaktrail.git.cli.subprocess.run", return_value=_completed("diff --git")
    ) as run:
        assert git.show_diff("abc") == "diff --git"
    assert "--unified=0" in run.call_args[0][0]
    assert run.call_args[1]["errors"] == "replace"
