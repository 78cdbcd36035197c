"""Diff-based leak matcher — turns one commit's diff into findings."""

from __future__ import annotations

import re
from collections.abc import Sequence

from leaktrail.scanner.models import LeakFinding
from leaktrail.scanner.patterns import LeakPattern

UNKNOWN_PATH = "unknown"

_BLOCK_MARKER = re.compile(r"^diff --git", re.MULTILINE)
_DEST_PATH = re.compile(r"^\+\+\+ b/(.+?)\r?$", re.MULTILINE)


def split_diff_blocks(diff_text: str) -> list[str]:
    """Split a unified diff into per-file blocks, dropping empty pieces."""
    return [block for block in _BLOCK_MARKER.split(diff_text) if block]


def destination_path(block: str) -> str:
    match = _DEST_PATH.search(block)
    return match.group(1) if match else UNKNOWN_PATH


def extract_line(block: str, index: int) -> str:
    """Return the diff line containing ``index``, whitespace-trimmed."""
    start = block.rfind("\n", 0, index) + 1
    end = block.find("\n", index)
    if end == -1:
        end = len(block)
    return block[start:end].strip()


def find_leaks(
    diff_text: str,
    patterns: Sequence[LeakPattern],
    commit_sha: str,
    committer: str,
    committed_date: str,
    branch: str,
) -> list[LeakFinding]:
    """Find every pattern match in a commit diff.

    Blocks are scanned whole, not only added lines, so removed secrets are
    reported too. Output order is block order, then pattern order, then
    match offset. Findings are not de-duplicated here.
    """
    findings: list[LeakFinding] = []

    for block in split_diff_blocks(diff_text):
        file_path = destination_path(block)
        for pattern in patterns:
            for value, offset in pattern.finditer(block):
                findings.append(
                    LeakFinding(
                        branch=branch,
                        commit_sha=commit_sha,
                        committer=committer,
                        committed_date=committed_date,
                        file_path=file_path,
                        leak_type=pattern.identifier,
                        leak_value=value,
                        line_preview=extract_line(block, offset),
                    )
                )

    return findings
