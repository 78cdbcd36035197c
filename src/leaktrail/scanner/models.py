"""Scanner data models — findings, checkpoints, and result snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc_now() -> str:
    """Current time as an ISO 8601 string in UTC."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class LeakFinding:
    """One credential-shaped match at a specific location in history."""

    branch: str
    commit_sha: str
    committer: str
    committed_date: str
    file_path: str
    leak_type: str
    leak_value: str
    line_preview: str

    @property
    def key(self) -> tuple[str, str, str, str, str, str]:
        """Dedup identity. Two findings differing only in line text are distinct."""
        return (
            self.branch,
            self.commit_sha,
            self.file_path,
            self.leak_type,
            self.leak_value,
            self.line_preview,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "branch": self.branch,
            "commitSha": self.commit_sha,
            "committer": self.committer,
            "committedDate": self.committed_date,
            "filePath": self.file_path,
            "leakType": self.leak_type,
            "leakValue": self.leak_value,
            "linePreview": self.line_preview,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LeakFinding:
        return cls(
            branch=str(data["branch"]),
            commit_sha=str(data["commitSha"]),
            committer=str(data.get("committer", "")),
            committed_date=str(data.get("committedDate", "")),
            file_path=str(data.get("filePath", "unknown")),
            leak_type=str(data["leakType"]),
            leak_value=str(data["leakValue"]),
            line_preview=str(data.get("linePreview", "")),
        )


@dataclass(frozen=True)
class BranchCheckpoint:
    """Marker of the last commit fully processed on an unfinished branch."""

    last_processed_sha: str | None = None
    updated_at: str = field(default_factory=utc_now)
    incomplete: bool = True

    def to_dict(self) -> dict:
        return {
            "lastProcessedSha": self.last_processed_sha,
            "updatedAt": self.updated_at,
            "incomplete": self.incomplete,
        }

    @classmethod
    def from_dict(cls, data: dict) -> BranchCheckpoint:
        sha = data.get("lastProcessedSha")
        return cls(
            last_processed_sha=str(sha) if sha else None,
            updated_at=str(data.get("updatedAt", "")),
            incomplete=data.get("incomplete") is True,
        )


@dataclass
class ScanState:
    """All pending branch checkpoints for one repository."""

    branches: dict[str, BranchCheckpoint] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "branches": {
                name: checkpoint.to_dict()
                for name, checkpoint in self.branches.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScanState:
        branches = data.get("branches", {})
        if not isinstance(branches, dict):
            raise ValueError("'branches' must be a mapping")
        return cls(
            branches={
                str(name): BranchCheckpoint.from_dict(entry)
                for name, entry in branches.items()
            }
        )


@dataclass
class ResultSnapshot:
    """The growing, de-duplicated report written after every commit."""

    repo: str
    processed_commits: int = 0
    branch_placeholders: dict[str, str] = field(default_factory=dict)
    findings: list[LeakFinding] = field(default_factory=list)
    _seen: set[tuple[str, ...]] = field(
        default_factory=set, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self._seen = {f.key for f in self.findings}

    def add_findings(self, findings: list[LeakFinding]) -> list[LeakFinding]:
        """Append findings not seen before; return the ones actually added."""
        added: list[LeakFinding] = []
        for finding in findings:
            if finding.key in self._seen:
                continue
            self._seen.add(finding.key)
            self.findings.append(finding)
            added.append(finding)
        return added

    def to_dict(self) -> dict:
        return {
            "repo": self.repo,
            "processedCommits": self.processed_commits,
            "branchPlaceholders": dict(self.branch_placeholders),
            "findings": [f.to_dict() for f in self.findings],
        }

    @classmethod
    def from_dict(cls, data: dict, repo: str = "") -> ResultSnapshot:
        placeholders = data.get("branchPlaceholders") or {}
        if not isinstance(placeholders, dict):
            raise ValueError("'branchPlaceholders' must be a mapping")
        return cls(
            repo=data.get("repo") or repo,
            processed_commits=int(data.get("processedCommits") or 0),
            branch_placeholders={
                str(k): str(v) for k, v in placeholders.items() if v
            },
            findings=[
                LeakFinding.from_dict(f) for f in data.get("findings") or []
            ],
        )


@dataclass
class BranchScanResult:
    """Work done on a single branch during one run."""

    branch: str
    findings: list[LeakFinding] = field(default_factory=list)
    processed_commits: int = 0
    last_sha: str | None = None
    completed: bool = False


@dataclass
class ScanResult:
    """Aggregate result of one scan run across all branches."""

    repo: str
    snapshot: ResultSnapshot
    findings: list[LeakFinding] = field(default_factory=list)
    processed_commits: int = 0
    branch_placeholders: dict[str, str | None] = field(default_factory=dict)
    branches: list[str] = field(default_factory=list)
