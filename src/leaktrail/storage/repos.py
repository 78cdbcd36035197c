"""Repository classes for async CRUD operations on SQLite."""

from __future__ import annotations

import json
import time
import uuid

import aiosqlite

from leaktrail.scanner.models import ScanResult


class ScanRunRepo:
    """CRUD for API-triggered scan runs and the findings each one added."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def save_result(self, result: ScanResult) -> str:
        run_id = uuid.uuid4().hex[:12]
        await self._db.execute(
            "INSERT INTO scan_runs "
            "(id, repo, branches, processed_commits, total_processed_commits, "
            "finding_count, pending_branches, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                run_id,
                result.repo,
                json.dumps(result.branches),
                result.processed_commits,
                result.snapshot.processed_commits,
                len(result.findings),
                json.dumps(result.branch_placeholders),
                time.time(),
            ),
        )

        for finding in result.findings:
            await self._db.execute(
                "INSERT INTO run_findings "
                "(run_id, branch, commit_sha, committer, committed_date, "
                "file_path, leak_type, leak_value, line_preview) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    run_id,
                    finding.branch,
                    finding.commit_sha,
                    finding.committer,
                    finding.committed_date,
                    finding.file_path,
                    finding.leak_type,
                    finding.leak_value,
                    finding.line_preview,
                ),
            )

        await self._db.commit()
        return run_id

    async def get(self, run_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM scan_runs WHERE id = ?", (run_id,)
        )
        row = await cursor.fetchone()
        if not row:
            return None

        run = _decode_run(dict(row))
        cursor = await self._db.execute(
            "SELECT branch, commit_sha, committer, committed_date, file_path, "
            "leak_type, leak_value, line_preview "
            "FROM run_findings WHERE run_id = ? ORDER BY id",
            (run_id,),
        )
        run["findings"] = [dict(r) async for r in cursor]
        return run

    async def list_all(
        self,
        repo: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict]:
        if repo:
            cursor = await self._db.execute(
                "SELECT * FROM scan_runs WHERE repo = ? "
                "ORDER BY timestamp DESC LIMIT ? OFFSET ?",
                (repo, limit, offset),
            )
        else:
            cursor = await self._db.execute(
                "SELECT * FROM scan_runs ORDER BY timestamp DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
        return [_decode_run(dict(row)) async for row in cursor]


def _decode_run(row: dict) -> dict:
    row["branches"] = json.loads(row["branches"])
    row["pending_branches"] = json.loads(row["pending_branches"])
    return row
