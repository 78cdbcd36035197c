"""SQLite database connection management and schema setup."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS scan_runs (
    id TEXT PRIMARY KEY,
    repo TEXT NOT NULL,
    branches TEXT NOT NULL DEFAULT '[]',
    processed_commits INTEGER NOT NULL DEFAULT 0,
    total_processed_commits INTEGER NOT NULL DEFAULT 0,
    finding_count INTEGER NOT NULL DEFAULT 0,
    pending_branches TEXT NOT NULL DEFAULT '{}',
    timestamp REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS run_findings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id TEXT NOT NULL,
    branch TEXT NOT NULL,
    commit_sha TEXT NOT NULL,
    committer TEXT NOT NULL DEFAULT '',
    committed_date TEXT NOT NULL DEFAULT '',
    file_path TEXT NOT NULL,
    leak_type TEXT NOT NULL,
    leak_value TEXT NOT NULL,
    line_preview TEXT NOT NULL DEFAULT '',
    FOREIGN KEY (run_id) REFERENCES scan_runs(id)
);

CREATE INDEX IF NOT EXISTS idx_runs_repo
    ON scan_runs(repo);
CREATE INDEX IF NOT EXISTS idx_findings_run
    ON run_findings(run_id);
"""


async def get_db(db_path: str | Path) -> aiosqlite.Connection:
    """Open (or create) the database and ensure the schema exists."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(str(db_path))
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    await db.execute("PRAGMA foreign_keys=ON")

    await _migrate(db)
    return db


async def _migrate(db: aiosqlite.Connection) -> None:
    """Create the schema on a fresh database; refuse newer ones."""
    cursor = await db.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    row = await cursor.fetchone()

    if row is None:
        await db.executescript(SCHEMA_SQL)
        await db.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        await db.commit()
        logger.info("Database initialized at schema version %d", SCHEMA_VERSION)
        return

    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    current = row[0] if row else 0
    if current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {current} is newer than supported "
            f"version {SCHEMA_VERSION}"
        )
