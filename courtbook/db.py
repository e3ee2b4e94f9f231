"""
SQLite database layer using aiosqlite.

Stores clubs, courts and bookings for the "sqlite" storage backend.
Tables are created automatically on first connect.

The connection runs in autocommit mode; multi-statement writes go
through :func:`transaction`, which serialises writers on this connection
and takes SQLite's write lock up front (BEGIN IMMEDIATE) so a check and
the write that depends on it can't interleave with another writer.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from courtbook.config import DB_PATH

logger = logging.getLogger(__name__)

# ── Module-level connection ───────────────────────────────────────────────

_db: aiosqlite.Connection | None = None
_write_lock: asyncio.Lock | None = None


async def init_db(path: str | None = None) -> None:
    """Open the database and create tables if they don't exist."""
    global _db, _write_lock
    db_path = Path(path or DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    _db = await aiosqlite.connect(str(db_path), isolation_level=None)
    _db.row_factory = aiosqlite.Row  # dict-like rows
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")
    await _db.executescript(_SCHEMA)
    _write_lock = asyncio.Lock()
    logger.info("Database initialized at %s", db_path)


async def close_db() -> None:
    """Close the database connection."""
    global _db, _write_lock
    if _db is not None:
        await _db.close()
        _db = None
        _write_lock = None
        logger.info("Database connection closed")


def get_db() -> aiosqlite.Connection:
    """Return the active database connection (must call init_db first)."""
    assert _db is not None, "Database not initialized, call init_db() first"
    return _db


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Run the enclosed statements as one write transaction."""
    db = get_db()
    assert _write_lock is not None
    async with _write_lock:
        try:
            await db.execute("BEGIN IMMEDIATE")
            yield db
        except BaseException:
            await _rollback(db)
            raise
        else:
            await db.execute("COMMIT")


async def _rollback(db: aiosqlite.Connection) -> None:
    """Roll back whatever the connection still has open.

    A timed-out caller abandons its statements, but the connection thread
    still runs them in order; the no-op query waits for those to finish so
    a BEGIN that only succeeded after the timeout is rolled back too.
    """
    await db.execute("SELECT 1")
    if db.in_transaction:
        await db.execute("ROLLBACK")
        logger.debug("Rolled back write transaction")


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS clubs (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL,
    sports          TEXT NOT NULL,  -- JSON array
    timezone        TEXT
);

CREATE TABLE IF NOT EXISTS courts (
    id              TEXT PRIMARY KEY,
    club_id         TEXT NOT NULL,
    name            TEXT NOT NULL,
    sport           TEXT NOT NULL,
    features        TEXT NOT NULL,  -- JSON array
    opening_time    TEXT NOT NULL,
    closing_time    TEXT NOT NULL,
    default_price   REAL NOT NULL,
    slot_prices     TEXT NOT NULL,  -- JSON array of {time, price}
    FOREIGN KEY (club_id) REFERENCES clubs(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_courts_club ON courts(club_id);

CREATE TABLE IF NOT EXISTS bookings (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL,
    court_id            TEXT NOT NULL,
    club_id             TEXT NOT NULL,
    start_time          TEXT NOT NULL,  -- ISO-8601 UTC, second precision
    end_time            TEXT NOT NULL,
    total_price         REAL NOT NULL,
    status              TEXT NOT NULL,
    created_at          TEXT,
    players_needed      INTEGER,
    skill_level         INTEGER,
    joined_player_ids   TEXT NOT NULL DEFAULT '[]',
    pending_player_ids  TEXT NOT NULL DEFAULT '[]'
);

CREATE INDEX IF NOT EXISTS idx_bookings_court_start ON bookings(court_id, start_time);
CREATE INDEX IF NOT EXISTS idx_bookings_club ON bookings(club_id);
CREATE INDEX IF NOT EXISTS idx_bookings_user ON bookings(user_id);
"""


# ── Helpers ───────────────────────────────────────────────────────────────


def to_json(value: list) -> str:
    return json.dumps(value)


def from_json(raw: str | None) -> list:
    if raw is None:
        return []
    return json.loads(raw)


def iso(dt: datetime | None) -> str | None:
    """UTC ISO string at second precision, so stored values sort lexically."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds")


def from_iso(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    return datetime.fromisoformat(raw)
