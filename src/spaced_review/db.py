"""Database initialization, connection management and timestamp codecs."""
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

import structlog

from spaced_review.config import DEFAULT_DB_PATH
from spaced_review.errors import StoreUnavailable

log = structlog.get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS problem_sets (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    set_id TEXT NOT NULL REFERENCES problem_sets(id) ON DELETE CASCADE,
    owner_id TEXT NOT NULL,
    question_image_url TEXT,
    answer_image_url TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS review_states (
    item_id TEXT PRIMARY KEY REFERENCES items(id) ON DELETE CASCADE,
    last_answered_at TEXT,
    next_due_at TEXT NOT NULL,
    interval_days INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    lapse_count INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS review_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id TEXT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    answered_at TEXT NOT NULL,
    remembered INTEGER NOT NULL,
    interval_days INTEGER NOT NULL,
    ease_factor REAL NOT NULL,
    next_due_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_items_owner_set ON items(owner_id, set_id);
CREATE INDEX IF NOT EXISTS idx_review_states_due ON review_states(next_due_at);
CREATE INDEX IF NOT EXISTS idx_review_log_item ON review_log(item_id);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH, timeout: float = 5.0) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def connect(db_path: str, timeout: float = 5.0) -> Iterator[sqlite3.Connection]:
    """Open a connection that always closes and reports sqlite failures as StoreUnavailable."""
    conn = None
    try:
        conn = get_connection(db_path, timeout=timeout)
        yield conn
    except sqlite3.Error as e:
        log.warning("store_error", db_path=db_path, error=str(e))
        raise StoreUnavailable(f"review store unavailable: {e}") from e
    finally:
        if conn is not None:
            conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.execute("PRAGMA journal_mode = WAL")
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def to_db_time(value: datetime) -> str:
    """Encode an aware datetime as fixed-width UTC ISO text.

    Fixed width keeps lexical order equal to chronological order, which the
    due-time comparisons in SQL rely on.
    """
    if value.tzinfo is None:
        raise ValueError(f"naive datetime cannot be stored: {value!r}")
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
