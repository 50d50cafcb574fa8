"""Review-state persistence: the narrow store contract and its SQLite backend."""
import sqlite3
from dataclasses import replace
from datetime import datetime
from typing import Optional, Protocol

from spaced_review.db import connect, from_db_time, to_db_time
from spaced_review.errors import VersionConflict
from spaced_review.models import ReviewState


class ReviewStore(Protocol):
    """What the Scheduler needs from durable storage."""

    def get_review_state(
        self, item_id: str, owner_id: str, timeout: Optional[float] = None,
    ) -> Optional[ReviewState]:
        ...

    def put_review_state(
        self, item_id: str, expected_version: int, new_state: ReviewState,
        timeout: Optional[float] = None, remembered: Optional[bool] = None,
    ) -> ReviewState:
        ...

    def query_due(
        self, owner_id: str, set_id: Optional[str], as_of: datetime,
        timeout: Optional[float] = None,
    ) -> list[tuple[str, ReviewState]]:
        ...


def row_to_state(row: sqlite3.Row) -> ReviewState:
    return ReviewState(
        last_answered_at=from_db_time(row["last_answered_at"]),
        next_due_at=from_db_time(row["next_due_at"]),
        interval_days=int(row["interval_days"]),
        ease_factor=float(row["ease_factor"]),
        lapse_count=int(row["lapse_count"]),
        version=int(row["version"]),
    )


class SQLiteReviewStore:
    """SQLite implementation of ``ReviewStore``.

    - writes are conditional on ``version``; a stale writer gets VersionConflict
    - the state update and its review-log row commit in one transaction
    - every sqlite3 failure surfaces as StoreUnavailable (see ``db.connect``)
    """

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        self.db_path = db_path
        self.timeout = timeout

    def _connect(self, timeout: Optional[float]):
        return connect(self.db_path, timeout=self.timeout if timeout is None else timeout)

    def get_review_state(
        self, item_id: str, owner_id: str, timeout: Optional[float] = None,
    ) -> Optional[ReviewState]:
        with self._connect(timeout) as conn:
            row = conn.execute(
                """SELECT rs.* FROM review_states rs
                JOIN items i ON i.id = rs.item_id
                WHERE rs.item_id = ? AND i.owner_id = ?""",
                (item_id, owner_id),
            ).fetchone()
        return row_to_state(row) if row else None

    def put_review_state(
        self, item_id: str, expected_version: int, new_state: ReviewState,
        timeout: Optional[float] = None, remembered: Optional[bool] = None,
    ) -> ReviewState:
        """Write ``new_state`` if the stored version still equals ``expected_version``.

        ``remembered`` is recorded in the review log; when omitted it is read
        off the state, which only holds for policies that reset lapses on success.
        """
        if remembered is None:
            remembered = new_state.lapse_count == 0
        next_due = to_db_time(new_state.next_due_at)
        last_answered = (
            to_db_time(new_state.last_answered_at) if new_state.last_answered_at else None
        )
        with self._connect(timeout) as conn:
            with conn:
                cur = conn.execute(
                    """UPDATE review_states
                    SET last_answered_at=?, next_due_at=?, interval_days=?,
                        ease_factor=?, lapse_count=?, version=version + 1
                    WHERE item_id=? AND version=?""",
                    (last_answered, next_due, new_state.interval_days,
                     new_state.ease_factor, new_state.lapse_count, item_id, expected_version),
                )
                if cur.rowcount == 0:
                    raise VersionConflict(item_id, expected_version)
                if last_answered is not None:
                    conn.execute(
                        """INSERT INTO review_log
                        (item_id, answered_at, remembered, interval_days, ease_factor, next_due_at)
                        VALUES (?, ?, ?, ?, ?, ?)""",
                        (item_id, last_answered, int(remembered),
                         new_state.interval_days, new_state.ease_factor, next_due),
                    )
        return replace(new_state, version=expected_version + 1)

    def query_due(
        self, owner_id: str, set_id: Optional[str], as_of: datetime,
        timeout: Optional[float] = None,
    ) -> list[tuple[str, ReviewState]]:
        sql = """SELECT rs.* FROM review_states rs
            JOIN items i ON i.id = rs.item_id
            WHERE i.owner_id = ? AND rs.next_due_at <= ?"""
        params: list = [owner_id, to_db_time(as_of)]
        if set_id is not None:
            sql += " AND i.set_id = ?"
            params.append(set_id)
        sql += " ORDER BY rs.next_due_at ASC, rs.lapse_count DESC, rs.item_id ASC"
        with self._connect(timeout) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [(row["item_id"], row_to_state(row)) for row in rows]
