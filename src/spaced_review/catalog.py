"""Problem sets and items: creation, listing and cascading deletion.

Every function goes through ``db.connect``, so sqlite failures surface as
StoreUnavailable and connections are closed on every path.
"""
import uuid
from datetime import datetime
from typing import Optional

import structlog

from spaced_review.db import connect, from_db_time, to_db_time, utcnow
from spaced_review.errors import ItemNotFound, SetNotFound
from spaced_review.models import DEFAULT_EASE, Item, ProblemSet, ReviewState

log = structlog.get_logger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def create_problem_set(
    db_path: str,
    owner_id: str,
    name: str,
    description: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> ProblemSet:
    if not name or not name.strip():
        raise ValueError("Problem set name is required")
    problem_set = ProblemSet(
        id=_new_id(),
        owner_id=owner_id,
        name=name.strip(),
        description=description.strip() if description and description.strip() else None,
        created_at=created_at or utcnow(),
    )
    with connect(db_path) as conn:
        with conn:
            conn.execute(
                "INSERT INTO problem_sets (id, owner_id, name, description, created_at) VALUES (?, ?, ?, ?, ?)",
                (problem_set.id, owner_id, problem_set.name, problem_set.description,
                 to_db_time(problem_set.created_at)),
            )
    log.info("problem_set_created", set_id=problem_set.id, owner_id=owner_id)
    return problem_set


def get_problem_set(db_path: str, set_id: str, owner_id: str) -> ProblemSet:
    with connect(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM problem_sets WHERE id = ? AND owner_id = ?", (set_id, owner_id),
        ).fetchone()
    if row is None:
        raise SetNotFound(set_id)
    return ProblemSet(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        description=row["description"],
        created_at=from_db_time(row["created_at"]),
    )


def list_problem_sets(db_path: str, owner_id: str) -> list[dict]:
    """Owner's sets with their item counts, newest first."""
    with connect(db_path) as conn:
        rows = conn.execute(
            """SELECT ps.id, ps.name, ps.description, ps.created_at, COUNT(i.id) as item_count
            FROM problem_sets ps
            LEFT JOIN items i ON i.set_id = ps.id
            WHERE ps.owner_id = ?
            GROUP BY ps.id
            ORDER BY ps.created_at DESC, ps.id ASC""",
            (owner_id,),
        ).fetchall()
    return [dict(r) for r in rows]


def delete_problem_set(db_path: str, set_id: str, owner_id: str) -> None:
    """Delete a set along with its items, their review state and history."""
    with connect(db_path) as conn:
        with conn:
            cur = conn.execute(
                "DELETE FROM problem_sets WHERE id = ? AND owner_id = ?", (set_id, owner_id),
            )
    if cur.rowcount == 0:
        raise SetNotFound(set_id)
    log.info("problem_set_deleted", set_id=set_id, owner_id=owner_id)


def add_item(
    db_path: str,
    set_id: str,
    owner_id: str,
    question_image_url: Optional[str],
    answer_image_url: Optional[str],
    created_at: Optional[datetime] = None,
    initial_ease: float = DEFAULT_EASE,
) -> Item:
    """Create an item and its initial review state, due immediately."""
    item = Item(
        id=_new_id(),
        set_id=set_id,
        owner_id=owner_id,
        created_at=created_at or utcnow(),
        question_image_url=question_image_url,
        answer_image_url=answer_image_url,
    )
    state = ReviewState.initial(item.created_at, ease_factor=initial_ease)
    with connect(db_path) as conn:
        owned = conn.execute(
            "SELECT 1 FROM problem_sets WHERE id = ? AND owner_id = ?", (set_id, owner_id),
        ).fetchone()
        if owned is None:
            raise SetNotFound(set_id)
        with conn:
            conn.execute(
                """INSERT INTO items
                (id, set_id, owner_id, question_image_url, answer_image_url, created_at)
                VALUES (?, ?, ?, ?, ?, ?)""",
                (item.id, set_id, owner_id, question_image_url, answer_image_url,
                 to_db_time(item.created_at)),
            )
            conn.execute(
                """INSERT INTO review_states
                (item_id, last_answered_at, next_due_at, interval_days, ease_factor, lapse_count, version)
                VALUES (?, NULL, ?, ?, ?, ?, ?)""",
                (item.id, to_db_time(state.next_due_at), state.interval_days,
                 state.ease_factor, state.lapse_count, state.version),
            )
    log.info("item_created", item_id=item.id, set_id=set_id, owner_id=owner_id)
    return item


def list_items(db_path: str, set_id: str, owner_id: str) -> list[dict]:
    """Items of one set with their review state, newest first."""
    get_problem_set(db_path, set_id, owner_id)
    with connect(db_path) as conn:
        rows = conn.execute(
            """SELECT i.*, rs.last_answered_at, rs.next_due_at, rs.interval_days,
                rs.ease_factor, rs.lapse_count
            FROM items i
            JOIN review_states rs ON rs.item_id = i.id
            WHERE i.set_id = ? AND i.owner_id = ?
            ORDER BY i.created_at DESC, i.id ASC""",
            (set_id, owner_id),
        ).fetchall()
    return [dict(r) for r in rows]


def get_item(db_path: str, item_id: str, owner_id: str) -> Item:
    with connect(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM items WHERE id = ? AND owner_id = ?", (item_id, owner_id),
        ).fetchone()
    if row is None:
        raise ItemNotFound(item_id)
    return Item(
        id=row["id"],
        set_id=row["set_id"],
        owner_id=row["owner_id"],
        created_at=from_db_time(row["created_at"]),
        question_image_url=row["question_image_url"],
        answer_image_url=row["answer_image_url"],
    )


def delete_item(db_path: str, item_id: str, owner_id: str) -> None:
    with connect(db_path) as conn:
        with conn:
            cur = conn.execute(
                "DELETE FROM items WHERE id = ? AND owner_id = ?", (item_id, owner_id),
            )
    if cur.rowcount == 0:
        raise ItemNotFound(item_id)
    log.info("item_deleted", item_id=item_id, owner_id=owner_id)


def get_review_history(db_path: str, item_id: str, owner_id: str) -> list[dict]:
    """Committed answers for an item, oldest first."""
    get_item(db_path, item_id, owner_id)
    with connect(db_path) as conn:
        rows = conn.execute(
            """SELECT answered_at, remembered, interval_days, ease_factor, next_due_at
            FROM review_log WHERE item_id = ?
            ORDER BY answered_at ASC, id ASC""",
            (item_id,),
        ).fetchall()
    return [
        {
            "answered_at": from_db_time(r["answered_at"]),
            "remembered": bool(r["remembered"]),
            "interval_days": r["interval_days"],
            "ease_factor": r["ease_factor"],
            "next_due_at": from_db_time(r["next_due_at"]),
        }
        for r in rows
    ]
