"""Tests for database initialization, connections and timestamp encoding."""
from datetime import datetime, timedelta, timezone

import pytest

from spaced_review.db import from_db_time, get_connection, init_db, to_db_time


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {"problem_sets", "items", "review_states", "review_log"}
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_dir(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "review.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "dir" / "review.db").exists()


def test_get_connection_enables_foreign_keys(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.close()


def test_to_db_time_is_fixed_width_utc():
    whole = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)
    fractional = whole + timedelta(microseconds=5)
    assert len(to_db_time(whole)) == len(to_db_time(fractional))
    assert to_db_time(whole) < to_db_time(fractional)


def test_to_db_time_normalizes_offsets():
    tokyo = timezone(timedelta(hours=9))
    local = datetime(2025, 1, 6, 18, 0, tzinfo=tokyo)
    assert to_db_time(local) == "2025-01-06T09:00:00.000000+00:00"


def test_to_db_time_rejects_naive():
    with pytest.raises(ValueError):
        to_db_time(datetime(2025, 1, 6, 9, 0))


def test_from_db_time_round_trip_and_none():
    value = datetime(2025, 1, 6, 9, 0, 0, 123, tzinfo=timezone.utc)
    assert from_db_time(to_db_time(value)) == value
    assert from_db_time(None) is None
