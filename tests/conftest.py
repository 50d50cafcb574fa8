from datetime import datetime, timezone

import pytest

from spaced_review.catalog import add_item, create_problem_set
from spaced_review.db import init_db
from spaced_review.scheduler import Scheduler
from spaced_review.store import SQLiteReviewStore

T0 = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_review.db")
    return db_path


@pytest.fixture
def ready_db(tmp_db):
    """Initialized database path."""
    init_db(tmp_db)
    return tmp_db


@pytest.fixture
def store(ready_db):
    return SQLiteReviewStore(ready_db)


@pytest.fixture
def scheduler(store):
    return Scheduler(store)


@pytest.fixture
def problem_set(ready_db):
    return create_problem_set(ready_db, "alice", "Property law", created_at=T0)


@pytest.fixture
def item(ready_db, problem_set):
    return add_item(ready_db, problem_set.id, "alice", "q.jpg", "a.jpg", created_at=T0)
