from datetime import timedelta

import pytest

from conftest import T0
from spaced_review.catalog import (
    add_item, create_problem_set, delete_item, delete_problem_set, get_item,
    get_problem_set, get_review_history, list_items, list_problem_sets,
)
from spaced_review.db import get_connection
from spaced_review.errors import ItemNotFound, SetNotFound, StoreUnavailable


def count_rows(db_path, table):
    conn = get_connection(db_path)
    n = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    conn.close()
    return n


def test_create_problem_set_trims_name(ready_db):
    problem_set = create_problem_set(ready_db, "alice", "  Real estate law  ", "  ")
    assert problem_set.name == "Real estate law"
    assert problem_set.description is None
    stored = get_problem_set(ready_db, problem_set.id, "alice")
    assert stored.name == "Real estate law"


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_problem_set_requires_name(ready_db, name):
    with pytest.raises(ValueError):
        create_problem_set(ready_db, "alice", name)
    assert count_rows(ready_db, "problem_sets") == 0


def test_get_problem_set_other_owner(ready_db, problem_set):
    with pytest.raises(SetNotFound):
        get_problem_set(ready_db, problem_set.id, "bob")


def test_list_problem_sets_with_counts(ready_db, problem_set):
    newer = create_problem_set(ready_db, "alice", "Zoning", created_at=T0 + timedelta(days=1))
    create_problem_set(ready_db, "bob", "Not mine", created_at=T0)
    add_item(ready_db, problem_set.id, "alice", "q1", "a1", created_at=T0)
    add_item(ready_db, problem_set.id, "alice", "q2", "a2", created_at=T0)
    sets = list_problem_sets(ready_db, "alice")
    assert [s["id"] for s in sets] == [newer.id, problem_set.id]
    assert [s["item_count"] for s in sets] == [0, 2]


def test_add_item_creates_due_review_state(ready_db, problem_set, store):
    item = add_item(ready_db, problem_set.id, "alice", "q.jpg", "a.jpg", created_at=T0)
    state = store.get_review_state(item.id, "alice")
    assert state.next_due_at == T0
    assert state.interval_days == 0


def test_add_item_to_foreign_set(ready_db, problem_set):
    with pytest.raises(SetNotFound):
        add_item(ready_db, problem_set.id, "bob", "q", "a")
    assert count_rows(ready_db, "items") == 0


def test_list_items_newest_first(ready_db, problem_set):
    old = add_item(ready_db, problem_set.id, "alice", "q1", "a1", created_at=T0)
    new = add_item(ready_db, problem_set.id, "alice", "q2", "a2", created_at=T0 + timedelta(hours=1))
    items = list_items(ready_db, problem_set.id, "alice")
    assert [i["id"] for i in items] == [new.id, old.id]
    assert items[0]["question_image_url"] == "q2"
    assert items[0]["lapse_count"] == 0


def test_get_item(ready_db, item):
    loaded = get_item(ready_db, item.id, "alice")
    assert loaded.answer_image_url == "a.jpg"
    assert loaded.created_at == T0
    with pytest.raises(ItemNotFound):
        get_item(ready_db, item.id, "bob")


def test_delete_problem_set_cascades(ready_db, problem_set, item, scheduler):
    scheduler.record_answer(item.id, "alice", True, T0)
    delete_problem_set(ready_db, problem_set.id, "alice")
    for table in ("problem_sets", "items", "review_states", "review_log"):
        assert count_rows(ready_db, table) == 0


def test_delete_problem_set_other_owner(ready_db, problem_set):
    with pytest.raises(SetNotFound):
        delete_problem_set(ready_db, problem_set.id, "bob")
    assert count_rows(ready_db, "problem_sets") == 1


def test_delete_item_cascades(ready_db, item, scheduler):
    scheduler.record_answer(item.id, "alice", False, T0)
    delete_item(ready_db, item.id, "alice")
    assert count_rows(ready_db, "review_states") == 0
    assert count_rows(ready_db, "review_log") == 0
    assert scheduler.due_query("alice", T0 + timedelta(days=30)) == []


def test_delete_item_unknown(ready_db):
    with pytest.raises(ItemNotFound):
        delete_item(ready_db, "missing", "alice")


def test_review_history_oldest_first(ready_db, item, scheduler):
    scheduler.record_answer(item.id, "alice", True, T0)
    scheduler.record_answer(item.id, "alice", False, T0 + timedelta(days=1))
    history = get_review_history(ready_db, item.id, "alice")
    assert [h["remembered"] for h in history] == [True, False]
    assert history[0]["answered_at"] == T0
    assert history[1]["next_due_at"] == T0 + timedelta(days=2)


def test_review_history_empty_for_new_item(ready_db, item):
    assert get_review_history(ready_db, item.id, "alice") == []


def test_catalog_on_uninitialized_db_raises_store_unavailable(tmp_db):
    with pytest.raises(StoreUnavailable):
        list_problem_sets(tmp_db, "alice")
    with pytest.raises(StoreUnavailable):
        create_problem_set(tmp_db, "alice", "Torts")
    with pytest.raises(StoreUnavailable):
        get_review_history(tmp_db, "x", "alice")


def test_catalog_on_unopenable_path_raises_store_unavailable(tmp_path):
    with pytest.raises(StoreUnavailable):
        get_problem_set(str(tmp_path), "s1", "alice")
