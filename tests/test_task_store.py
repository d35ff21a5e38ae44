from datetime import datetime, timedelta

import pytest
from sqlalchemy import DateTime

from studybuddy.errors import NotFoundFailure
from studybuddy.models import Task, TaskStatus, utcnow


def test_create_starts_pending_without_completion(store, user, tomorrow) -> None:
    task = store.create(user.id, "Revise algebra", tomorrow, description="chapters 1-2")
    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None
    assert task.user_id == user.id
    assert task.scheduled_for == tomorrow


def test_completion_round_trip(store, user, tomorrow) -> None:
    task = store.create(user.id, "Essay", tomorrow)

    task = store.update_status(task.id, user.id, TaskStatus.COMPLETED)
    assert task.status == TaskStatus.COMPLETED
    assert task.completed_at is not None

    task = store.update_status(task.id, user.id, TaskStatus.PENDING)
    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None


def test_list_by_owner_is_ordered_and_scoped(store, user, other_user) -> None:
    base = utcnow() + timedelta(days=2)
    later = store.create(user.id, "later", base + timedelta(hours=5))
    earlier = store.create(user.id, "earlier", base)
    store.create(other_user.id, "not mine", base)

    assert [t.id for t in store.list_by_owner(user.id)] == [earlier.id, later.id]


def test_list_in_range_is_inclusive(store, user) -> None:
    start = datetime(2030, 5, 1, 0, 0, 0)
    end = datetime(2030, 5, 1, 23, 59, 59, 999000)
    at_start = store.create(user.id, "start", start)
    at_end = store.create(user.id, "end", end)
    store.create(user.id, "before", start - timedelta(microseconds=1000))
    store.create(user.id, "after", end + timedelta(microseconds=1000))

    assert [t.id for t in store.list_in_range(user.id, start, end)] == [at_start.id, at_end.id]


def test_update_cannot_reopen_past_task(store, user, yesterday) -> None:
    task = store.create(user.id, "Lab report", yesterday)
    task = store.update(task.id, user.id, status=TaskStatus.PENDING)
    assert task.status == TaskStatus.MISSED
    assert task.completed_at is None


def test_update_uses_new_scheduled_time(store, user, yesterday, tomorrow) -> None:
    task = store.create(user.id, "Lab report", yesterday)
    task = store.update(task.id, user.id, title="Lab report v2", scheduled_for=tomorrow, status=TaskStatus.MISSED)
    assert task.title == "Lab report v2"
    assert task.scheduled_for == tomorrow
    assert task.status == TaskStatus.PENDING


def test_update_to_completed_sets_completion(store, user, yesterday) -> None:
    task = store.create(user.id, "Flashcards", yesterday)
    task = store.update(task.id, user.id, status=TaskStatus.COMPLETED)
    assert task.status == TaskStatus.COMPLETED
    assert task.completed_at is not None


@pytest.mark.parametrize("operation", ["update", "update_status", "delete"])
def test_foreign_task_is_not_found_and_untouched(db, store, user, other_user, tomorrow, operation) -> None:
    theirs = store.create(other_user.id, "Bob's task", tomorrow)

    with pytest.raises(NotFoundFailure):
        if operation == "update":
            store.update(theirs.id, user.id, title="hijacked", status=TaskStatus.COMPLETED)
        elif operation == "update_status":
            store.update_status(theirs.id, user.id, TaskStatus.COMPLETED)
        else:
            store.delete(theirs.id, user.id)

    db.expire_all()
    fresh = db.get(Task, theirs.id)
    assert fresh is not None
    assert fresh.title == "Bob's task"
    assert fresh.status == TaskStatus.PENDING


def test_delete_removes_task(db, store, user, tomorrow) -> None:
    task_id = store.create(user.id, "Throwaway", tomorrow).id
    store.delete(task_id, user.id)
    assert store.get(task_id, user.id) is None
    with pytest.raises(NotFoundFailure):
        store.delete(task_id, user.id)


def test_mark_missed_persists_only_overdue_pending(db, store, user, yesterday, tomorrow) -> None:
    overdue = store.create(user.id, "overdue", yesterday)
    upcoming = store.create(user.id, "upcoming", tomorrow)
    done = store.create(user.id, "done", yesterday)
    store.update_status(done.id, user.id, TaskStatus.COMPLETED)

    store.mark_missed(store.list_by_owner(user.id))

    db.expire_all()
    assert db.get(Task, overdue.id).status == TaskStatus.MISSED
    assert db.get(Task, upcoming.id).status == TaskStatus.PENDING
    assert db.get(Task, done.id).status == TaskStatus.COMPLETED


def test_count_by_status(store, user, other_user, yesterday, tomorrow) -> None:
    store.create(user.id, "a", tomorrow)
    done = store.create(user.id, "b", tomorrow)
    store.update_status(done.id, user.id, TaskStatus.COMPLETED)
    missed = store.create(user.id, "c", yesterday)
    store.update_status(missed.id, user.id, TaskStatus.MISSED)
    store.create(other_user.id, "d", tomorrow)

    assert store.count_by_status(user.id) == {"pending": 1, "completed": 1, "missed": 1, "total": 3}


def test_timestamps_round_trip_through_the_database(db, store, user) -> None:
    when = datetime(2031, 3, 4, 5, 6, 7)
    task_id = store.create(user.id, "Stored", when).id
    store.update_status(task_id, user.id, TaskStatus.COMPLETED)

    db.expire_all()
    stored = store.get(task_id, user.id)
    assert stored.scheduled_for == when
    for value in (stored.scheduled_for, stored.completed_at, stored.created_at, stored.updated_at):
        assert value.tzinfo is None


@pytest.mark.parametrize("column", ["scheduled_for", "completed_at", "created_at", "updated_at"])
def test_timestamp_columns_store_naive_utc(column) -> None:
    column_type = Task.__table__.c[column].type
    assert isinstance(column_type, DateTime)
    assert column_type.timezone is False
