import pytest

from studybuddy.errors import AuthFailure, ValidationFailure
from studybuddy.schemas.user import TaskStats
from studybuddy.services.credentials import (
    INVALID_CREDENTIALS,
    authenticate_user,
    find_by_email_or_username,
    get_user_stats,
    register_user,
    update_preferences,
)

from .conftest import PASSWORD


def test_register_stores_only_a_hash(user) -> None:
    assert user.hashed_password != PASSWORD
    assert user.hashed_password.startswith("$2")
    assert user.is_active
    assert user.timezone == "UTC"


def test_register_normalizes_identifiers(db) -> None:
    created = register_user(db, "  Carol ", "  Carol@Example.COM ", PASSWORD)
    assert created.username == "carol"
    assert created.email == "carol@example.com"


def test_duplicate_email_differing_in_case_and_whitespace(db, user) -> None:
    with pytest.raises(ValidationFailure) as excinfo:
        register_user(db, "alice2", "  ALICE@example.com ", PASSWORD)
    assert excinfo.value.message == "Email already in use"


def test_duplicate_username(db, user) -> None:
    with pytest.raises(ValidationFailure) as excinfo:
        register_user(db, "ALICE", "another@example.com", PASSWORD)
    assert excinfo.value.message == "Username already in use"


def test_authenticate_success_updates_last_login(db, user) -> None:
    assert user.last_login is None
    logged_in = authenticate_user(db, " Alice@Example.com ", PASSWORD)
    assert logged_in.id == user.id
    assert logged_in.last_login is not None


def test_wrong_password_and_unknown_email_fail_identically(db, user) -> None:
    with pytest.raises(AuthFailure) as wrong_password:
        authenticate_user(db, "alice@example.com", "not-the-password")
    with pytest.raises(AuthFailure) as unknown_email:
        authenticate_user(db, "nobody@example.com", PASSWORD)

    assert wrong_password.value.message == unknown_email.value.message == INVALID_CREDENTIALS


def test_inactive_account_cannot_log_in(db, user) -> None:
    user.is_active = False
    db.commit()
    with pytest.raises(AuthFailure) as excinfo:
        authenticate_user(db, "alice@example.com", PASSWORD)
    assert excinfo.value.message == INVALID_CREDENTIALS


def test_find_by_email_or_username(db, user) -> None:
    assert find_by_email_or_username(db, "ALICE").id == user.id
    assert find_by_email_or_username(db, " alice@example.com").id == user.id
    assert find_by_email_or_username(db, "bob") is None


def test_update_preferences(db, user) -> None:
    updated = update_preferences(db, user, timezone="Europe/Berlin", notify_email=False)
    assert updated.timezone == "Europe/Berlin"
    assert updated.notify_email is False
    assert updated.notify_task_reminders is True


def test_user_stats(db, user, store, tomorrow) -> None:
    store.create(user.id, "a", tomorrow)
    stats = get_user_stats(db, user.id)
    assert stats["user"].id == user.id
    assert stats["taskStats"] == TaskStats(pending=1, total=1)
    assert get_user_stats(db, "missing") is None
