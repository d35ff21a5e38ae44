# tests/conftest.py

from __future__ import annotations

import os

# Must be set before studybuddy.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from studybuddy.database import SessionLocal, create_tables, drop_tables
from studybuddy.main import app
from studybuddy.models import utcnow
from studybuddy.services.credentials import register_user
from studybuddy.services.task_store import TaskStore

JSON = {"Accept": "application/json"}
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _fresh_tables():
    drop_tables()
    create_tables()
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db) -> TaskStore:
    return TaskStore(db)


@pytest.fixture()
def user(db):
    return register_user(db, "alice", "alice@example.com", PASSWORD)


@pytest.fixture()
def other_user(db):
    return register_user(db, "bob", "bob@example.com", PASSWORD)


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def logged_in_client(client: TestClient, user) -> TestClient:
    resp = client.post(
        "/auth/login",
        json={"email": "alice@example.com", "password": PASSWORD},
        headers=JSON,
    )
    assert resp.status_code == 200
    assert client.cookies.get("token")
    return client


@pytest.fixture()
def tomorrow():
    return utcnow() + timedelta(days=1)


@pytest.fixture()
def yesterday():
    return utcnow() - timedelta(days=1)
