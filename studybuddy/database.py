"""Engine and session plumbing shared by the app, the scripts and the tests."""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel, create_engine

from .config import DATABASE_URL

# Registers the users and tasks tables on SQLModel.metadata
from .models import Task, User  # noqa: F401


def build_engine(url: str = DATABASE_URL) -> Engine:
    """Engine for ``url``: SQLite locally and in tests, Postgres in production."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        # Serverless Postgres drops idle connections, so no pool and pre-ping
        return create_engine(url, pool_pre_ping=True, poolclass=NullPool)

    options = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # An in-memory database exists only on its one connection
        options["poolclass"] = StaticPool
    return create_engine(url, **options)


engine = build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    with SessionLocal() as db:
        yield db


@contextmanager
def get_session() -> Iterator[Session]:
    """Session for code running outside a request, such as the cron scripts."""
    with SessionLocal() as session:
        yield session


def create_tables(bind: Engine = engine) -> None:
    SQLModel.metadata.create_all(bind=bind)


def drop_tables(bind: Engine = engine) -> None:
    SQLModel.metadata.drop_all(bind=bind)
