"""User registration, password checks and preferences."""
from functools import lru_cache
from typing import Optional
import logging

import bcrypt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..config import BCRYPT_ROUNDS
from ..errors import AuthFailure, ValidationFailure
from ..models import User, utcnow
from ..schemas.user import TaskStats
from .task_store import TaskStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt directly."""
    password_bytes = password.encode('utf-8')[:72]  # Truncate to 72 bytes (bcrypt limit)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Checked against when the email is unknown so both failures cost the same
    return hash_password("studybuddy-dummy-password")


def _normalize(identifier: Optional[str]) -> str:
    return (identifier or "").strip().lower()


def find_by_email_or_username(db: Session, identifier: str) -> Optional[User]:
    value = _normalize(identifier)
    return db.query(User).filter(or_(User.email == value, User.username == value)).first()


def register_user(db: Session, username: str, email: str, password: str) -> User:
    """Create an account. Username and email are unique after trim + lowercase."""
    username = _normalize(username)
    email = _normalize(email)

    existing = (
        db.query(User)
        .filter(or_(User.email == email, User.username == username))
        .first()
    )
    if existing:
        field = "Email" if existing.email == email else "Username"
        raise ValidationFailure(f"{field} already in use", redirect_to="/auth/register")

    user = User(username=username, email=email, hashed_password=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Check credentials and record the login.

    Every failure raises the same AuthFailure so callers cannot tell an
    unknown email from a wrong password.
    """
    user = db.query(User).filter(User.email == _normalize(email)).first()
    if user is None:
        verify_password(password, _dummy_hash())
        raise AuthFailure(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password) or not user.is_active:
        raise AuthFailure(INVALID_CREDENTIALS)

    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def update_preferences(
    db: Session,
    user: User,
    timezone: Optional[str] = None,
    notify_email: Optional[bool] = None,
    notify_task_reminders: Optional[bool] = None,
) -> User:
    if timezone is not None:
        user.timezone = timezone.strip() or "UTC"
    if notify_email is not None:
        user.notify_email = notify_email
    if notify_task_reminders is not None:
        user.notify_task_reminders = notify_task_reminders
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def get_user_stats(db: Session, user_id: str) -> Optional[dict]:
    """The user row plus a per-status count of their tasks."""
    user = db.get(User, user_id)
    if user is None:
        return None
    return {"user": user, "taskStats": TaskStats(**TaskStore(db).count_by_status(user_id))}
