from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import HTMLResponse
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_SECURE, SECRET_KEY
from ..database import get_db
from ..errors import AuthFailure, ValidationFailure
from ..models import User
from ..responses import envelope, is_json_request, parse_payload, read_payload, redirect, render
from ..schemas.user import LoginRequest, PreferencesUpdate, RegisterRequest, User as UserSchema
from ..services.credentials import authenticate_user, get_user_stats, register_user, update_preferences

router = APIRouter()
logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
COOKIE_NAME = "token"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return request.cookies.get(COOKIE_NAME)


def _decode_token(token: str) -> Optional[str]:
    """User id carried by a valid, unexpired token."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected session token: %s", exc)
        return None
    return payload.get("sub") or None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="strict",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=COOKIE_NAME, httponly=True, secure=COOKIE_SECURE, samesite="strict")


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Load the user behind the session token, or fail the request."""
    token = _get_token_from_request(request)
    if not token:
        raise AuthFailure("Not authenticated")

    user_id = _decode_token(token)
    if not user_id:
        raise AuthFailure("Could not validate credentials")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthFailure("Could not validate credentials")

    request.state.user = user
    return user


def _session_response(request: Request, user: User, message: str, status_code: int = status.HTTP_200_OK):
    token = create_access_token(data={"sub": user.id})
    if is_json_request(request):
        response = envelope(
            status_code=status_code,
            user=UserSchema.model_validate(user),
            message=message,
        )
    else:
        response = redirect("/dashboard")
    set_session_cookie(response, token)
    return response


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    return render(request, "login.html")


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request):
    return render(request, "register.html")


@router.post("/register")
async def register(request: Request, db: Session = Depends(get_db)):
    """Create a new user account and sign it in."""
    data = parse_payload(RegisterRequest, await read_payload(request), redirect_to="/auth/register")
    user = register_user(db, data.username, data.email, data.password)
    return _session_response(request, user, "Account created", status.HTTP_201_CREATED)


@router.post("/login")
async def login(request: Request, db: Session = Depends(get_db)):
    """Sign in and issue the session cookie."""
    payload = await read_payload(request)
    if not payload.get("email") or not payload.get("password"):
        raise ValidationFailure("Email and password are required", redirect_to="/auth/login")
    data = parse_payload(LoginRequest, payload, redirect_to="/auth/login")
    user = authenticate_user(db, data.email, data.password)
    return _session_response(request, user, "Logged in")


@router.get("/logout")
def logout(request: Request):
    """Sign out and clear the session cookie."""
    response = envelope(message="Logged out") if is_json_request(request) else redirect("/auth/login")
    clear_session_cookie(response)
    return response


@router.get("/me")
def read_users_me(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user plus a count of their tasks by status."""
    stats = get_user_stats(db, current_user.id)
    return envelope(user=UserSchema.model_validate(stats["user"]), taskStats=stats["taskStats"])


@router.put("/preferences")
async def change_preferences(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = parse_payload(PreferencesUpdate, await read_payload(request), redirect_to="/tasks")
    user = update_preferences(
        db,
        current_user,
        timezone=data.timezone,
        notify_email=data.notify_email,
        notify_task_reminders=data.notify_task_reminders,
    )
    if is_json_request(request):
        return envelope(user=UserSchema.model_validate(user), message="Preferences updated")
    return redirect("/tasks")
