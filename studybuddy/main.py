import logging
import time

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import CORS_ORIGINS
from .database import create_tables
from .errors import AuthFailure, StoreFailure, StudyBuddyError
from .middleware import MethodOverrideMiddleware
from .models import User
from .responses import envelope, is_json_request, redirect, render
from .routers import auth, tasks
from .routers.auth import clear_session_cookie, get_current_user

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="StudyBuddy Task Scheduler",
    description="Personal task scheduling with calendar and day views",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# HTML forms can only POST; ?_method=PUT|DELETE tunnels the real verb
app.add_middleware(MethodOverrideMiddleware)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000.0
    logger.info("%s %s -> %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.exception_handler(StudyBuddyError)
async def handle_studybuddy_error(request: Request, exc: StudyBuddyError):
    if is_json_request(request):
        response = envelope(success=False, status_code=exc.status_code, error=exc.message)
    else:
        response = redirect(exc.redirect_to, error=exc.message)
    if isinstance(exc, AuthFailure):
        clear_session_cookie(response)
    return response


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    failure = StoreFailure("Something went wrong!")
    if is_json_request(request):
        return envelope(success=False, status_code=failure.status_code, error=failure.message)
    return render(request, "error.html", {"message": failure.message}, status_code=failure.status_code)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and not is_json_request(request):
        return render(request, "404.html", {"url": request.url.path}, status_code=exc.status_code)
    return envelope(success=False, status_code=exc.status_code, error=str(exc.detail))


# Include routers
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])


# Create tables on startup
@app.on_event("startup")
def on_startup():
    create_tables()
    logger.info("Database tables ready")


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    return render(request, "home.html")


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/dashboard")
def dashboard(current_user: User = Depends(get_current_user)):
    return redirect("/tasks")
