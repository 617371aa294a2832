"""Dependencies and helpers shared by the route modules."""
import logging
import secrets
from pathlib import Path

from fastapi import Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlmodel import Session

from eventspark import formatting
from eventspark.core import database
from eventspark.core.config import settings
from eventspark.core.database import get_session
from eventspark.core.errors import AppError, DatabaseError, NotFoundError, ValidationError
from eventspark.deck import DatabaseStorage, DecisionStore, deck_sessions
from eventspark.source import (
    DatabaseEventSource,
    DemoEventSource,
    EventSource,
    RestEventSource,
)

ADMIN_COOKIE = "spark_admin"
ADMIN_SESSION_SALT = "spark-admin-session"
ADMIN_NAMESPACE = "__admin__"
DEMO_NAMESPACE = "__demo__"

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))
templates.env.filters["relative_date"] = formatting.relative_date
templates.env.filters["date_range"] = formatting.format_date_range
templates.env.filters["format_date"] = formatting.format_date


def wants_json(request: Request) -> bool:
    """Check if the client prefers JSON response (AJAX request)."""
    accept = request.headers.get("accept", "")
    return "application/json" in accept


def get_engine():
    """Dependency for the engine behind per-visitor storage."""
    return database.engine


def get_visitor_id(request: Request) -> str:
    return request.state.visitor_id


def get_deck_sessions():
    return deck_sessions


def get_event_source(
    session: Session = Depends(get_session),
    engine=Depends(get_engine),
) -> EventSource:
    """Event source selected by the EVENT_SOURCE setting."""
    if settings.event_source == "rest":
        return RestEventSource(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.request_timeout,
        )
    if settings.event_source == "demo":
        return DemoEventSource(DatabaseStorage(engine, DEMO_NAMESPACE))
    return DatabaseEventSource(session)


def get_decision_store(
    visitor_id: str = Depends(get_visitor_id),
    engine=Depends(get_engine),
) -> DecisionStore:
    return DecisionStore(DatabaseStorage(engine, visitor_id))


def admin_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.secret_key, salt=ADMIN_SESSION_SALT)


def get_admin_sessions(engine=Depends(get_engine)) -> DatabaseStorage:
    """Live admin sessions, one storage row per login."""
    return DatabaseStorage(engine, ADMIN_NAMESPACE)


def start_admin_session(sessions: DatabaseStorage) -> str:
    """Record a new admin login and return the signed cookie value for it."""
    session_id = secrets.token_urlsafe(16)
    sessions.set_item(session_id, settings.admin_email)
    return admin_serializer().dumps({"sid": session_id, "email": settings.admin_email})


def admin_session_id(request: Request, sessions: DatabaseStorage) -> str | None:
    """
    Id of the admin session named by the request's cookie.

    The cookie must carry a valid signature, be younger than
    ADMIN_SESSION_MAX_AGE seconds and name a session that has not been
    ended by a logout. Returns None otherwise.
    """
    token = request.cookies.get(ADMIN_COOKIE)
    if not token:
        return None
    try:
        payload = admin_serializer().loads(token, max_age=settings.admin_session_max_age)
    except BadSignature as e:
        logger.info(f"Rejected admin cookie: {e}")
        return None
    if not isinstance(payload, dict) or payload.get("email") != settings.admin_email:
        return None
    session_id = payload.get("sid")
    if not isinstance(session_id, str) or sessions.get_item(session_id) != settings.admin_email:
        return None
    return session_id


def end_admin_session(request: Request, sessions: DatabaseStorage) -> None:
    session_id = admin_session_id(request, sessions)
    if session_id is not None:
        sessions.remove_item(session_id)


def require_admin(
    request: Request,
    sessions: DatabaseStorage = Depends(get_admin_sessions),
) -> None:
    """Redirect to the login page unless the admin cookie names a live session."""
    if admin_session_id(request, sessions) is None:
        raise HTTPException(status_code=303, headers={"Location": "/admin/login"})


def error_status(error: AppError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, DatabaseError):
        return 503
    return 500


def error_json(error: AppError) -> JSONResponse:
    body = {"message": error.message}
    if isinstance(error, ValidationError):
        body["errors"] = error.errors
    if isinstance(error, DatabaseError) and error.code:
        body["code"] = error.code
    return JSONResponse(body, status_code=error_status(error))


def render_error(
    request: Request,
    error: AppError,
    retry_url: str | None = None,
    retry_method: str = "get",
):
    """Full-page view for a failed source call: not-found or generic error."""
    status = error_status(error)
    template = "not_found.html" if status == 404 else "error.html"
    return templates.TemplateResponse(
        request,
        template,
        {"message": error.message, "retry_url": retry_url, "retry_method": retry_method},
        status_code=status,
    )
