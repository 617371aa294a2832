"""Admin routes for managing the event catalogue."""
import hmac
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.datastructures import FormData

from eventspark import formatting
from eventspark.core.config import settings
from eventspark.core.errors import StorageError
from eventspark.deck import DatabaseStorage
from eventspark.models import CATEGORY_LABELS, Event
from eventspark.routes.deps import (
    ADMIN_COOKIE,
    end_admin_session,
    error_json,
    error_status,
    get_admin_sessions,
    get_event_source,
    render_error,
    require_admin,
    start_admin_session,
    templates,
    wants_json,
)
from eventspark.source import EventSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

FORM_FIELDS = (
    "title", "description", "image_url", "start_date", "end_date",
    "location", "venue_name", "category", "ticket_url", "price",
)
DATETIME_INPUT_FORMAT = "%Y-%m-%dT%H:%M"


def event_from_form(form: FormData) -> dict:
    """Turn submitted form fields into event input.

    Unchecked checkboxes are not submitted, so ``is_free`` is True only
    when the field is present.
    """
    data = {field: form.get(field, "") for field in FORM_FIELDS}
    data["start_date"] = from_local_input(data["start_date"])
    data["end_date"] = from_local_input(data["end_date"])
    data["is_free"] = form.get("is_free") is not None
    return data


def from_local_input(value: str):
    """A datetime-local value read as a time in the display timezone.

    Anything that is not in the input's format is passed on unchanged for
    the event validators to report.
    """
    try:
        naive = datetime.strptime(value, DATETIME_INPUT_FORMAT)
    except ValueError:
        return value
    return naive.replace(tzinfo=formatting.display_zone())


def redisplay(data: dict) -> dict:
    """Submitted input, with parsed dates turned back into datetime-local values."""
    values = dict(data)
    for field in ("start_date", "end_date"):
        if isinstance(values[field], datetime):
            values[field] = values[field].strftime(DATETIME_INPUT_FORMAT)
    return values


def form_values(event: Event) -> dict:
    """Current values of an event, formatted for the edit form inputs."""
    values = {field: getattr(event, field) or "" for field in FORM_FIELDS}
    values["start_date"] = formatting.to_local(event.start_date).strftime(DATETIME_INPUT_FORMAT)
    if event.end_date:
        values["end_date"] = formatting.to_local(event.end_date).strftime(DATETIME_INPUT_FORMAT)
    values["is_free"] = event.is_free
    return values


def render_form(request: Request, values: dict, error=None, event_id=None, status_code=200):
    return templates.TemplateResponse(
        request,
        "admin/form.html",
        {
            "values": values,
            "message": error.message if error else None,
            "errors": error.errors if error else {},
            "event_id": event_id,
            "categories": CATEGORY_LABELS,
        },
        status_code=status_code,
    )


@router.get("")
async def admin_home():
    """Redirect to the event list."""
    return RedirectResponse("/admin/events", status_code=303)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    return templates.TemplateResponse(request, "admin/login.html", {"error": None, "email": ""})


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    sessions: DatabaseStorage = Depends(get_admin_sessions),
):
    """
    Sign in as the admin.

    The credentials are compared against ADMIN_EMAIL and ADMIN_PASSWORD.
    An empty ADMIN_PASSWORD disables admin login entirely.
    """
    email_ok = hmac.compare_digest(
        email.strip().lower().encode(), settings.admin_email.lower().encode()
    )
    password_ok = hmac.compare_digest(password.encode(), settings.admin_password.encode())
    if not settings.admin_password:
        error = "Admin authentication is not configured. Please contact the administrator."
    elif email_ok and password_ok:
        try:
            token = start_admin_session(sessions)
        except StorageError as e:
            logger.error(f"Could not start admin session: {e}")
            raise HTTPException(status_code=503, detail="Could not sign in, please try again")
        logger.info(f"Admin signed in: {settings.admin_email}")
        response = RedirectResponse("/admin/events", status_code=303)
        response.set_cookie(
            ADMIN_COOKIE,
            token,
            max_age=settings.admin_session_max_age,
            httponly=True,
            samesite="lax",
        )
        return response
    else:
        error = "Invalid email or password."

    logger.info(f"Failed admin sign-in for {email!r}")
    return templates.TemplateResponse(
        request,
        "admin/login.html",
        {"error": error, "email": email},
        status_code=401,
    )


@router.post("/logout")
async def logout(
    request: Request,
    sessions: DatabaseStorage = Depends(get_admin_sessions),
):
    """Sign out and end the session, so the old cookie no longer works."""
    try:
        end_admin_session(request, sessions)
    except StorageError as e:
        logger.error(f"Could not end admin session: {e}")
        raise HTTPException(status_code=503, detail="Could not sign out, please try again")
    response = RedirectResponse("/admin/login", status_code=303)
    response.delete_cookie(ADMIN_COOKIE)
    return response


@router.get("/events", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
async def list_events(request: Request, source: EventSource = Depends(get_event_source)):
    """Display every event, past and upcoming, soonest first."""
    result = source.list_all()
    if not result.ok:
        return render_error(request, result.error, retry_url="/admin/events")
    return templates.TemplateResponse(request, "admin/events.html", {"events": result.value})


@router.get("/events/new", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
async def new_event_form(request: Request):
    return render_form(request, {"is_free": True})


@router.post("/events/new", dependencies=[Depends(require_admin)])
async def create_event(request: Request, source: EventSource = Depends(get_event_source)):
    """
    Create an event from the admin form.

    Invalid input re-renders the form with the submitted values and a
    message under each offending field (status 422).
    """
    data = event_from_form(await request.form())
    result = source.create(data)
    if not result.ok:
        if wants_json(request):
            return error_json(result.error)
        if error_status(result.error) == 422:
            return render_form(request, redisplay(data), error=result.error, status_code=422)
        return render_error(request, result.error)

    event = result.value
    logger.info(f"Admin created event {event.id}: {event.title}")
    if wants_json(request):
        return JSONResponse(event.to_dict(), status_code=201)
    return RedirectResponse("/admin/events", status_code=303)


@router.get("/events/{event_id}", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
async def edit_event_form(
    event_id: str,
    request: Request,
    source: EventSource = Depends(get_event_source),
):
    result = source.get_by_id(event_id)
    if not result.ok:
        return render_error(request, result.error, retry_url=f"/admin/events/{event_id}")
    return render_form(request, form_values(result.value), event_id=event_id)


@router.post("/events/{event_id}", dependencies=[Depends(require_admin)])
async def update_event(
    event_id: str,
    request: Request,
    source: EventSource = Depends(get_event_source),
):
    """Save the edit form. Validation works as for new events."""
    data = event_from_form(await request.form())
    result = source.update(event_id, data)
    if not result.ok:
        if wants_json(request):
            return error_json(result.error)
        if error_status(result.error) == 422:
            return render_form(
                request, redisplay(data), error=result.error, event_id=event_id, status_code=422
            )
        return render_error(request, result.error)

    logger.info(f"Admin updated event {event_id}")
    if wants_json(request):
        return JSONResponse(result.value.to_dict())
    return RedirectResponse("/admin/events", status_code=303)


@router.post("/events/{event_id}/delete", dependencies=[Depends(require_admin)])
async def delete_event(
    event_id: str,
    request: Request,
    source: EventSource = Depends(get_event_source),
):
    result = source.delete(event_id)
    if not result.ok:
        if wants_json(request):
            return error_json(result.error)
        return render_error(request, result.error)

    logger.info(f"Admin deleted event {event_id}")
    if wants_json(request):
        return JSONResponse({"deleted": event_id})
    return RedirectResponse("/admin/events", status_code=303)
