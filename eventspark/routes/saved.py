"""Saved events page."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from eventspark.core.errors import StorageError
from eventspark.deck import Decision, DecisionStore
from eventspark.routes.deps import (
    get_decision_store,
    get_event_source,
    render_error,
    templates,
    wants_json,
)
from eventspark.source import EventSource
from eventspark.source.base import by_start_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/saved", tags=["saved"])


@router.get("", response_class=HTMLResponse)
async def saved_events(
    request: Request,
    source: EventSource = Depends(get_event_source),
    store: DecisionStore = Depends(get_decision_store),
):
    """
    Display the visitor's saved events, soonest first.

    Ids whose events no longer exist are left out of the list but stay in
    the saved set. A failed fetch shows the error view with a retry button.
    """
    saved_ids = store.all(Decision.SAVED)
    result = source.get_by_ids(saved_ids)
    if not result.ok:
        logger.warning(f"Could not load saved events: {result.error.message}")
        return render_error(request, result.error, retry_url="/saved")

    return templates.TemplateResponse(
        request,
        "saved.html",
        {
            "events": by_start_date(result.value),
            "dismissed_count": len(store.all(Decision.DISMISSED)),
        },
    )


@router.post("/{event_id}/remove")
async def remove_saved(
    event_id: str,
    request: Request,
    store: DecisionStore = Depends(get_decision_store),
):
    """Take an event off the saved list."""
    try:
        store.remove(Decision.SAVED, event_id)
    except StorageError as e:
        logger.error(f"Could not remove saved event {event_id}: {e}")
        raise HTTPException(status_code=503, detail="Could not update saved events")

    if wants_json(request):
        return JSONResponse({"saved": store.all(Decision.SAVED)})
    return RedirectResponse("/saved", status_code=303)


@router.post("/dismissed/clear")
async def clear_dismissed(
    request: Request,
    store: DecisionStore = Depends(get_decision_store),
):
    """Forget every passed-on event."""
    try:
        store.clear(Decision.DISMISSED)
    except StorageError as e:
        logger.error(f"Could not clear dismissed events: {e}")
        raise HTTPException(status_code=503, detail="Could not update dismissed events")

    if wants_json(request):
        return JSONResponse({"dismissed": []})
    return RedirectResponse("/saved", status_code=303)
