"""Event detail page and share links."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from eventspark import formatting
from eventspark.core.config import settings
from eventspark.core.errors import StorageError
from eventspark.deck import Decision, DecisionStore
from eventspark.routes.deps import (
    error_status,
    get_decision_store,
    get_event_source,
    render_error,
    templates,
    wants_json,
)
from eventspark.source import EventSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/event", tags=["events"])


@router.get("/{event_id}", response_class=HTMLResponse)
async def event_detail(
    event_id: str,
    request: Request,
    source: EventSource = Depends(get_event_source),
    store: DecisionStore = Depends(get_decision_store),
):
    """
    Display a single event.

    This is the page share links point at. Shows the full description,
    ticket link and share buttons. Unknown ids get the not-found view;
    other failures get the error view with a retry button.
    """
    result = source.get_by_id(event_id)
    if not result.ok:
        return render_error(request, result.error, retry_url=f"/event/{event_id}")

    event = result.value
    url = formatting.share_url(event.id, settings.base_url)
    return templates.TemplateResponse(
        request,
        "event_detail.html",
        {
            "event": event,
            "is_saved": store.contains(Decision.SAVED, event.id),
            "share_url": url,
            "share_text": formatting.share_text(event),
            "share_links": formatting.social_share_urls(event, url),
        },
    )


@router.post("/{event_id}/save")
async def toggle_saved(
    event_id: str,
    request: Request,
    source: EventSource = Depends(get_event_source),
    store: DecisionStore = Depends(get_decision_store),
):
    """Save or unsave an event from its detail page. Unknown ids get a 404."""
    if store.contains(Decision.SAVED, event_id):
        action = store.remove
    else:
        result = source.get_by_id(event_id)
        if not result.ok:
            raise HTTPException(status_code=error_status(result.error), detail=result.error.message)
        action = store.add

    try:
        action(Decision.SAVED, event_id)
    except StorageError as e:
        logger.error(f"Could not update saved events for {event_id}: {e}")
        raise HTTPException(status_code=503, detail="Could not update saved events")

    if wants_json(request):
        return JSONResponse({"event_id": event_id, "saved": store.contains(Decision.SAVED, event_id)})
    return RedirectResponse(f"/event/{event_id}", status_code=303)
