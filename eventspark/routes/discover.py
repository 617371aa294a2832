"""Discover routes: the swipeable event deck."""
import logging
from dataclasses import asdict
from datetime import timedelta

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from eventspark.core.config import settings
from eventspark.core.errors import AppError, StorageError
from eventspark.core.result import Ok, Result
from eventspark.deck import DeckSessions, DecisionStore, SwipeDeck, SwipeDirection
from eventspark.routes.deps import (
    error_json,
    get_deck_sessions,
    get_decision_store,
    get_event_source,
    get_visitor_id,
    render_error,
    templates,
    wants_json,
)
from eventspark.source import EventSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discover", tags=["discover"])


def build_deck(events, store: DecisionStore) -> SwipeDeck:
    return SwipeDeck(
        events,
        store,
        window_size=settings.deck_window_size,
        threshold=settings.swipe_threshold,
        exit_distance=settings.exit_distance,
        exit_duration=settings.exit_duration,
    )


def deck_state(deck: SwipeDeck) -> dict:
    """JSON view of a deck: window, cursor and the top card's motion frame."""
    position, total = deck.position
    motion = deck.motion
    return {
        "cursor": deck.cursor,
        "position": position,
        "total": total,
        "exhausted": deck.is_exhausted,
        "window": [event.to_dict() for event in deck.window()],
        "frame": asdict(motion.frame()) if motion else None,
    }


def load_deck(
    visitor_id: str,
    sessions: DeckSessions,
    source: EventSource,
    store: DecisionStore,
    rebuild: bool = False,
) -> Result[SwipeDeck, AppError]:
    """
    The visitor's deck, building it from ``source.list()`` when needed.

    A deck is rebuilt when there is none yet, when it was built more than
    DECK_REFRESH_MINUTES ago, or when ``rebuild`` is set (starting over).
    A failed fetch leaves the visitor without a deck, so the next page load
    tries again.
    """
    deck = None
    if not rebuild:
        deck = sessions.get(visitor_id, max_age=timedelta(minutes=settings.deck_refresh_minutes))
    if deck is not None:
        return Ok(deck)

    sessions.drop(visitor_id)
    result = source.list()
    if not result.ok:
        logger.warning(f"Could not load events for deck: {result.error.message}")
        return result
    return Ok(sessions.put(visitor_id, build_deck(result.value, store)))


def deck_response(request: Request, deck: SwipeDeck | None, committed=None):
    if wants_json(request):
        body = deck_state(deck) if deck else {"exhausted": True, "window": []}
        body["committed"] = committed.id if committed else None
        return JSONResponse(body)
    return RedirectResponse("/discover", status_code=303)


@router.get("", response_class=HTMLResponse)
async def discover(
    request: Request,
    visitor_id: str = Depends(get_visitor_id),
    sessions: DeckSessions = Depends(get_deck_sessions),
    source: EventSource = Depends(get_event_source),
    store: DecisionStore = Depends(get_decision_store),
):
    """
    Display the swipe deck.

    The first visit loads upcoming events from the event source and builds
    a deck for this visitor. Later visits show the same deck at its current
    position until it is older than DECK_REFRESH_MINUTES, when it is built
    again from fresh events. A failed load shows an error view with a retry button.
    """
    result = load_deck(visitor_id, sessions, source, store)
    if not result.ok:
        return render_error(
            request, result.error, retry_url="/discover/refresh", retry_method="post"
        )
    deck = result.value

    position, total = deck.position
    return templates.TemplateResponse(
        request,
        "discover.html",
        {
            "deck": deck,
            "cards": deck.window(),
            "frame": deck.motion.frame() if deck.motion else None,
            "position": position,
            "total": total,
        },
    )


@router.post("/swipe")
async def swipe(
    request: Request,
    direction: str | None = Form(None),
    offset: float | None = Form(None),
    visitor_id: str = Depends(get_visitor_id),
    sessions: DeckSessions = Depends(get_deck_sessions),
):
    """
    Swipe the top card.

    With ``offset`` the request describes a drag released at that many
    pixels: past the threshold it commits in the drag direction, otherwise
    the card snaps back and nothing is recorded. With ``direction`` (left or
    right) it is a button or keyboard swipe, which animates the card out
    before committing.
    """
    deck = sessions.get(visitor_id)
    if deck is None:
        return deck_response(request, None)

    try:
        if offset is not None:
            committed = deck.drag(offset)
        else:
            try:
                swipe_direction = SwipeDirection(direction)
            except ValueError:
                raise HTTPException(status_code=400, detail="Direction must be 'left' or 'right'")
            committed = await deck.swipe(swipe_direction)
    except StorageError as e:
        logger.error(f"Could not record swipe for {visitor_id}: {e}")
        raise HTTPException(status_code=503, detail="Could not save your choice, please try again")

    return deck_response(request, deck, committed)


@router.post("/reset")
async def reset(
    request: Request,
    visitor_id: str = Depends(get_visitor_id),
    sessions: DeckSessions = Depends(get_deck_sessions),
    source: EventSource = Depends(get_event_source),
    store: DecisionStore = Depends(get_decision_store),
):
    """
    Start over from the first card with freshly loaded events.

    Saved and dismissed lists are kept. If loading fails the visitor is
    sent back to the deck page, which shows the error view.
    """
    result = load_deck(visitor_id, sessions, source, store, rebuild=True)
    if not result.ok:
        if wants_json(request):
            return error_json(result.error)
        return RedirectResponse("/discover", status_code=303)
    return deck_response(request, result.value)


@router.post("/refresh")
async def refresh(
    visitor_id: str = Depends(get_visitor_id),
    sessions: DeckSessions = Depends(get_deck_sessions),
):
    """Drop the current deck so the next visit reloads events."""
    sessions.drop(visitor_id)
    return RedirectResponse("/discover", status_code=303)
