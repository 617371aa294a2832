"""JSON API over events, the visitor's deck and their decisions."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from eventspark.core.errors import StorageError
from eventspark.deck import DeckSessions, Decision, DecisionStore
from eventspark.routes.deps import (
    error_json,
    get_deck_sessions,
    get_decision_store,
    get_event_source,
    get_visitor_id,
)
from eventspark.routes.discover import deck_state, load_deck
from eventspark.source import EventSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def storage_failure(e: StorageError) -> JSONResponse:
    logger.error(f"Decision store write failed: {e}")
    return JSONResponse({"message": e.message}, status_code=503)


@router.get("/events")
async def list_events(source: EventSource = Depends(get_event_source)):
    """Upcoming events, soonest first."""
    result = source.list()
    if not result.ok:
        return error_json(result.error)
    return [event.to_dict() for event in result.value]


@router.get("/events/{event_id}")
async def get_event(event_id: str, source: EventSource = Depends(get_event_source)):
    result = source.get_by_id(event_id)
    if not result.ok:
        return error_json(result.error)
    return result.value.to_dict()


@router.get("/deck")
async def get_deck(
    visitor_id: str = Depends(get_visitor_id),
    sessions: DeckSessions = Depends(get_deck_sessions),
    source: EventSource = Depends(get_event_source),
    store: DecisionStore = Depends(get_decision_store),
):
    """The visitor's deck window and position, loading the deck like the deck page does."""
    result = load_deck(visitor_id, sessions, source, store)
    if not result.ok:
        return error_json(result.error)
    return deck_state(result.value)


@router.get("/decisions/{decision}")
async def list_decisions(decision: Decision, store: DecisionStore = Depends(get_decision_store)):
    return {"decision": decision.value, "ids": store.all(decision)}


@router.post("/decisions/{decision}/{event_id}")
async def add_decision(
    decision: Decision,
    event_id: str,
    store: DecisionStore = Depends(get_decision_store),
):
    """Add an id to the saved or dismissed set. Adding twice is a no-op."""
    try:
        store.add(decision, event_id)
    except StorageError as e:
        return storage_failure(e)
    return {"decision": decision.value, "ids": store.all(decision)}


@router.delete("/decisions/{decision}/{event_id}")
async def remove_decision(
    decision: Decision,
    event_id: str,
    store: DecisionStore = Depends(get_decision_store),
):
    try:
        store.remove(decision, event_id)
    except StorageError as e:
        return storage_failure(e)
    return {"decision": decision.value, "ids": store.all(decision)}


@router.delete("/decisions/{decision}")
async def clear_decisions(decision: Decision, store: DecisionStore = Depends(get_decision_store)):
    try:
        store.clear(decision)
    except StorageError as e:
        return storage_failure(e)
    return {"decision": decision.value, "ids": []}
