"""Event source for a hosted PostgREST backend (e.g. Supabase) over HTTPS.

Queries are expressed as PostgREST filter parameters on the ``events``
table:

    start_date=gte.<iso>     upcoming events
    order=start_date.asc     soonest first
    id=eq.<id>               single event
    id=in.("a","b")          several events

Error bodies carry a ``code``: ``PGRST116`` (no rows for a single-object
request) maps to NotFoundError and ``23505`` (unique violation) to
ValidationError. Anything else, including network failures, becomes
DatabaseError.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import requests

from eventspark.core.errors import DatabaseError, NotFoundError, ValidationError
from eventspark.core.result import Err, Ok
from eventspark.models import Event
from eventspark.models.event import (
    check_cross_field_rules,
    merged_values,
    validate_event_create,
    validate_event_update,
)
from eventspark.source.base import missing_id_error

logger = logging.getLogger(__name__)

NO_ROWS = "PGRST116"
UNIQUE_VIOLATION = "23505"


def _in_filter(ids: list[str]) -> str:
    quoted = ",".join('"{}"'.format(i.replace('"', '\\"')) for i in ids)
    return f"in.({quoted})"


class RestEventSource:
    """Event CRUD against ``{base_url}/rest/v1/events``."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 10,
        http: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = http or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/events"

    def list(self):
        now = datetime.now(UTC).isoformat()
        return self._fetch_list(
            {"select": "*", "start_date": f"gte.{now}", "order": "start_date.asc"}
        )

    def list_all(self):
        return self._fetch_list({"select": "*", "order": "start_date.asc"})

    def get_by_id(self, event_id: str):
        if not event_id:
            return Err(missing_id_error())
        result = self._fetch_list({"select": "*", "id": f"eq.{event_id}"})
        if not result.ok:
            return result
        if not result.value:
            return Err(NotFoundError("Event", event_id))
        return Ok(result.value[0])

    def get_by_ids(self, event_ids: Iterable[str]):
        ids = list(dict.fromkeys(event_ids))
        if not ids:
            return Ok([])
        return self._fetch_list(
            {"select": "*", "id": _in_filter(ids), "order": "start_date.asc"}
        )

    def create(self, data: Mapping[str, Any]):
        try:
            event_in = validate_event_create(data)
        except ValidationError as e:
            return Err(e)

        result = self._request(
            "POST",
            json=event_in.model_dump(mode="json"),
            prefer="return=representation",
            message="Failed to create event",
        )
        if not result.ok:
            return result
        if not result.value:
            return Err(DatabaseError("Failed to create event - no data returned"))
        return Ok(Event.from_dict(result.value[0]))

    def update(self, event_id: str, data: Mapping[str, Any]):
        if not event_id:
            return Err(missing_id_error())
        try:
            changes = validate_event_update(data)
        except ValidationError as e:
            return Err(e)

        # Cross-field rules need the stored values the edit does not touch
        found = self.get_by_id(event_id)
        if not found.ok:
            return found
        errors = check_cross_field_rules(merged_values(found.value, changes))
        if errors:
            return Err(ValidationError(next(iter(errors.values())), errors=errors))

        payload = changes.model_dump(mode="json", exclude_unset=True)
        payload["updated_at"] = datetime.now(UTC).isoformat()
        result = self._request(
            "PATCH",
            params={"id": f"eq.{event_id}"},
            json=payload,
            prefer="return=representation",
            message="Failed to update event",
            resource_id=event_id,
        )
        if not result.ok:
            return result
        if not result.value:
            return Err(NotFoundError("Event", event_id))
        return Ok(Event.from_dict(result.value[0]))

    def delete(self, event_id: str):
        found = self.get_by_id(event_id)
        if not found.ok:
            return found
        result = self._request(
            "DELETE",
            params={"id": f"eq.{event_id}"},
            message="Failed to delete event",
            resource_id=event_id,
        )
        if not result.ok:
            return result
        return Ok(True)

    def _fetch_list(self, params: dict[str, str]):
        result = self._request("GET", params=params, message="Failed to fetch events")
        if not result.ok:
            return result
        try:
            return Ok([Event.from_dict(row) for row in result.value])
        except (TypeError, ValueError) as e:
            logger.error(f"Unexpected event payload: {e}")
            return Err(DatabaseError("Unexpected response from event backend", details=str(e)))

    def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
        message: str = "Request failed",
        resource_id: str | None = None,
    ):
        if not self.configured:
            return Err(DatabaseError(
                "Event backend is not configured. Check SUPABASE_URL and SUPABASE_ANON_KEY."
            ))

        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self.http.request(
                method,
                self.endpoint,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{message}: {e}")
            return Err(DatabaseError(f"An unexpected error occurred: {message.lower()}"))

        if response.status_code >= 400:
            return Err(self._error_from_response(response, message, resource_id))

        if not response.content:
            return Ok([])
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"{message}: invalid JSON from backend: {e}")
            return Err(DatabaseError(message, details="Invalid JSON response"))
        return Ok(body if isinstance(body, list) else [body])

    def _error_from_response(self, response, message: str, resource_id: str | None):
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = body.get("code")
        details = body.get("message") or body.get("details") or response.text

        if code == NO_ROWS and resource_id:
            return NotFoundError("Event", resource_id)
        if code == UNIQUE_VIOLATION:
            return ValidationError("An event with this information already exists")

        logger.error(f"{message}: HTTP {response.status_code} {code} {details}")
        return DatabaseError(message, code=code, details=details)
