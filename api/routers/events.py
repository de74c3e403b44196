"""
Events router — merged user + holiday events.

    GET    /events                      list (category / date window filters)
    GET    /events/{id}
    POST   /events                      create a user event
    PATCH  /events/{id}                 update a user event
    DELETE /events/{id}
    POST   /events/{id}/toggle-done
    POST   /events/refresh-holidays     recompute the holiday window
"""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from api.auth import require_auth
from api.schemas import EventCreate, EventResponse, EventUpdate
from models.calendar import CalendarCategory, CalendarEvent, EventSource
from services.event_store import EventNotFoundError, HolidayEventReadOnlyError

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(require_auth)])

# Fields an explicit null may clear
_CLEARABLE = {"end", "notes", "location_name", "location_address", "reminder_minutes_before"}


def _store(request: Request):
    return request.app.state.store


@router.get("", response_model=list[EventResponse])
async def list_events(
    request: Request,
    category: list[CalendarCategory] | None = Query(default=None),
    start: date | None = None,
    end: date | None = None,
    visible_only: bool = False,
) -> list[EventResponse]:
    store = _store(request)
    categories = category
    if visible_only:
        visible = store.visible_categories
        categories = [c for c in (category or visible) if c in visible]
    events = store.events_between(start, end, categories)
    return [EventResponse.from_event(e) for e in events]


@router.post("/refresh-holidays", response_model=list[EventResponse])
async def refresh_holidays(request: Request) -> list[EventResponse]:
    store = _store(request)
    store.refresh_holidays()
    return [EventResponse.from_event(e) for e in store.events]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, request: Request) -> EventResponse:
    try:
        return EventResponse.from_event(_store(request).get(event_id))
    except EventNotFoundError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(body: EventCreate, request: Request) -> EventResponse:
    fields = body.model_dump()
    fields["id"] = fields["id"] or str(uuid.uuid4())
    event = CalendarEvent(source=EventSource.USER, **fields)
    try:
        created = _store(request).add_event(event)
    except HolidayEventReadOnlyError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return EventResponse.from_event(created)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(event_id: str, body: EventUpdate, request: Request) -> EventResponse:
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in _CLEARABLE
    }
    try:
        updated = _store(request).update_event(event_id, **changes)
    except EventNotFoundError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    except HolidayEventReadOnlyError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return EventResponse.from_event(updated)


@router.delete("/{event_id}", status_code=204)
async def delete_event(event_id: str, request: Request) -> Response:
    try:
        _store(request).delete_event(event_id)
    except EventNotFoundError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    except HolidayEventReadOnlyError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=204)


@router.post("/{event_id}/toggle-done", response_model=EventResponse)
async def toggle_done(event_id: str, request: Request) -> EventResponse:
    try:
        updated = _store(request).toggle_done(event_id)
    except EventNotFoundError:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    except HolidayEventReadOnlyError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return EventResponse.from_event(updated)
