"""
Saved places router — addresses remembered for the event location picker.

    GET    /places            most recently used first
    PUT    /places            remember an address (or bump an existing one)
    DELETE /places/{key}
    DELETE /places            forget all
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.auth import require_auth
from api.schemas import SavedPlaceResponse, SavedPlaceUpsert
from services.event_store import PlaceNotFoundError

router = APIRouter(prefix="/places", tags=["places"], dependencies=[Depends(require_auth)])


@router.get("", response_model=list[SavedPlaceResponse])
async def list_places(request: Request) -> list[SavedPlaceResponse]:
    return [SavedPlaceResponse.from_place(p) for p in request.app.state.store.saved_places]


@router.put("", response_model=SavedPlaceResponse)
async def upsert_place(body: SavedPlaceUpsert, request: Request) -> SavedPlaceResponse:
    try:
        place = request.app.state.store.upsert_saved_place(body.address, label=body.label)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return SavedPlaceResponse.from_place(place)


@router.delete("/{key}", status_code=204)
async def remove_place(key: str, request: Request) -> Response:
    try:
        request.app.state.store.remove_saved_place(key)
    except PlaceNotFoundError:
        raise HTTPException(status_code=404, detail=f"Place {key!r} not found")
    return Response(status_code=204)


@router.delete("", status_code=204)
async def clear_places(request: Request) -> Response:
    request.app.state.store.clear_saved_places()
    return Response(status_code=204)
