"""
Preferences router — GET /preferences, PUT /preferences/time-zone
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from api.auth import require_auth
from api.schemas import PreferencesResponse, TimeZoneUpdate

router = APIRouter(prefix="/preferences", tags=["preferences"])


def _prefs(store, claims: dict) -> PreferencesResponse:
    return PreferencesResponse(
        user=claims.get("sub"),
        time_zone=store.time_zone,
        visible_categories=sorted(store.visible_categories, key=lambda c: c.value),
    )


@router.get("", response_model=PreferencesResponse)
async def get_preferences(request: Request, claims: dict = Depends(require_auth)) -> PreferencesResponse:
    return _prefs(request.app.state.store, claims)


@router.put("/time-zone", response_model=PreferencesResponse)
async def set_time_zone(
    body: TimeZoneUpdate,
    request: Request,
    claims: dict = Depends(require_auth),
) -> PreferencesResponse:
    store = request.app.state.store
    try:
        store.set_time_zone(body.time_zone)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _prefs(store, claims)
