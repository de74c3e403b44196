"""
Calendar API — integration tests.

Groups:
  A. Holidays (public, generated)
  B. Auth
  C. Events (list / filters)
  D. Events (writes)
  E. Categories
  F. Saved places
  G. Preferences
"""

from __future__ import annotations

from datetime import datetime

import jwt
import pytest
import pytest_asyncio
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from httpx import ASGITransport, AsyncClient

from api.app import create_app
from api.auth import require_auth
from api.routers import holidays as holidays_router
from models.calendar import CalendarCategory, CalendarEvent
from services.event_store import EventStore
from services.holiday_generator import ALL_RULES, POPULAR_RULES

# ── JWT helper ────────────────────────────────────────────────────────────────

SECRET = "change-me-in-production"
ALGORITHM = "HS256"
AUTH_HEADERS = {"Authorization": f"Bearer {jwt.encode({'sub': 'tester'}, SECRET, algorithm=ALGORITHM)}"}


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture()
def store() -> EventStore:
    s = EventStore(clock=lambda: datetime(2024, 6, 1, 12, 0))
    s.add_event(CalendarEvent(
        id="evt-dentist",
        title="Dentist",
        start="2024-07-02T09:30:00",
        end="2024-07-02T10:30:00",
        category=CalendarCategory.HEALTH,
    ))
    return s


@pytest_asyncio.fixture
async def client(store):
    test_app = create_app(store)
    async with AsyncClient(
        transport=ASGITransport(app=test_app), base_url="http://test"
    ) as c:
        yield c


# ── A. Holidays ───────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_holidays_single_year(client):
    resp = await client.get("/api/v1/holidays", params={"start_year": 2024, "end_year": 2024})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == len(ALL_RULES)
    thanksgiving = [e for e in data if e["title"].endswith("Thanksgiving Day")]
    assert len(thanksgiving) == 1
    assert thanksgiving[0]["start"] == "2024-11-28"
    assert thanksgiving[0]["all_day"] is True
    assert thanksgiving[0]["source"] == "holiday"
    assert thanksgiving[0]["category"] == "Holiday"


@pytest.mark.asyncio
async def test_holidays_category_filter(client):
    resp = await client.get(
        "/api/v1/holidays",
        params={"start_year": 2024, "end_year": 2024, "category": "Observance"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == len(POPULAR_RULES)
    assert {e["category"] for e in data} == {"Observance"}


@pytest.mark.asyncio
async def test_holidays_inverted_range_rejected(client):
    resp = await client.get("/api/v1/holidays", params={"start_year": 2025, "end_year": 2024})
    assert resp.status_code == 422
    assert "after end_year" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_holidays_lone_bound_past_default_window_rejected(client):
    # The missing bound defaults to the rolling window around today
    resp = await client.get("/api/v1/holidays", params={"start_year": 9000})
    assert resp.status_code == 422
    resp = await client.get("/api/v1/holidays", params={"end_year": 1700})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_holidays_lone_start_year_uses_default_end(client, monkeypatch):
    monkeypatch.setattr(holidays_router, "default_year_range", lambda: (2025, 2028))
    resp = await client.get("/api/v1/holidays", params={"start_year": 2028})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == len(ALL_RULES)
    assert {e["start"][:4] for e in data} == {"2028"}


@pytest.mark.asyncio
async def test_holidays_rejects_bad_input(client):
    resp = await client.get("/api/v1/holidays", params={"start_year": 1000})
    assert resp.status_code == 422
    resp = await client.get("/api/v1/holidays", params={"category": "Work"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_holidays_ids_stable_across_requests(client):
    params = {"start_year": 2025, "end_year": 2026}
    first = (await client.get("/api/v1/holidays", params=params)).json()
    second = (await client.get("/api/v1/holidays", params=params)).json()
    assert [e["id"] for e in first] == [e["id"] for e in second]


# ── B. Auth ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_events_require_auth(client):
    resp = await client.get("/api/v1/events")
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_events_reject_bad_token(client):
    resp = await client.get("/api/v1/events", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_require_auth_returns_claims():
    token = jwt.encode({"sub": "tester", "scope": "calendar"}, SECRET, algorithm=ALGORITHM)
    claims = await require_auth(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
    assert claims == {"sub": "tester", "scope": "calendar"}


@pytest.mark.asyncio
async def test_require_auth_rejects_wrong_secret():
    token = jwt.encode({"sub": "tester"}, "some-other-secret", algorithm=ALGORITHM)
    with pytest.raises(HTTPException) as exc_info:
        await require_auth(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
    assert exc_info.value.status_code == 401


# ── C. Events (list / filters) ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_events_merges_user_and_holidays(client):
    resp = await client.get(
        "/api/v1/events",
        params={"start": "2024-07-01", "end": "2024-07-04"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [e["id"] for e in data] == [
        "evt-dentist",
        "holiday_2024-07-04_independence_day_holiday",
    ]


@pytest.mark.asyncio
async def test_list_events_category_filter(client):
    resp = await client.get(
        "/api/v1/events",
        params={"category": ["Health"]},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == ["evt-dentist"]


@pytest.mark.asyncio
async def test_list_events_visible_only(client):
    resp = await client.get(
        "/api/v1/events",
        params={"visible_only": "true", "start": "2024-11-01", "end": "2024-11-30"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    # Observances are hidden by default
    assert {e["category"] for e in resp.json()} == {"Holiday"}


# ── D. Events (writes) ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_event(client):
    resp = await client.post(
        "/api/v1/events",
        json={
            "title": "Mom's birthday",
            "start": "2024-09-14T00:00:00",
            "all_day": True,
            "category": "Birthday",
        },
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["id"]
    assert data["start"] == "2024-09-14"
    assert data["source"] == "user"

    got = await client.get(f"/api/v1/events/{data['id']}", headers=AUTH_HEADERS)
    assert got.status_code == 200
    assert got.json()["title"] == "Mom's birthday"


@pytest.mark.asyncio
async def test_create_holiday_category_rejected(client):
    resp = await client.post(
        "/api/v1/events",
        json={"title": "My holiday", "start": "2024-09-14", "all_day": True, "category": "Holiday"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_invalid_date_rejected(client):
    resp = await client.post(
        "/api/v1/events",
        json={"title": "Bad", "start": "next tuesday", "category": "Work"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_all_day_from_basic_format(client):
    resp = await client.post(
        "/api/v1/events",
        json={"title": "Offsite", "start": "20240702T0930", "all_day": True, "category": "Work"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["start"] == "2024-07-02"

    window = await client.get(
        "/api/v1/events",
        params={"category": "Work", "start": "2024-07-02", "end": "2024-07-02"},
        headers=AUTH_HEADERS,
    )
    assert [e["id"] for e in window.json()] == [data["id"]]


@pytest.mark.asyncio
async def test_timed_event_stored_in_extended_form(client):
    resp = await client.post(
        "/api/v1/events",
        json={"title": "Standup", "start": "20240702T0930", "end": "2024-07-02T09:45Z", "category": "Work"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["start"] == "2024-07-02T09:30:00"
    assert data["end"] == "2024-07-02T09:45:00+00:00"


@pytest.mark.asyncio
async def test_update_event(client):
    resp = await client.patch(
        "/api/v1/events/evt-dentist",
        json={"notes": "bring insurance card", "end": None},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["notes"] == "bring insurance card"
    assert data["end"] is None
    assert data["title"] == "Dentist"


@pytest.mark.asyncio
async def test_update_holiday_rejected(client):
    resp = await client.patch(
        "/api/v1/events/holiday_2024-07-04_independence_day_holiday",
        json={"title": "Nope"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_unknown_404(client):
    resp = await client.patch("/api/v1/events/missing", json={"title": "x"}, headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_toggle_done(client):
    resp = await client.post("/api/v1/events/evt-dentist/toggle-done", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["done"] is True


@pytest.mark.asyncio
async def test_delete_event(client):
    resp = await client.delete("/api/v1/events/evt-dentist", headers=AUTH_HEADERS)
    assert resp.status_code == 204
    resp = await client.get("/api/v1/events/evt-dentist", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_holiday_rejected(client):
    resp = await client.delete(
        "/api/v1/events/holiday_2024-07-04_independence_day_holiday", headers=AUTH_HEADERS
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_refresh_holidays_keeps_user_events(client):
    resp = await client.post("/api/v1/events/refresh-holidays", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 4 * len(ALL_RULES) + 1
    assert data[-1]["id"] == "evt-dentist"


# ── E. Categories ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_categories(client):
    resp = await client.get("/api/v1/categories")
    assert resp.status_code == 200
    data = {c["name"]: c for c in resp.json()}
    assert len(data) == 9
    assert data["Holiday"]["visible"] is True
    assert data["Observance"]["visible"] is False
    assert data["Holiday"]["bg"] == "#FF7A18"


@pytest.mark.asyncio
async def test_set_visible_categories(client):
    resp = await client.put(
        "/api/v1/categories/visible",
        json={"categories": ["Work", "Observance", "Bogus"]},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    visible = {c["name"] for c in resp.json() if c["visible"]}
    assert visible == {"Work", "Observance"}


# ── F. Saved places ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_places_require_auth(client):
    resp = await client.get("/api/v1/places")
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_upsert_and_list_places(client):
    resp = await client.put(
        "/api/v1/places",
        json={"address": " 221B Baker St, London "},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    place = resp.json()
    assert place["key"] == "221b baker st, london"
    assert place["label"] == "221B Baker St"
    assert place["address"] == "221B Baker St, London"

    await client.put("/api/v1/places", json={"address": "Office", "label": "Work"}, headers=AUTH_HEADERS)
    listed = (await client.get("/api/v1/places", headers=AUTH_HEADERS)).json()
    # Same clock reading for both, so the newer upsert stays in front
    assert [p["label"] for p in listed] == ["Work", "221B Baker St"]


@pytest.mark.asyncio
async def test_upsert_blank_address_rejected(client):
    resp = await client.put("/api/v1/places", json={"address": "   "}, headers=AUTH_HEADERS)
    assert resp.status_code == 400
    resp = await client.put("/api/v1/places", json={"address": ""}, headers=AUTH_HEADERS)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_remove_place(client):
    await client.put("/api/v1/places", json={"address": "Main Library"}, headers=AUTH_HEADERS)
    resp = await client.delete("/api/v1/places/main library", headers=AUTH_HEADERS)
    assert resp.status_code == 204
    assert (await client.get("/api/v1/places", headers=AUTH_HEADERS)).json() == []

    resp = await client.delete("/api/v1/places/main library", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_clear_places(client):
    await client.put("/api/v1/places", json={"address": "Gym"}, headers=AUTH_HEADERS)
    await client.put("/api/v1/places", json={"address": "Park"}, headers=AUTH_HEADERS)
    resp = await client.delete("/api/v1/places", headers=AUTH_HEADERS)
    assert resp.status_code == 204
    assert (await client.get("/api/v1/places", headers=AUTH_HEADERS)).json() == []


# ── G. Preferences ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_preferences_echo_token_subject(client):
    resp = await client.get("/api/v1/preferences", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"] == "tester"
    assert data["time_zone"] == "local"
    assert set(data["visible_categories"]) == {"Birthday", "Health", "Holiday"}


@pytest.mark.asyncio
async def test_preferences_require_auth(client):
    resp = await client.get("/api/v1/preferences")
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_set_time_zone(client):
    resp = await client.put(
        "/api/v1/preferences/time-zone",
        json={"time_zone": " America/Chicago "},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["time_zone"] == "America/Chicago"


@pytest.mark.asyncio
async def test_blank_time_zone_falls_back_to_local(client):
    await client.put("/api/v1/preferences/time-zone", json={"time_zone": "UTC"}, headers=AUTH_HEADERS)
    resp = await client.put("/api/v1/preferences/time-zone", json={"time_zone": "  "}, headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["time_zone"] == "local"


@pytest.mark.asyncio
async def test_unknown_time_zone_rejected(client):
    resp = await client.put(
        "/api/v1/preferences/time-zone",
        json={"time_zone": "Atlantis/Capital"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 422
    prefs = (await client.get("/api/v1/preferences", headers=AUTH_HEADERS)).json()
    assert prefs["time_zone"] == "local"
