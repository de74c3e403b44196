"""
Pydantic request/response schemas for the calendar API.

Dates are ISO-8601 strings: "YYYY-MM-DD" for all-day events, full timestamps
for timed ones.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from models.calendar import CalendarCategory, CalendarEvent, SavedPlace


# ── Helpers ───────────────────────────────────────────────────────────────────

def _iso(value: str) -> str:
    """
    Canonical extended ISO-8601 form of a date or datetime string.

    Basic-format input ("20240702", "20240702T0930") is rewritten to
    "2024-07-02" / "2024-07-02T09:30:00", so stored values always start with a
    "YYYY-MM-DD" date part. Anything unparseable is rejected.
    """
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
    except ValueError:
        raise ValueError(f"not an ISO-8601 date or datetime: {value!r}")


# ── Event schemas ─────────────────────────────────────────────────────────────

class EventResponse(BaseModel):
    id: str
    title: str
    start: str
    end: str | None = None
    all_day: bool
    category: CalendarCategory
    notes: str | None = None
    location_name: str | None = None
    location_address: str | None = None
    done: bool = False
    reminder_minutes_before: int | None = None
    source: str

    @classmethod
    def from_event(cls, e: CalendarEvent) -> "EventResponse":
        return cls(**e.to_dict())


class EventCreate(BaseModel):
    id: str | None = None            # server assigns a uuid4 when omitted
    title: str = Field(min_length=1)
    start: str
    end: str | None = None
    all_day: bool = False
    category: CalendarCategory
    notes: str | None = None
    location_name: str | None = None
    location_address: str | None = None
    reminder_minutes_before: int | None = Field(default=None, ge=0)

    @field_validator("start", "end")
    @classmethod
    def _check_iso(cls, v: str | None) -> str | None:
        return None if v is None else _iso(v)


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    start: str | None = None
    end: str | None = None
    all_day: bool | None = None
    category: CalendarCategory | None = None
    notes: str | None = None
    location_name: str | None = None
    location_address: str | None = None
    done: bool | None = None
    reminder_minutes_before: int | None = Field(default=None, ge=0)

    @field_validator("start", "end")
    @classmethod
    def _check_iso(cls, v: str | None) -> str | None:
        return None if v is None else _iso(v)


# ── Category schemas ──────────────────────────────────────────────────────────

class CategoryInfo(BaseModel):
    name: CalendarCategory
    bg: str
    fg: str
    visible: bool


class VisibleCategoriesUpdate(BaseModel):
    categories: list[str]


# ── Saved place schemas ───────────────────────────────────────────────────────

class SavedPlaceResponse(BaseModel):
    key: str
    label: str
    address: str
    created_at: datetime
    last_used_at: datetime

    @classmethod
    def from_place(cls, p: SavedPlace) -> "SavedPlaceResponse":
        return cls(**p.to_dict())


class SavedPlaceUpsert(BaseModel):
    address: str = Field(min_length=1)
    label: str | None = None


# ── Preference schemas ────────────────────────────────────────────────────────

class TimeZoneUpdate(BaseModel):
    time_zone: str | None = None     # blank or null means "local"


class PreferencesResponse(BaseModel):
    user: str | None = None
    time_zone: str
    visible_categories: list[CalendarCategory]
