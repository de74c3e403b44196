"""
EventStore — in-memory calendar holding user events plus generated holidays.

Holiday events are never stored as a source of truth. Every refresh throws the
previous holiday set away and re-runs the generator; user events are kept and
de-duplicated by id. Holiday events are read-only: add/update/delete calls
that target them raise HolidayEventReadOnlyError.

The store also holds the per-user preferences that travel with the calendar:
the visible categories, a display time zone and recently used places.

Thread-safety: not guaranteed. Single-process API usage is the intended
deployment model.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Callable, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.calendar import (
    ALL_CATEGORIES,
    DEFAULT_VISIBLE_CATEGORIES,
    CalendarCategory,
    CalendarEvent,
    EventSource,
    SavedPlace,
)
from services.holiday_generator import HOLIDAY_ID_PREFIX, generate

logger = logging.getLogger("calendar.services.events")

MAX_SAVED_PLACES = 50
LOCAL_TIME_ZONE = "local"

_WHITESPACE_RE = re.compile(r"\s+")


# ── Errors ────────────────────────────────────────────────────────────────────

class EventNotFoundError(KeyError):
    pass


class HolidayEventReadOnlyError(ValueError):
    pass


class PlaceNotFoundError(KeyError):
    pass


# ── Helpers ───────────────────────────────────────────────────────────────────

def is_holiday_event(e: CalendarEvent) -> bool:
    return (
        e.source == EventSource.HOLIDAY
        or e.category == CalendarCategory.HOLIDAY
        or e.id.startswith(HOLIDAY_ID_PREFIX)
    )


def keep_user_events(events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    return [e for e in events if not is_holiday_event(e)]


def date_part(value: str) -> str:
    """
    "YYYY-MM-DD" of an ISO date or datetime string, basic format included.

    Raises ValueError for strings that are neither.
    """
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()


def normalize_all_day(e: CalendarEvent) -> CalendarEvent:
    """All-day events carry date-only start/end ("YYYY-MM-DD")."""
    if not e.all_day:
        return e
    start = date_part(e.start)
    end = date_part(e.end) if e.end is not None else None
    if start == e.start and end == e.end:
        return e
    return e.with_changes(start=start, end=end)


def rebuild_with_fresh_holidays(
    existing: Iterable[CalendarEvent],
    holidays: list[CalendarEvent],
) -> list[CalendarEvent]:
    """
    Fresh holidays first, then the user events from `existing`.
    Later user events with a repeated id replace earlier ones in place.
    """
    by_id: dict[str, CalendarEvent] = {}
    for e in keep_user_events(existing):
        by_id[e.id] = e
    return [*holidays, *by_id.values()]


def sanitize_visible_categories(values: Iterable[str] | None) -> set[CalendarCategory]:
    """Known categories only; an empty result falls back to the defaults."""
    known = {c.value: c for c in ALL_CATEGORIES}
    cleaned = {known[v] for v in (values or []) if isinstance(v, str) and v in known}
    return cleaned or set(DEFAULT_VISIBLE_CATEGORIES)


def normalize_place_key(address: str) -> str:
    """Trimmed, lower-cased, inner whitespace collapsed to single spaces."""
    return _WHITESPACE_RE.sub(" ", address.strip().lower())


def safe_place_label(label: str | None, address: str) -> str:
    """The given label, else the first comma-separated part of the address."""
    clean = label.strip() if isinstance(label, str) else ""
    if clean:
        return clean
    a = address.strip()
    if not a:
        return "Saved place"
    return a.split(",")[0].strip() or a


def normalize_time_zone(name: str | None) -> str:
    """
    Canonical time zone preference: "local", "UTC" or an IANA name.

    Blank input means "local". Raises ValueError for a name zoneinfo does
    not know.
    """
    clean = name.strip() if isinstance(name, str) else ""
    if not clean or clean.lower() in {"local", "system"}:
        return LOCAL_TIME_ZONE
    if clean.lower() in {"utc", "z", "gmt"}:
        return "UTC"
    try:
        ZoneInfo(clean)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown time zone: {clean!r}")
    return clean


def event_day(e: CalendarEvent) -> date:
    return date.fromisoformat(date_part(e.start))


# ── EventStore ────────────────────────────────────────────────────────────────

class EventStore:
    """
    Merged view of user events and the rolling holiday window.

    The holiday window is [year - years_back, year + years_ahead] where `year`
    comes from `clock()` at refresh time.
    """

    def __init__(
        self,
        *,
        years_back: int = 1,
        years_ahead: int = 2,
        visible_categories: Iterable[str] | None = None,
        time_zone: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._years_back = years_back
        self._years_ahead = years_ahead
        self._clock = clock or datetime.now
        self._visible: set[CalendarCategory] = sanitize_visible_categories(visible_categories)
        self._time_zone = normalize_time_zone(time_zone)
        self._places: list[SavedPlace] = []
        self._events: list[CalendarEvent] = self._fresh_holidays()

    # ── Holidays ──────────────────────────────────────────────────────────────

    def holiday_year_range(self) -> tuple[int, int]:
        year = self._clock().year
        return year - self._years_back, year + self._years_ahead

    def _fresh_holidays(self) -> list[CalendarEvent]:
        start_year, end_year = self.holiday_year_range()
        return generate(start_year=start_year, end_year=end_year)

    def refresh_holidays(self) -> None:
        self._events = rebuild_with_fresh_holidays(self._events, self._fresh_holidays())
        logger.info(
            "refreshed holidays: %d events (%d user)",
            len(self._events), len(self.user_events()),
        )

    # ── Reads ─────────────────────────────────────────────────────────────────

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events)

    def user_events(self) -> list[CalendarEvent]:
        return keep_user_events(self._events)

    def get(self, event_id: str) -> CalendarEvent:
        for e in self._events:
            if e.id == event_id:
                return e
        raise EventNotFoundError(event_id)

    def events_between(
        self,
        start: date | None = None,
        end: date | None = None,
        categories: Iterable[CalendarCategory] | None = None,
    ) -> list[CalendarEvent]:
        """Events whose start day lies in [start, end]; either bound may be open."""
        wanted = set(categories) if categories is not None else None
        result = []
        for e in self._events:
            if wanted is not None and e.category not in wanted:
                continue
            day = event_day(e)
            if start is not None and day < start:
                continue
            if end is not None and day > end:
                continue
            result.append(e)
        return sorted(result, key=lambda e: e.start)

    # ── Visibility ────────────────────────────────────────────────────────────

    @property
    def visible_categories(self) -> set[CalendarCategory]:
        return set(self._visible)

    def set_visible_categories(self, values: Iterable[str]) -> set[CalendarCategory]:
        self._visible = sanitize_visible_categories(values)
        return self.visible_categories

    def visible_events(self) -> list[CalendarEvent]:
        return [e for e in self._events if e.category in self._visible]

    # ── Writes (user events only) ─────────────────────────────────────────────

    def _require_user_event(self, event_id: str) -> CalendarEvent:
        current = self.get(event_id)
        if is_holiday_event(current):
            raise HolidayEventReadOnlyError(f"Holiday event {event_id!r} is read-only")
        return current

    def _replace(self, updated: CalendarEvent) -> None:
        self._events = [updated if e.id == updated.id else e for e in self._events]

    def add_event(self, event: CalendarEvent) -> CalendarEvent:
        """
        Add a user event (newest first) and make its category visible.
        An existing user event with the same id is replaced.
        """
        if is_holiday_event(event):
            raise HolidayEventReadOnlyError(
                f"Event {event.id!r} looks like a generated holiday and cannot be added"
            )
        normalized = normalize_all_day(event)
        self._events = [normalized, *(e for e in self._events if e.id != normalized.id)]
        self._visible.add(normalized.category)
        logger.info("add_event: %s %r (%s)", normalized.id, normalized.title, normalized.category.value)
        return normalized

    def update_event(self, event_id: str, **changes) -> CalendarEvent:
        current = self._require_user_event(event_id)
        changes.pop("id", None)
        updated = normalize_all_day(current.with_changes(**changes))
        if is_holiday_event(updated):
            raise HolidayEventReadOnlyError(
                f"Event {event_id!r} cannot be turned into a holiday event"
            )
        self._replace(updated)
        logger.info("update_event: %s fields=%s", event_id, sorted(changes))
        return updated

    def toggle_done(self, event_id: str) -> CalendarEvent:
        current = self._require_user_event(event_id)
        updated = current.with_changes(done=not current.done)
        self._replace(updated)
        return updated

    def delete_event(self, event_id: str) -> None:
        self._require_user_event(event_id)
        self._events = [e for e in self._events if e.id != event_id]
        logger.info("delete_event: %s", event_id)

    # ── Preferences ───────────────────────────────────────────────────────────

    @property
    def time_zone(self) -> str:
        return self._time_zone

    def set_time_zone(self, name: str | None) -> str:
        self._time_zone = normalize_time_zone(name)
        logger.info("set_time_zone: %s", self._time_zone)
        return self._time_zone

    # ── Saved places ──────────────────────────────────────────────────────────

    @property
    def saved_places(self) -> list[SavedPlace]:
        """Most recently used first, at most MAX_SAVED_PLACES entries."""
        return list(self._places)

    def upsert_saved_place(self, address: str, label: str | None = None) -> SavedPlace:
        """
        Remember `address`, or bump it to the front if it is already known.

        Addresses that differ only in case or spacing share one entry; the
        entry keeps its created_at and takes the latest label and spelling.
        """
        clean = address.strip() if isinstance(address, str) else ""
        if not clean:
            raise ValueError("address is required")

        key = normalize_place_key(clean)
        now = self._clock()
        existing = next((p for p in self._places if p.key == key), None)
        place = SavedPlace(
            key=key,
            label=safe_place_label(label, clean),
            address=clean,
            created_at=existing.created_at if existing else now,
            last_used_at=now,
        )
        merged = [place, *(p for p in self._places if p.key != key)]
        merged.sort(key=lambda p: p.last_used_at, reverse=True)
        dropped = len(merged) - MAX_SAVED_PLACES
        self._places = merged[:MAX_SAVED_PLACES]
        if dropped > 0:
            logger.info("upsert_saved_place: dropped %d least recently used", dropped)
        return place

    def remove_saved_place(self, key: str) -> None:
        if not any(p.key == key for p in self._places):
            raise PlaceNotFoundError(key)
        self._places = [p for p in self._places if p.key != key]
        logger.info("remove_saved_place: %r", key)

    def clear_saved_places(self) -> None:
        self._places = []
