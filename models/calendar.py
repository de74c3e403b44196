"""
Core calendar models.

Plain dataclasses shared by the holiday generator, the event store and the API.
Dates are carried as ISO strings: "YYYY-MM-DD" for all-day events, full
ISO-8601 for timed ones.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional


# ── Enums ─────────────────────────────────────────────────────────────────────

class CalendarCategory(str, Enum):
    WORK       = "Work"
    PERSONAL   = "Personal"
    BIRTHDAY   = "Birthday"
    HEALTH     = "Health"
    LEARNING   = "Learning"
    SOCIAL     = "Social"
    TRAVEL     = "Travel"
    HOLIDAY    = "Holiday"      # federal / widely recognised holidays
    OBSERVANCE = "Observance"   # informal dates, e.g. Groundhog Day


class EventSource(str, Enum):
    USER    = "user"
    HOLIDAY = "holiday"   # synthetic, produced by services.holiday_generator


ALL_CATEGORIES: list[CalendarCategory] = list(CalendarCategory)

DEFAULT_VISIBLE_CATEGORIES: list[CalendarCategory] = [
    CalendarCategory.BIRTHDAY,
    CalendarCategory.HEALTH,
    CalendarCategory.HOLIDAY,
]

# Background / foreground colour per category
CATEGORY_COLORS: dict[CalendarCategory, tuple[str, str]] = {
    CalendarCategory.WORK:       ("#22D3EE", "#06121B"),
    CalendarCategory.PERSONAL:   ("#C084FC", "#12051A"),
    CalendarCategory.BIRTHDAY:   ("#FB7185", "#25030A"),
    CalendarCategory.HEALTH:     ("#2DFF9A", "#042013"),
    CalendarCategory.LEARNING:   ("#FDE047", "#201A00"),
    CalendarCategory.SOCIAL:     ("#FF4FD8", "#21001A"),
    CalendarCategory.TRAVEL:     ("#8B5CF6", "#0E071F"),
    CalendarCategory.HOLIDAY:    ("#FF7A18", "#230B00"),
    CalendarCategory.OBSERVANCE: ("#FF7AF6", "#240025"),
}


# ── Event model ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CalendarEvent:
    """
    A single calendar entry.

    Generated holidays and user events share this shape; `source` tells them
    apart. Frozen so generator output can be handed out without copies.
    """
    id: str
    title: str
    start: str
    category: CalendarCategory
    end: Optional[str] = None
    all_day: bool = False
    notes: Optional[str] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    done: bool = False
    reminder_minutes_before: Optional[int] = None
    source: EventSource = EventSource.USER

    def with_changes(self, **changes) -> "CalendarEvent":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id":                      self.id,
            "title":                   self.title,
            "start":                   self.start,
            "end":                     self.end,
            "all_day":                 self.all_day,
            "category":                self.category.value,
            "notes":                   self.notes,
            "location_name":           self.location_name,
            "location_address":        self.location_address,
            "done":                    self.done,
            "reminder_minutes_before": self.reminder_minutes_before,
            "source":                  self.source.value,
        }


# ── Saved places ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SavedPlace:
    """An address the user picked before, keyed by its normalised form."""
    key: str
    label: str
    address: str
    created_at: datetime
    last_used_at: datetime

    def to_dict(self) -> dict:
        return {
            "key":          self.key,
            "label":        self.label,
            "address":      self.address,
            "created_at":   self.created_at.isoformat(),
            "last_used_at": self.last_used_at.isoformat(),
        }
