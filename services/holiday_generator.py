"""
HolidayGenerator — pure, deterministic US holiday/observance events.

Produces synthetic all-day CalendarEvents for a year range from a declarative
rule table. Nothing here is persisted: consumers (services.event_store) call
generate() on every refresh and merge the output with user events by id.

Rule kinds:
    fixed               — same month/day every year (Independence Day)
    nth weekday         — floating holidays (Thanksgiving = 4th Thu of Nov)
    last weekday        — Memorial Day = last Mon of May
    Easter offset       — Good Friday = Easter - 2
    Thanksgiving offset — Black Friday = Thanksgiving + 1
    first-Monday offset — Election Day = Tuesday after 1st Mon of Nov

All arithmetic is done on datetime.date, i.e. on calendar days. There is no
instant and no timezone involved, so a holiday can never slide a day because
of the caller's local offset.
"""

from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Callable

from models.calendar import CalendarCategory, CalendarEvent, EventSource

logger = logging.getLogger("calendar.services.holidays")

HOLIDAY_ID_PREFIX = "holiday_"
DEFAULT_EMOJI = "📅"


class Weekday(IntEnum):
    """Same numbering as date.weekday()."""
    MONDAY    = 0
    TUESDAY   = 1
    WEDNESDAY = 2
    THURSDAY  = 3
    FRIDAY    = 4
    SATURDAY  = 5
    SUNDAY    = 6


# ── Date rule evaluators ──────────────────────────────────────────────────────

def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """
    The n-th `weekday` of `month` (1-based month, n >= 1).

    `n` is not range-checked: asking for a 5th occurrence that does not exist
    raises ValueError from date().
    """
    first = date(year, month, 1)
    delta = (weekday - first.weekday()) % 7
    return date(year, month, 1 + delta + (n - 1) * 7)


def last_weekday_of_month(year: int, month: int, weekday: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    last = date(year, month, last_day)
    delta = (last.weekday() - weekday) % 7
    return date(year, month, last_day - delta)


def easter_sunday(year: int) -> date:
    """Gregorian Easter Sunday (Meeus/Jones/Butcher)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31        # 3 = March, 4 = April
    day = (h + l - 7 * m + 114) % 31 + 1
    return date(year, month, day)


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


# ── Emoji decoration ──────────────────────────────────────────────────────────

# First match wins. Order matters: "new year's" precedes "new year's eve",
# so New Year's Eve is decorated with 🎊.
TITLE_EMOJI: tuple[tuple[tuple[str, ...], str], ...] = (
    (("new year's",),                          "🎊"),
    (("martin luther king",),                  "✊"),
    (("washington's birthday", "president"),   "🇺🇸"),
    (("memorial day",),                        "🕯️"),
    (("juneteenth",),                          "✊"),
    (("independence day",),                    "🎆"),
    (("labor day",),                           "🛠️"),
    (("columbus day",),                        "🧭"),
    (("veterans day",),                        "🎖️"),
    (("thanksgiving",),                        "🦃"),
    (("christmas",),                           "🎄"),
    (("valentine",),                           "❤️"),
    (("mother's day", "mothers day"),          "💖"),
    (("st. patrick", "st patrick"),            "🍀"),
    (("halloween",),                           "🎃"),
    (("easter",),                              "🐰"),
    (("father's day", "fathers day"),          "🧔"),
    (("new year's eve",),                      "🥂"),
    (("christmas eve",),                       "🕯️"),
    (("black friday",),                        "🛍️"),
    (("cyber monday",),                        "🖥️"),
    (("earth day",),                           "🌍"),
    (("arbor day",),                           "🌳"),
    (("cinco de mayo",),                       "🇲🇽"),
    (("april fool",),                          "🤡"),
    (("groundhog",),                           "🦫"),
    (("super bowl",),                          "🏈"),
    (("mardi gras",),                          "🎭"),
    (("ash wednesday",),                       "⛪"),
    (("good friday",),                         "✝️"),
    (("palm sunday",),                         "🌿"),
    (("election day",),                        "🗳️"),
    (("tax day",),                             "🧾"),
    (("flag day",),                            "🏳️"),
    (("patriot day",),                         "🕊️"),
    (("constitution day",),                    "📜"),
    (("daylight saving", "dst"),               "⏰"),
)


def emoji_for_title(title: str) -> str:
    t = title.lower()
    for needles, emoji in TITLE_EMOJI:
        if any(n in t for n in needles):
            return emoji
    return DEFAULT_EMOJI


# ── Event construction ────────────────────────────────────────────────────────

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify_title(title: str) -> str:
    return _SLUG_RE.sub("_", title.lower())


def holiday_event_id(d: date, title: str, category: CalendarCategory) -> str:
    """Stable id: a pure function of (date, title, category)."""
    return f"{HOLIDAY_ID_PREFIX}{d.isoformat()}_{slugify_title(title)}_{category.value.lower()}"


def make_generated_event(title: str, d: date, category: CalendarCategory) -> CalendarEvent:
    return CalendarEvent(
        id=holiday_event_id(d, title, category),
        title=f"{emoji_for_title(title)} {title}",
        start=d.isoformat(),
        category=category,
        all_day=True,
        source=EventSource.HOLIDAY,
    )


# ── Rule table ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HolidayRule:
    """
    One row of the holiday table.

    The decorated title and the id suffix depend only on the rule, so they
    are resolved once here instead of once per generated event.
    """
    title: str
    category: CalendarCategory
    compute: Callable[[int], date]   # year -> date
    decorated_title: str = field(init=False, repr=False, compare=False)
    slug: str = field(init=False, repr=False, compare=False)
    id_suffix: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        slug = slugify_title(self.title)
        object.__setattr__(self, "decorated_title", f"{emoji_for_title(self.title)} {self.title}")
        object.__setattr__(self, "slug", slug)
        object.__setattr__(self, "id_suffix", f"_{slug}_{self.category.value.lower()}")

    def event_for(self, d: date) -> CalendarEvent:
        """Same event as make_generated_event(self.title, d, self.category)."""
        start = d.isoformat()
        return CalendarEvent(
            id=f"{HOLIDAY_ID_PREFIX}{start}{self.id_suffix}",
            title=self.decorated_title,
            start=start,
            category=self.category,
            all_day=True,
            source=EventSource.HOLIDAY,
        )


def fixed(month: int, day: int) -> Callable[[int], date]:
    return lambda year: date(year, month, day)


def nth_weekday(month: int, weekday: Weekday, n: int) -> Callable[[int], date]:
    return lambda year: nth_weekday_of_month(year, month, weekday, n)


def last_weekday(month: int, weekday: Weekday) -> Callable[[int], date]:
    return lambda year: last_weekday_of_month(year, month, weekday)


def easter_offset(days: int) -> Callable[[int], date]:
    return lambda year: add_days(easter_sunday(year), days)


def thanksgiving_offset(days: int) -> Callable[[int], date]:
    return lambda year: add_days(nth_weekday_of_month(year, 11, Weekday.THURSDAY, 4), days)


def first_monday_offset(month: int, days: int) -> Callable[[int], date]:
    return lambda year: add_days(nth_weekday_of_month(year, month, Weekday.MONDAY, 1), days)


_H = CalendarCategory.HOLIDAY
_O = CalendarCategory.OBSERVANCE

# Federal holidays plus the widely celebrated dates shown with them
OFFICIAL_RULES: tuple[HolidayRule, ...] = (
    HolidayRule("New Year's Day",                       _H, fixed(1, 1)),
    HolidayRule("Martin Luther King Jr. Day",           _H, nth_weekday(1, Weekday.MONDAY, 3)),
    HolidayRule("Washington's Birthday",                _H, nth_weekday(2, Weekday.MONDAY, 3)),
    HolidayRule("Memorial Day",                         _H, last_weekday(5, Weekday.MONDAY)),
    HolidayRule("Juneteenth National Independence Day", _H, fixed(6, 19)),
    HolidayRule("Independence Day",                     _H, fixed(7, 4)),
    HolidayRule("Labor Day",                            _H, nth_weekday(9, Weekday.MONDAY, 1)),
    HolidayRule("Columbus Day",                         _H, nth_weekday(10, Weekday.MONDAY, 2)),
    HolidayRule("Veterans Day",                         _H, fixed(11, 11)),
    HolidayRule("Thanksgiving Day",                     _H, nth_weekday(11, Weekday.THURSDAY, 4)),
    HolidayRule("Christmas Day",                        _H, fixed(12, 25)),
    HolidayRule("Valentine's Day",                      _H, fixed(2, 14)),
    HolidayRule("St. Patrick's Day",                    _H, fixed(3, 17)),
    HolidayRule("Halloween",                            _H, fixed(10, 31)),
    HolidayRule("Mother's Day",                         _H, nth_weekday(5, Weekday.SUNDAY, 2)),
    HolidayRule("Easter",                               _H, easter_offset(0)),
)

# Informal observances, curated so the calendar is not flooded
POPULAR_RULES: tuple[HolidayRule, ...] = (
    HolidayRule("New Year's Eve",              _O, fixed(12, 31)),
    HolidayRule("Christmas Eve",               _O, fixed(12, 24)),
    HolidayRule("Groundhog Day",               _O, fixed(2, 2)),
    HolidayRule("April Fools' Day",            _O, fixed(4, 1)),
    HolidayRule("Earth Day",                   _O, fixed(4, 22)),
    # Varies by state; 4th Friday of April stands in for "last Friday in April"
    HolidayRule("Arbor Day",                   _O, nth_weekday(4, Weekday.FRIDAY, 4)),
    HolidayRule("Cinco de Mayo",               _O, fixed(5, 5)),
    HolidayRule("Father's Day",                _O, nth_weekday(6, Weekday.SUNDAY, 3)),
    HolidayRule("Flag Day",                    _O, fixed(6, 14)),
    HolidayRule("Patriot Day",                 _O, fixed(9, 11)),
    HolidayRule("Constitution Day",            _O, fixed(9, 17)),
    HolidayRule("Daylight Saving Time Begins", _O, nth_weekday(3, Weekday.SUNDAY, 2)),
    HolidayRule("Daylight Saving Time Ends",   _O, nth_weekday(11, Weekday.SUNDAY, 1)),
    HolidayRule("Election Day",                _O, first_monday_offset(11, 1)),
    HolidayRule("Black Friday",                _O, thanksgiving_offset(1)),
    HolidayRule("Cyber Monday",                _O, thanksgiving_offset(4)),
    HolidayRule("Palm Sunday",                 _O, easter_offset(-7)),
    HolidayRule("Good Friday",                 _O, easter_offset(-2)),
    HolidayRule("Ash Wednesday",               _O, easter_offset(-46)),
    HolidayRule("Mardi Gras",                  _O, easter_offset(-47)),
    # Approximation, holds for recent seasons
    HolidayRule("Super Bowl Sunday",           _O, nth_weekday(2, Weekday.SUNDAY, 2)),
    # Ignores weekend and Emancipation Day shifts
    HolidayRule("Tax Day",                     _O, fixed(4, 15)),
)

ALL_RULES: tuple[HolidayRule, ...] = OFFICIAL_RULES + POPULAR_RULES


# ── Entry point ───────────────────────────────────────────────────────────────

def default_year_range(now: date | datetime | None = None) -> tuple[int, int]:
    """Rolling four-year window: last year through two years ahead."""
    current_year = (now or datetime.now()).year
    return current_year - 1, current_year + 2


def generate(
    *,
    now: date | datetime | None = None,
    start_year: int | None = None,
    end_year: int | None = None,
) -> list[CalendarEvent]:
    """
    Holiday and observance events for every year in [start_year, end_year].

    Missing bounds default to default_year_range(now). An inverted range
    yields an empty list. Output order is year, then OFFICIAL_RULES, then
    POPULAR_RULES; duplicate ids keep their first occurrence.
    """
    default_start, default_end = default_year_range(now)
    if start_year is None:
        start_year = default_start
    if end_year is None:
        end_year = default_end

    events: list[CalendarEvent] = []
    for year in range(start_year, end_year + 1):
        for rule in ALL_RULES:
            d = rule.compute(year)
            # Offset rules may resolve into a neighbouring year
            if d.year < start_year or d.year > end_year:
                continue
            events.append(rule.event_for(d))

    seen: set[str] = set()
    result: list[CalendarEvent] = []
    for e in events:
        if e.id in seen:
            continue
        seen.add(e.id)
        result.append(e)

    logger.debug("generated %d holiday events for %d-%d", len(result), start_year, end_year)
    return result
