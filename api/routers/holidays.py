"""
Holidays router — GET /holidays?start_year=2024&end_year=2025&category=Holiday

Read-only, unauthenticated: the output is generated on every request.

Missing bounds fall back to the rolling window [this year - 1, this year + 2].
A range that ends before it starts after that fallback (for example only
start_year=2040) is a 422 rather than a silent empty list.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from api.schemas import EventResponse
from services.holiday_generator import default_year_range, generate

router = APIRouter(prefix="/holidays", tags=["holidays"])

MIN_YEAR = 1583   # first full Gregorian year
MAX_YEAR = 9999


@router.get("", response_model=list[EventResponse])
async def get_holidays(
    start_year: int | None = Query(default=None, ge=MIN_YEAR, le=MAX_YEAR),
    end_year: int | None = Query(default=None, ge=MIN_YEAR, le=MAX_YEAR),
    category: Literal["Holiday", "Observance"] | None = None,
) -> list[EventResponse]:
    default_start, default_end = default_year_range()
    start = default_start if start_year is None else start_year
    end = default_end if end_year is None else end_year
    if start > end:
        raise HTTPException(
            status_code=422,
            detail=f"start_year {start} is after end_year {end}",
        )
    events = generate(start_year=start, end_year=end)
    if category is not None:
        events = [e for e in events if e.category.value == category]
    return [EventResponse.from_event(e) for e in events]
