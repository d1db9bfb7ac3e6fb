"""
app/routers/calendar.py

Economic calendar endpoint.

GET /api/ff-calendar?date=2024-03-05&countries=USD,EUR&imp=high,medium

Always answers 200 with a (possibly empty) list when the upstream is down;
only unexpected failures such as a malformed `date` produce a 500.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.core.deps import get_calendar
from app.core.logging import get_logger
from app.services.calendar import CalendarResolver

router = APIRouter()
log = get_logger("api.calendar")


@router.get(
    "/ff-calendar",
    summary="Economic calendar events for one day",
    response_description="Events sorted by time, ascending",
)
async def get_ff_calendar(
    day: Optional[str] = Query(
        default=None,
        alias="date",
        description="Calendar day (YYYY-MM-DD). Defaults to today in New York.",
    ),
    countries: Optional[str] = Query(
        default=None,
        description="Comma-separated country codes, e.g. USD,EUR. Case-insensitive.",
    ),
    imp: Optional[str] = Query(
        default=None,
        description="Comma-separated impact levels: high,medium,low,holiday.",
    ),
    resolver: CalendarResolver = Depends(get_calendar),
):
    try:
        return await resolver.resolve(day, countries=countries, impacts=imp)
    except Exception:
        log.exception("FF calendar endpoint error")
        return JSONResponse(status_code=500, content={"error": "Server error"})
