"""
app/services/calendar.py

Economic-calendar resolver.

The upstream publishes three overlapping weekly files (last / this / next week).
For a requested day we:
    1. work out "today" in New York time
    2. always look in the current week first
    3. fall back to the previous week (1–7 days back) or next week (1–7 days ahead)
    4. keep the first week that has rows for that exact day, weeks are never merged
    5. apply country / impact filters and sort by event time

Day matching is a plain comparison of the first 10 characters of the row's
`date` field; stored timestamps are never converted between timezones.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.cache import TTLCacheStore
from app.core.config import settings
from app.core.logging import get_logger
from app.services.upstream import UpstreamClient

log = get_logger("calendar")

FALLBACK_WINDOW_DAYS = 7
DAY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def today_in(tz_name: str = settings.TIMEZONE) -> date:
    """Current calendar date in the named timezone, independent of the host clock's zone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_day(raw: str) -> date:
    """Strict YYYY-MM-DD; compact and ISO week forms are rejected."""
    if not DAY_PATTERN.fullmatch(raw):
        raise ValueError(f"date must be YYYY-MM-DD, got {raw!r}")
    return date.fromisoformat(raw)


def parse_csv(raw: Optional[str], upper: bool = False) -> set[str]:
    if not raw:
        return set()
    tokens = (t.strip() for t in raw.split(","))
    return {t.upper() if upper else t.lower() for t in tokens if t}


def candidate_partitions(offset: int) -> list[str]:
    """Week files to search, in order, for a day `offset` days away from today."""
    candidates = ["current"]
    if -FALLBACK_WINDOW_DAYS <= offset < 0:
        candidates.append("previous")
    elif 0 < offset <= FALLBACK_WINDOW_DAYS:
        candidates.append("next")
    return candidates


def rows_for_day(rows: list[dict], day: str) -> list[dict]:
    # a row without a usable date never matches
    return [
        ev for ev in rows
        if isinstance(ev, dict) and isinstance(ev.get("date"), str) and ev["date"][:10] == day
    ]


def event_sort_key(ev: dict) -> datetime:
    """Parsed event timestamp, normalised to naive UTC so mixed rows compare."""
    raw = ev.get("date")
    if not isinstance(raw, str):
        return datetime.min
    for candidate in (raw, raw[:10]):
        try:
            ts = datetime.fromisoformat(candidate)
        except ValueError:
            continue
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
        return ts
    return datetime.min


def apply_filters(rows: list[dict], countries: set[str], impacts: set[str]) -> list[dict]:
    if countries:
        rows = [
            ev for ev in rows
            if isinstance(ev.get("country"), str) and ev["country"].upper() in countries
        ]
    if impacts:
        rows = [
            ev for ev in rows
            if isinstance(ev.get("impact"), str) and ev["impact"].lower() in impacts
        ]
    return rows


class CalendarResolver:
    def __init__(self, upstream: UpstreamClient, store: TTLCacheStore, tz_name: str = settings.TIMEZONE):
        self.upstream = upstream
        self.store = store
        self.tz_name = tz_name

    async def load_week(self, partition: str) -> list[dict]:
        return await self.store.get_or_refresh(
            partition, lambda: self.upstream.fetch_week(partition)
        )

    async def resolve(
        self,
        day: Optional[str] = None,
        countries: Optional[str] = None,
        impacts: Optional[str] = None,
        today: Optional[date] = None,
    ) -> list[dict]:
        """
        Events for `day` (YYYY-MM-DD, default today in New York).

        Args:
            countries: comma-separated country codes, case-insensitive.
            impacts:   comma-separated impact levels (high/medium/low/holiday).
            today:     override for "today", mainly for tests.

        Raises:
            ValueError: `day` is not a valid YYYY-MM-DD date.
        """
        today = today or today_in(self.tz_name)
        requested = parse_day(day) if day else today
        day = requested.isoformat()
        offset = (requested - today).days
        candidates = candidate_partitions(offset)
        log.info(f"Request for {day} (today={today}, diff={offset}), candidates: {', '.join(candidates)}")

        events: list[dict] = []
        for partition in candidates:
            subset = rows_for_day(await self.load_week(partition), day)
            if subset:
                log.info(f"Found {len(subset)} events for {day} in {partition}")
                events = subset
                break

        events = apply_filters(events, parse_csv(countries, upper=True), parse_csv(impacts))
        # sorted() is stable, equal timestamps keep upstream order
        return sorted(events, key=event_sort_key)
