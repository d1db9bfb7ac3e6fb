"""
app/core/deps.py

Process-wide service wiring. Built once in the FastAPI lifespan and stored on
`app.state.services`; routers pull pieces out through the dependency getters.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import httpx
from fastapi import Request

from app.core.cache import TTLCacheStore
from app.core.config import Settings, settings
from app.services.calendar import CalendarResolver
from app.services.quotes import QuoteProxy
from app.services.upstream import UpstreamClient


@dataclass
class Services:
    http: httpx.AsyncClient
    upstream: UpstreamClient
    calendar_cache: TTLCacheStore
    quotes_cache: TTLCacheStore
    feed_cache: TTLCacheStore
    calendar: CalendarResolver
    quotes: QuoteProxy

    @property
    def caches(self) -> list[TTLCacheStore]:
        return [self.calendar_cache, self.quotes_cache, self.feed_cache]


def build_services(
    http: httpx.AsyncClient,
    config: Settings = settings,
    clock: Callable[[], float] = time.monotonic,
) -> Services:
    upstream = UpstreamClient(
        http,
        calendar_base_url=config.CALENDAR_BASE_URL,
        quotes_url=config.QUOTES_URL,
        feed_url=config.FEED_URL,
        user_agent=config.USER_AGENT,
    )
    calendar_cache = TTLCacheStore("calendar", ttl=config.CALENDAR_TTL, clock=clock)
    quotes_cache = TTLCacheStore(
        "quotes", ttl=config.QUOTES_TTL, maxsize=config.QUOTES_CACHE_MAXSIZE, clock=clock
    )
    feed_cache = TTLCacheStore("feed", ttl=config.FEED_TTL, clock=clock)
    return Services(
        http=http,
        upstream=upstream,
        calendar_cache=calendar_cache,
        quotes_cache=quotes_cache,
        feed_cache=feed_cache,
        calendar=CalendarResolver(upstream, calendar_cache, tz_name=config.TIMEZONE),
        quotes=QuoteProxy(upstream, quotes_cache, feed_cache),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_calendar(request: Request) -> CalendarResolver:
    return get_services(request).calendar


def get_quotes(request: Request) -> QuoteProxy:
    return get_services(request).quotes
