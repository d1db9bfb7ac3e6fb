"""
app/services/upstream.py

Outbound HTTP to the three third-party sources:
    - weekly economic-calendar JSON files  (degrade to [] on any failure)
    - Yahoo quote JSON endpoint            (raise UpstreamError on failure)
    - Yahoo headline RSS feed              (raise UpstreamError on failure)

Calendar rows only drive filtering, so an empty week is a safe answer.
Quote and feed consumers need to tell "no data" apart from "request failed",
so those paths raise instead.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger

log = get_logger("upstream")

# Partition name → suffix of the published weekly file
WEEK_FILES: dict[str, str] = {
    "previous": "lastweek",
    "current":  "thisweek",
    "next":     "nextweek",
}


class UpstreamError(Exception):
    """A quote or feed request did not produce a usable response."""

    def __init__(self, source: str, status: Optional[int] = None, detail: str = ""):
        self.source = source
        self.status = status
        self.detail = detail
        super().__init__(f"{source} upstream failed (status={status}) {detail}".strip())


def build_client(timeout: Optional[float] = None, **kwargs) -> httpx.AsyncClient:
    """Shared AsyncClient with an explicit per-request deadline."""
    return httpx.AsyncClient(
        timeout=timeout if timeout is not None else settings.UPSTREAM_TIMEOUT,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        follow_redirects=True,
        **kwargs,
    )


class UpstreamClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        calendar_base_url: str = settings.CALENDAR_BASE_URL,
        quotes_url: str = settings.QUOTES_URL,
        feed_url: str = settings.FEED_URL,
        user_agent: str = settings.USER_AGENT,
    ):
        self.client = client
        self.calendar_base_url = calendar_base_url.rstrip("/")
        self.quotes_url = quotes_url
        self.feed_url = feed_url
        self.user_agent = user_agent

    # ── Calendar ──────────────────────────────────────────────────────────────

    def week_url(self, partition: str) -> str:
        return f"{self.calendar_base_url}/ff_calendar_{WEEK_FILES[partition]}.json"

    async def fetch_week(self, partition: str) -> list[dict]:
        url = self.week_url(partition)
        log.info(f"Fetching calendar week: {url}")
        try:
            r = await self.client.get(url)
            if not r.is_success:
                log.error(f"Calendar fetch error for {partition}: {r.status_code} {r.text[:300]}")
                return []
            data = r.json()
        except httpx.TimeoutException:
            log.warning(f"Calendar fetch timed out for {partition}")
            return []
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Calendar fetch exception for {partition}: {e!r}")
            return []
        except Exception:
            log.exception(f"Calendar fetch failed unexpectedly for {partition}")
            return []

        if not isinstance(data, list):
            log.warning(f"Calendar payload for {partition} is {type(data).__name__}, not a list")
            return []
        return data

    # ── Quotes ────────────────────────────────────────────────────────────────

    async def fetch_quotes(self, symbols: str) -> Any:
        headers = {
            "User-Agent":      self.user_agent,
            "Accept":          "application/json,text/plain,*/*",
            "Accept-Language": "en-US,en;q=0.9",
        }
        log.info(f"Fetching Yahoo quotes: {symbols}")
        try:
            r = await self.client.get(self.quotes_url, params={"symbols": symbols}, headers=headers)
        except httpx.TimeoutException as e:
            log.warning(f"Yahoo quote fetch timed out: {symbols}")
            raise UpstreamError("quotes", detail="timeout") from e
        except httpx.HTTPError as e:
            log.error(f"Yahoo quote fetch exception: {e!r}")
            raise UpstreamError("quotes", detail=str(e)) from e

        if not r.is_success:
            log.error(f"Yahoo quote fetch failed: {r.status_code} {r.text[:300]}")
            raise UpstreamError("quotes", status=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            log.error(f"Yahoo quote payload is not JSON: {r.text[:300]}")
            raise UpstreamError("quotes", status=r.status_code, detail="invalid JSON") from e

    # ── Headline feed ─────────────────────────────────────────────────────────

    async def fetch_feed(self) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept":     "application/rss+xml, application/xml;q=0.9, */*;q=0.8",
        }
        try:
            r = await self.client.get(self.feed_url, headers=headers)
        except httpx.TimeoutException as e:
            log.warning("Yahoo RSS fetch timed out")
            raise UpstreamError("feed", detail="timeout") from e
        except httpx.HTTPError as e:
            log.error(f"Yahoo RSS fetch exception: {e!r}")
            raise UpstreamError("feed", detail=str(e)) from e

        if not r.is_success:
            log.error(f"Yahoo RSS fetch failed: {r.status_code} {r.text[:200]}")
            raise UpstreamError("feed", status=r.status_code)
        return r.text
