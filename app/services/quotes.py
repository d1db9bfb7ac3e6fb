"""
app/services/quotes.py

Cached proxies for Yahoo quotes and the S&P 500 headline feed.
"""
from __future__ import annotations

from typing import Any, Optional

from app.core.cache import TTLCacheStore
from app.core.config import settings
from app.services.upstream import UpstreamClient

FEED_KEY = "headlines"


def normalize_symbols(symbols: Optional[str], default: str = settings.DEFAULT_SYMBOLS) -> str:
    """
    Canonical cache key for a symbol list.

    "SPY, QQQ ,^VIX," → "SPY,QQQ,^VIX". Order and case are kept, so
    "QQQ,SPY" and "SPY,QQQ" are different keys.
    """
    tokens = [s.strip() for s in (symbols or "").split(",")]
    key = ",".join(t for t in tokens if t)
    if key:
        return key
    return ",".join(t.strip() for t in default.split(",") if t.strip())


class QuoteProxy:
    def __init__(self, upstream: UpstreamClient, quotes: TTLCacheStore, feed: TTLCacheStore):
        self.upstream = upstream
        self.quotes = quotes
        self.feed = feed

    async def get_quotes(self, symbols: Optional[str] = None) -> Any:
        key = normalize_symbols(symbols)
        return await self.quotes.get_or_refresh(key, lambda: self.upstream.fetch_quotes(key))

    async def get_feed(self) -> str:
        return await self.feed.get_or_refresh(FEED_KEY, self.upstream.fetch_feed)
