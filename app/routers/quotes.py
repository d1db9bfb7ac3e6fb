"""
app/routers/quotes.py

Yahoo passthrough endpoints.

GET /api/quotes?symbols=SPY,QQQ,^VIX   → upstream quote JSON as-is
GET /api/yahoo-rss                     → cached headline RSS document (text/xml)

Upstream failures are reported as 502 and are not cached, so the next request
tries again immediately.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from app.core.deps import get_quotes
from app.core.logging import get_logger
from app.services.quotes import QuoteProxy
from app.services.upstream import UpstreamError

router = APIRouter()
log = get_logger("api.quotes")


@router.get("/quotes", summary="Live quotes for a list of symbols")
async def get_quotes_endpoint(
    symbols: Optional[str] = Query(
        default=None,
        description="Comma-separated symbols, e.g. SPY,QQQ,^VIX. Defaults to SPY,QQQ,^VIX.",
    ),
    proxy: QuoteProxy = Depends(get_quotes),
):
    try:
        return await proxy.get_quotes(symbols)
    except UpstreamError as e:
        return JSONResponse(status_code=502, content={"error": "Yahoo fetch failed", "status": e.status})
    except Exception as e:
        log.exception("Quotes endpoint error")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/yahoo-rss", summary="S&P 500 headline feed (RSS)")
async def get_yahoo_rss(proxy: QuoteProxy = Depends(get_quotes)):
    try:
        text = await proxy.get_feed()
        return Response(content=text, media_type="text/xml")
    except UpstreamError:
        return JSONResponse(status_code=502, content={"error": "Yahoo RSS fetch failed"})
    except Exception:
        log.exception("Yahoo RSS endpoint error")
        return JSONResponse(status_code=500, content={"error": "Server error"})
