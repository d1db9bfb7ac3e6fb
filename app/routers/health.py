"""
app/routers/health.py

Liveness probe plus a snapshot of the in-memory caches.
"""

import time

from fastapi import APIRouter, Depends

from app.core.deps import Services, get_services

router = APIRouter()


@router.get("/health")
async def health(services: Services = Depends(get_services)):
    return {
        "status":    "healthy",
        "timestamp": int(time.time()),
        "caches":    [c.stats() for c in services.caches],
    }
