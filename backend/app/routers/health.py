from __future__ import annotations

import asyncio
import logging
import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.dependencies import get_inventory_store
from app.services.inventory import InventoryStore, StoreError


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


class ComponentStatus(BaseModel):
    status: str  # ok, error
    message: str
    latency_ms: float | None = None


class SystemHealthResponse(BaseModel):
    status: str  # healthy, unhealthy
    database: ComponentStatus


async def check_database_health(store: InventoryStore) -> ComponentStatus:
    """Check that the inventory database answers a count query."""
    start = time.time()
    try:
        count = await asyncio.to_thread(store.count_nodes)
    except StoreError as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentStatus(status="error", message="Database unavailable")

    latency = (time.time() - start) * 1000
    return ComponentStatus(
        status="ok",
        message=f"Database accessible ({count} nodes)",
        latency_ms=round(latency, 2),
    )


@router.get("", response_model=SystemHealthResponse)
async def get_system_health(store: InventoryStore = Depends(get_inventory_store)):
    database = await check_database_health(store)
    overall = "healthy" if database.status == "ok" else "unhealthy"
    return SystemHealthResponse(status=overall, database=database)
