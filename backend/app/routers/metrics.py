from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from app.dependencies import get_inventory_store
from app.schemas.metrics import DashboardMetrics
from app.services.inventory import InventoryStore
from app.services.metrics_service import build_dashboard_metrics


router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("", response_model=DashboardMetrics)
async def dashboard_metrics(store: InventoryStore = Depends(get_inventory_store)):
    """Summary numbers for the dashboard cards, computed over every node."""
    nodes = await asyncio.to_thread(store.list_nodes)
    return build_dashboard_metrics(nodes)
