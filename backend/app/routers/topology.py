from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import Response

from app.config import get_settings
from app.dependencies import get_inventory_store
from app.schemas.node import ImportResponse, TopologyResponse
from app.services.inventory import InventoryStore
from app.validators import FieldError, ValidationError


router = APIRouter(prefix="/api", tags=["topology"])


@router.get("/topology", response_model=TopologyResponse)
async def get_topology(store: InventoryStore = Depends(get_inventory_store)):
    """All nodes and edges in one response, for the network canvas."""
    return await asyncio.to_thread(store.get_topology)


@router.get("/export")
async def export_topology(store: InventoryStore = Depends(get_inventory_store)):
    """Download the whole topology as a JSON file."""
    topology = await asyncio.to_thread(store.get_topology)
    body = TopologyResponse.model_validate(topology).model_dump(mode="json", by_alias=True)
    filename = get_settings().export_filename
    return Response(
        content=json.dumps(body, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/import", response_model=ImportResponse, status_code=201)
async def import_topology(
    payload: Any = Body(..., description="{nodes: [...], edges?: [...]} as produced by /api/export"),
    store: InventoryStore = Depends(get_inventory_store),
):
    if not isinstance(payload, dict) or not isinstance(payload.get("nodes"), list):
        raise ValidationError(
            "Invalid import data",
            [FieldError("nodes", "nodes must be a list")],
        )

    edges = payload.get("edges")
    if edges is not None and not isinstance(edges, list):
        raise ValidationError(
            "Invalid import data",
            [FieldError("edges", "edges must be a list when provided")],
        )

    result = await asyncio.to_thread(store.import_topology, payload["nodes"], edges)
    return {
        **result,
        "message": f"Imported {len(result['nodes'])} nodes and {len(result['edges'])} edges",
    }
