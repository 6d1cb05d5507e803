from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Body, Depends, Path, Response

from app.dependencies import get_inventory_store
from app.schemas.node import EdgeOut
from app.services.inventory import InventoryStore
from app.validators import validate_edge_payload


router = APIRouter(prefix="/api/edges", tags=["edges"])


@router.get("", response_model=list[EdgeOut])
async def list_edges(store: InventoryStore = Depends(get_inventory_store)):
    return await asyncio.to_thread(store.list_edges)


@router.post("", response_model=EdgeOut, status_code=201)
async def create_edge(
    payload: Any = Body(..., description="Edge with source and target node ids"),
    store: InventoryStore = Depends(get_inventory_store),
):
    data = validate_edge_payload(payload)
    return await asyncio.to_thread(store.create_edge, data)


@router.delete("/{edge_id}", status_code=204)
async def delete_edge(
    edge_id: str = Path(..., description="Edge id"),
    store: InventoryStore = Depends(get_inventory_store),
):
    await asyncio.to_thread(store.delete_edge, edge_id)
    return Response(status_code=204)
