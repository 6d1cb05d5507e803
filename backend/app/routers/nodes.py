from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Body, Depends, Path, Query, Response

from app.dependencies import get_inventory_store
from app.schemas.node import DeviceType, NodeOut, NodeStatus
from app.services.inventory import InventoryStore
from app.validators import CREATE, UPDATE, validate_node_payload


router = APIRouter(prefix="/api/nodes", tags=["nodes"])


@router.get("", response_model=list[NodeOut])
async def list_nodes(
    search: str | None = Query(None, description="Match name, IP or OS type"),
    device_type: DeviceType | None = Query(None, description="Filter by device type"),
    status: NodeStatus | None = Query(None, description="Filter by status"),
    tag: str | None = Query(None, description="Only nodes carrying this tag"),
    store: InventoryStore = Depends(get_inventory_store),
):
    return await asyncio.to_thread(
        store.list_nodes,
        search=search,
        device_type=device_type.value if device_type else None,
        status=status.value if status else None,
        tag=tag,
    )


@router.get("/{node_id}", response_model=NodeOut)
async def get_node(
    node_id: str = Path(..., description="Node id"),
    store: InventoryStore = Depends(get_inventory_store),
):
    return await asyncio.to_thread(store.get_node, node_id)


@router.post("", response_model=NodeOut, status_code=201)
async def create_node(
    payload: Any = Body(..., description="Node to create"),
    store: InventoryStore = Depends(get_inventory_store),
):
    data = validate_node_payload(payload, CREATE)
    return await asyncio.to_thread(store.create_node, data)


@router.put("/{node_id}", response_model=NodeOut)
async def update_node(
    node_id: str = Path(..., description="Node id"),
    payload: Any = Body(..., description="Fields to change; position, id and timestamps are ignored"),
    store: InventoryStore = Depends(get_inventory_store),
):
    """Partially update a node.

    The stored node is loaded first so a missing id is a 404 even when the
    body would not validate.
    """
    existing = await asyncio.to_thread(store.get_node, node_id)
    data = validate_node_payload(payload, UPDATE, existing=existing)
    return await asyncio.to_thread(store.update_node, node_id, data)


@router.delete("/{node_id}", status_code=204)
async def delete_node(
    node_id: str = Path(..., description="Node id"),
    store: InventoryStore = Depends(get_inventory_store),
):
    await asyncio.to_thread(store.delete_node, node_id)
    return Response(status_code=204)
