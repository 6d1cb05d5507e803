from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.database import Database
from app.dependencies import get_inventory_store
from app.main import app
from app.services.inventory import InventoryStore


@pytest.fixture
def database(tmp_path) -> Database:
    db = Database(str(tmp_path / "inventory.db"))
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def store(database: Database) -> InventoryStore:
    return InventoryStore(database)


@pytest.fixture
def client(store: InventoryStore) -> TestClient:
    app.dependency_overrides[get_inventory_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_node(**overrides) -> dict:
    payload = {
        "name": "proxmox",
        "ip": "192.168.1.10",
        "osType": "Proxmox VE 8",
    }
    payload.update(overrides)
    return payload
