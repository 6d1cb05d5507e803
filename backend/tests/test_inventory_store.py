from __future__ import annotations

import pytest

from app.database import Database
from app.services.demo_data import DEMO_EDGES, DEMO_NODES, seed_demo_data
from app.services.inventory import InventoryStore, NotFoundError, StoreError
from app.validators import CREATE, UPDATE, ValidationError, validate_node_payload
from conftest import make_node


def _create(store: InventoryStore, **overrides) -> dict:
    return store.create_node(validate_node_payload(make_node(**overrides), CREATE))


def _link(store: InventoryStore, source: dict, target: dict) -> dict:
    return store.create_edge({"source": source["id"], "target": target["id"], "animated": "false"})


class TestNodeCrud:
    def test_create_assigns_id_and_timestamps(self, store: InventoryStore) -> None:
        node = _create(store)
        assert node["id"]
        assert node["createdAt"] is not None
        assert node["updatedAt"] is not None
        assert node["position"] == {"x": 0.0, "y": 0.0}
        assert node["deviceType"] == "server"

    def test_get_round_trips_stored_record(self, store: InventoryStore) -> None:
        node = _create(store, tags=["prod"], services=[{"name": "UI", "url": "https://pve.local"}])
        assert store.get_node(node["id"]) == node

    def test_get_unknown_raises_not_found(self, store: InventoryStore) -> None:
        with pytest.raises(NotFoundError):
            store.get_node("missing")

    def test_update_merges_and_keeps_created_at(self, store: InventoryStore) -> None:
        node = _create(store, status="offline")
        updated = store.update_node(node["id"], {"status": "online"})
        assert updated["status"] == "online"
        assert updated["name"] == node["name"]
        assert updated["createdAt"] == node["createdAt"]
        assert updated["updatedAt"] >= node["updatedAt"]

    def test_update_ignores_read_only_fields_from_payload(self, store: InventoryStore) -> None:
        node = _create(store, position={"x": 10, "y": 20})
        payload = {"id": "other", "position": {"x": 1, "y": 1}, "createdAt": "2000-01-01T00:00:00Z", "ip": "10.0.0.9"}
        data = validate_node_payload(payload, UPDATE, existing=node)
        updated = store.update_node(node["id"], data)
        assert updated["id"] == node["id"]
        assert updated["position"] == {"x": 10.0, "y": 20.0}
        assert updated["createdAt"] == node["createdAt"]
        assert updated["ip"] == "10.0.0.9"

    def test_update_unknown_raises_not_found(self, store: InventoryStore) -> None:
        with pytest.raises(NotFoundError):
            store.update_node("missing", {"status": "online"})

    def test_list_filters(self, store: InventoryStore) -> None:
        _create(store, name="TrueNAS", ip="192.168.1.20", deviceType="nas", tags=["storage"])
        _create(store, name="pfSense", ip="192.168.1.1", osType="FreeBSD", deviceType="router")
        _create(store, name="docker-01", ip="10.0.0.30", deviceType="container", status="online")

        assert [n["name"] for n in store.list_nodes(search="truenas")] == ["TrueNAS"]
        assert [n["name"] for n in store.list_nodes(search="freebsd")] == ["pfSense"]
        assert [n["name"] for n in store.list_nodes(search="10.0.0")] == ["docker-01"]
        assert [n["name"] for n in store.list_nodes(device_type="router")] == ["pfSense"]
        assert [n["name"] for n in store.list_nodes(status="online")] == ["docker-01"]
        assert [n["name"] for n in store.list_nodes(tag="storage")] == ["TrueNAS"]
        assert len(store.list_nodes()) == 3

    def test_search_wildcards_match_literally(self, store: InventoryStore) -> None:
        _create(store, name="nas_01", ip="192.168.1.20")
        _create(store, name="nas-02", ip="192.168.1.21")
        _create(store, name="backup 100%", ip="192.168.1.22")

        assert [n["name"] for n in store.list_nodes(search="_")] == ["nas_01"]
        assert [n["name"] for n in store.list_nodes(search="%")] == ["backup 100%"]
        assert [n["name"] for n in store.list_nodes(search="nas_0")] == ["nas_01"]


class TestCascadeDelete:
    def test_delete_node_removes_its_edges(self, store: InventoryStore) -> None:
        a = _create(store, name="a")
        b = _create(store, name="b")
        c = _create(store, name="c")
        _link(store, a, b)
        _link(store, c, a)
        kept = _link(store, b, c)

        removed = store.delete_node(a["id"])

        assert removed == 2
        assert store.list_edges() == [kept]
        with pytest.raises(NotFoundError):
            store.get_node(a["id"])

    def test_delete_node_without_edges(self, store: InventoryStore) -> None:
        a = _create(store, name="a")
        b = _create(store, name="b")
        c = _create(store, name="c")
        edge = _link(store, b, c)

        assert store.delete_node(a["id"]) == 0
        assert store.list_edges() == [edge]

    def test_delete_unknown_node_is_noop(self, store: InventoryStore) -> None:
        assert store.delete_node("missing") == 0


class TestEdges:
    def test_create_edge_requires_existing_nodes(self, store: InventoryStore) -> None:
        a = _create(store)
        with pytest.raises(ValidationError) as exc_info:
            store.create_edge({"source": a["id"], "target": "ghost", "animated": "false"})
        assert [e.field for e in exc_info.value.errors] == ["target"]
        assert store.list_edges() == []

    def test_delete_edge(self, store: InventoryStore) -> None:
        edge = _link(store, _create(store, name="a"), _create(store, name="b"))
        assert store.delete_edge(edge["id"]) is True
        assert store.delete_edge(edge["id"]) is False
        with pytest.raises(NotFoundError):
            store.get_edge(edge["id"])


class TestImportTopology:
    def test_one_invalid_node_rejects_whole_batch(self, store: InventoryStore) -> None:
        nodes = [make_node(name="a"), make_node(name="b"), {"name": "broken"}, make_node(name="c")]
        with pytest.raises(ValidationError) as exc_info:
            store.import_topology(nodes)
        fields = {e.field for e in exc_info.value.errors}
        assert fields == {"nodes[2].ip", "nodes[2].osType"}
        assert store.count_nodes() == 0

    def test_exported_ids_are_remapped(self, store: InventoryStore) -> None:
        nodes = [make_node(id="old-1", name="a"), make_node(id="old-2", name="b")]
        edges = [{"source": "old-1", "target": "old-2", "animated": True}]

        result = store.import_topology(nodes, edges)

        new_a, new_b = result["nodes"]
        assert new_a["id"] != "old-1"
        assert result["edges"][0]["source"] == new_a["id"]
        assert result["edges"][0]["target"] == new_b["id"]
        assert result["edges"][0]["animated"] == "true"

    def test_edges_may_reference_existing_nodes(self, store: InventoryStore) -> None:
        existing = _create(store, name="router")
        result = store.import_topology([make_node(id="n1", name="nas")], [{"source": existing["id"], "target": "n1"}])
        assert result["edges"][0]["source"] == existing["id"]

    def test_dangling_edge_rolls_back_nodes(self, store: InventoryStore) -> None:
        with pytest.raises(ValidationError) as exc_info:
            store.import_topology([make_node(id="n1")], [{"source": "n1", "target": "nowhere"}])
        assert [e.field for e in exc_info.value.errors] == ["edges[0].target"]
        assert store.count_nodes() == 0

    def test_invalid_edge_payload_rejected_before_writes(self, store: InventoryStore) -> None:
        with pytest.raises(ValidationError):
            store.import_topology([make_node()], [{"source": ""}])
        assert store.count_nodes() == 0


class TestDemoData:
    def test_seeds_empty_store_once(self, store: InventoryStore) -> None:
        assert seed_demo_data(store) == len(DEMO_NODES)
        assert len(store.list_edges()) == len(DEMO_EDGES)
        assert seed_demo_data(store) == 0
        assert store.count_nodes() == len(DEMO_NODES)


class TestStoreErrors:
    def test_missing_tables_surface_as_store_error(self, tmp_path) -> None:
        db = Database(str(tmp_path / "empty.db"))
        broken = InventoryStore(db)
        try:
            with pytest.raises(StoreError):
                broken.list_nodes()
        finally:
            db.dispose()
