from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import Database, EdgeRecord, NodeRecord, utcnow
from app.validators import (
    CREATE,
    FieldError,
    ValidationError,
    validate_edge_payload,
    validate_node_payload,
)


logger = logging.getLogger(__name__)

# Validated snake_case keys that map to a differently named column attribute
_COLUMN_ATTRS = {"metadata": "metadata_json"}


class NotFoundError(LookupError):
    """Raised when a node or edge id does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind.capitalize()} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class StoreError(RuntimeError):
    """Raised when the database rejects or fails an operation."""
    pass


def _escape_like(text: str) -> str:
    """Make ``%`` and ``_`` match literally in a LIKE pattern escaped with backslash."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply(record: NodeRecord, data: dict[str, Any]) -> None:
    for key, value in data.items():
        setattr(record, _COLUMN_ATTRS.get(key, key), value)


class InventoryStore:
    """Repository over the nodes and edges tables."""

    def __init__(self, db: Database):
        self.db = db

    @contextmanager
    def _session(self, action: str) -> Generator[Session, None, None]:
        """Open a session that commits on success and rolls back on any error.

        Database errors are logged with their cause and re-raised as StoreError.
        """
        session = self.db.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"Store operation failed: {action}: {exc}")
            raise StoreError(f"Store operation failed: {action}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Nodes ---

    def list_nodes(
        self,
        search: str | None = None,
        device_type: str | None = None,
        status: str | None = None,
        tag: str | None = None,
    ) -> list[dict[str, Any]]:
        """List nodes in creation order with optional filters.

        ``search`` matches name and OS type case-insensitively and IP as a substring.
        """
        with self._session("list nodes") as session:
            query = session.query(NodeRecord)
            if search:
                text = _escape_like(search.strip())
                pattern = f"%{text.lower()}%"
                query = query.filter(
                    or_(
                        func.lower(NodeRecord.name).like(pattern, escape="\\"),
                        func.lower(NodeRecord.os_type).like(pattern, escape="\\"),
                        NodeRecord.ip.like(f"%{text}%", escape="\\"),
                    )
                )
            if device_type:
                query = query.filter(NodeRecord.device_type == device_type)
            if status:
                query = query.filter(NodeRecord.status == status)

            records = query.order_by(NodeRecord.created_at, NodeRecord.id).all()
            nodes = [record.to_dict() for record in records]

        if tag:
            nodes = [node for node in nodes if tag in node["tags"]]
        return nodes

    def count_nodes(self) -> int:
        with self._session("count nodes") as session:
            return session.query(func.count(NodeRecord.id)).scalar() or 0

    def get_node(self, node_id: str) -> dict[str, Any]:
        with self._session("get node") as session:
            record = session.get(NodeRecord, node_id)
            if record is None:
                raise NotFoundError("node", node_id)
            return record.to_dict()

    def create_node(self, data: dict[str, Any]) -> dict[str, Any]:
        """Persist a validated node and return the stored record."""
        with self._session("create node") as session:
            record = self._add_node(session, data)
            session.flush()
            node = record.to_dict()

        logger.info(
            f"Node created: {node['name']}",
            extra={"node_id": node["id"], "device_type": node["deviceType"]},
        )
        return node

    def update_node(self, node_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Assign validated fields onto a stored node and refresh updatedAt.

        Only the keys present in ``data`` are written.
        """
        with self._session("update node") as session:
            record = session.get(NodeRecord, node_id)
            if record is None:
                raise NotFoundError("node", node_id)
            _apply(record, data)
            record.updated_at = utcnow()
            session.flush()
            node = record.to_dict()

        logger.info(
            f"Node updated: {node['name']}",
            extra={"node_id": node_id, "fields": sorted(data)},
        )
        return node

    def delete_node(self, node_id: str) -> int:
        """Delete a node; the database cascades to its edges.

        Returns the number of edges removed along with it. Deleting an
        unknown id is a no-op.
        """
        with self._session("delete node") as session:
            edge_count = (
                session.query(func.count(EdgeRecord.id))
                .filter(or_(EdgeRecord.source == node_id, EdgeRecord.target == node_id))
                .scalar()
                or 0
            )
            deleted = session.query(NodeRecord).filter(NodeRecord.id == node_id).delete(
                synchronize_session=False
            )

        if deleted:
            logger.info(
                f"Node deleted: {node_id}",
                extra={"node_id": node_id, "edges_removed": edge_count},
            )
            return edge_count
        return 0

    # --- Edges ---

    def list_edges(self) -> list[dict[str, Any]]:
        with self._session("list edges") as session:
            records = session.query(EdgeRecord).order_by(EdgeRecord.created_at, EdgeRecord.id).all()
            return [record.to_dict() for record in records]

    def get_edge(self, edge_id: str) -> dict[str, Any]:
        with self._session("get edge") as session:
            record = session.get(EdgeRecord, edge_id)
            if record is None:
                raise NotFoundError("edge", edge_id)
            return record.to_dict()

    def create_edge(self, data: dict[str, Any]) -> dict[str, Any]:
        """Persist a validated edge. Both endpoints must already exist."""
        with self._session("create edge") as session:
            record = self._add_edge(session, data)
            session.flush()
            edge = record.to_dict()

        logger.info(
            f"Edge created: {edge['source']} -> {edge['target']}",
            extra={"edge_id": edge["id"]},
        )
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        with self._session("delete edge") as session:
            deleted = session.query(EdgeRecord).filter(EdgeRecord.id == edge_id).delete(
                synchronize_session=False
            )
        if deleted:
            logger.info(f"Edge deleted: {edge_id}", extra={"edge_id": edge_id})
        return bool(deleted)

    # --- Topology ---

    def get_topology(self) -> dict[str, list[dict[str, Any]]]:
        with self._session("get topology") as session:
            nodes = session.query(NodeRecord).order_by(NodeRecord.created_at, NodeRecord.id).all()
            edges = session.query(EdgeRecord).order_by(EdgeRecord.created_at, EdgeRecord.id).all()
            return {
                "nodes": [record.to_dict() for record in nodes],
                "edges": [record.to_dict() for record in edges],
            }

    def import_topology(
        self,
        nodes: list[Any],
        edges: list[Any] | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        """Import a batch of nodes and edges in one transaction.

        Every node is validated before any edge, and everything is validated
        before anything is written. Node ids carried in the payload (as in an
        export) are remapped to the new ids so edges keep pointing at the
        right nodes. Any failure rolls the whole batch back.
        """
        edges = edges or []
        errors: list[FieldError] = []

        validated_nodes: list[tuple[Any, dict[str, Any]]] = []
        for index, payload in enumerate(nodes):
            try:
                data = validate_node_payload(payload, CREATE)
            except ValidationError as exc:
                errors.extend(exc.prefixed(f"nodes[{index}]."))
                continue
            original_id = payload.get("id") if isinstance(payload, dict) else None
            validated_nodes.append((original_id, data))

        validated_edges: list[dict[str, Any]] = []
        for index, payload in enumerate(edges):
            try:
                validated_edges.append(validate_edge_payload(payload))
            except ValidationError as exc:
                errors.extend(exc.prefixed(f"edges[{index}]."))

        if errors:
            raise ValidationError.from_errors(errors, "import")

        with self._session("import topology") as session:
            id_map: dict[str, str] = {}
            created_nodes: list[NodeRecord] = []
            for original_id, data in validated_nodes:
                record = self._add_node(session, data)
                session.flush()
                if isinstance(original_id, str) and original_id:
                    id_map[original_id] = record.id
                created_nodes.append(record)

            created_edges: list[EdgeRecord] = []
            for index, data in enumerate(validated_edges):
                data = dict(data)
                data["source"] = id_map.get(data["source"], data["source"])
                data["target"] = id_map.get(data["target"], data["target"])
                try:
                    record = self._add_edge(session, data)
                except ValidationError as exc:
                    raise ValidationError.from_errors(exc.prefixed(f"edges[{index}]."), "import") from exc
                created_edges.append(record)
            session.flush()

            result = {
                "nodes": [record.to_dict() for record in created_nodes],
                "edges": [record.to_dict() for record in created_edges],
            }

        logger.info(
            f"Imported {len(result['nodes'])} nodes and {len(result['edges'])} edges",
            extra={"remapped_ids": len(id_map)},
        )
        return result

    # --- Helpers ---

    @staticmethod
    def _add_node(session: Session, data: dict[str, Any]) -> NodeRecord:
        now = utcnow()
        record = NodeRecord(created_at=now, updated_at=now, last_seen=now)
        _apply(record, data)
        if record.position is None:
            record.position = {"x": 0.0, "y": 0.0}
        session.add(record)
        return record

    @staticmethod
    def _add_edge(session: Session, data: dict[str, Any]) -> EdgeRecord:
        missing = [
            FieldError(field, f"{field.capitalize()} node does not exist")
            for field in ("source", "target")
            if session.get(NodeRecord, data[field]) is None
        ]
        if missing:
            raise ValidationError.from_errors(missing, "edge")

        record = EdgeRecord(
            source=data["source"],
            target=data["target"],
            animated=data.get("animated", "false"),
            created_at=utcnow(),
        )
        session.add(record)
        return record
