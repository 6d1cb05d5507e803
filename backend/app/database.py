from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class NodeRecord(Base):
    """SQLAlchemy model for an inventory node (one row per device)."""

    __tablename__ = "nodes"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False, index=True)
    ip = Column(Text, nullable=False)
    os_type = Column(Text, nullable=False)
    device_type = Column(String(20), nullable=False, default="server", index=True)
    status = Column(String(20), nullable=False, default="unknown", index=True)
    tags = Column(JSON, nullable=False, default=list)
    services = Column(JSON, nullable=False, default=list)
    storage_total = Column(Text, nullable=True)
    storage_used = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    position = Column(JSON, nullable=True, default=lambda: {"x": 0, "y": 0})
    uptime = Column(Text, nullable=True)
    last_seen = Column(DateTime(timezone=True), default=utcnow, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ip": self.ip,
            "osType": self.os_type,
            "deviceType": self.device_type,
            "status": self.status,
            "tags": list(self.tags or []),
            "services": list(self.services or []),
            "storageTotal": self.storage_total,
            "storageUsed": self.storage_used,
            "metadata": self.metadata_json,
            "position": self.position or {"x": 0, "y": 0},
            "uptime": self.uptime,
            "lastSeen": _iso(self.last_seen),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class EdgeRecord(Base):
    """SQLAlchemy model for a directed topology link between two nodes."""

    __tablename__ = "edges"

    id = Column(String(36), primary_key=True, default=_new_id)
    source = Column(String(36), ForeignKey("nodes.id", ondelete="CASCADE"), nullable=False, index=True)
    target = Column(String(36), ForeignKey("nodes.id", ondelete="CASCADE"), nullable=False, index=True)
    animated = Column(String(5), nullable=True, default="false")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "animated": self.animated,
            "createdAt": _iso(self.created_at),
        }


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with foreign key enforcement off; cascades depend on it.
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class Database:
    """Database connection manager."""

    def __init__(self, db_path: str = "homelab.db"):
        self.db_path = db_path
        if db_path == ":memory:":
            # One shared connection, otherwise every session sees an empty database
            self.engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{db_path}",
                connect_args={"check_same_thread": False},
                echo=False,
            )
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


_database: Database | None = None


def get_database(db_path: str = "homelab.db") -> Database:
    global _database
    if _database is None:
        _database = Database(db_path)
    return _database


def init_database(db_path: str = "homelab.db") -> Database:
    db = get_database(db_path)
    db.init_db()
    return db


def reset_database() -> None:
    """Drop the cached Database so the next get_database() call builds a fresh one."""
    global _database
    if _database is not None:
        _database.dispose()
    _database = None
