from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DeviceType(str, Enum):
    SERVER = "server"
    ROUTER = "router"
    SWITCH = "switch"
    ACCESS_POINT = "access-point"
    NAS = "nas"
    CONTAINER = "container"


class NodeStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"


class ManagementType(str, Enum):
    MANAGED = "managed"
    UNMANAGED = "unmanaged"
    SMART = "smart"


class ContainerRuntime(str, Enum):
    DOCKER = "docker"
    PODMAN = "podman"
    CONTAINERD = "containerd"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _MetadataModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# --- Per-device-type metadata ---

class ServerMetadata(_MetadataModel):
    cpu: str | None = None
    ram: str | None = None
    platform: str | None = None


class RouterMetadata(_MetadataModel):
    wan_ip: str | None = None
    gateway: str | None = None
    dhcp_range: str | None = None


class SwitchMetadata(_MetadataModel):
    port_count: str | None = None
    port_speed: str | None = None
    management_type: ManagementType | None = None
    vlan_support: bool | None = None


class AccessPointMetadata(_MetadataModel):
    wifi_standard: str | None = None
    ssid: str | None = None
    channel: str | None = None
    security: str | None = None


class NasMetadata(_MetadataModel):
    raid_type: str | None = None
    protocols: list[str] | None = None


class ContainerMetadata(_MetadataModel):
    runtime: ContainerRuntime | None = None
    image: str | None = None
    ports: str | None = None


METADATA_MODELS: dict[DeviceType, type[_MetadataModel]] = {
    DeviceType.SERVER: ServerMetadata,
    DeviceType.ROUTER: RouterMetadata,
    DeviceType.SWITCH: SwitchMetadata,
    DeviceType.ACCESS_POINT: AccessPointMetadata,
    DeviceType.NAS: NasMetadata,
    DeviceType.CONTAINER: ContainerMetadata,
}


# --- Node ---

class Service(CamelModel):
    name: str
    url: str


class Position(CamelModel):
    x: float = 0.0
    y: float = 0.0


class NodeOut(CamelModel):
    id: str
    name: str
    ip: str
    os_type: str
    device_type: DeviceType = DeviceType.SERVER
    status: NodeStatus = NodeStatus.UNKNOWN
    tags: list[str] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)
    storage_total: str | None = None
    storage_used: str | None = None
    metadata: dict[str, Any] | None = None
    position: Position = Field(default_factory=Position)
    uptime: str | None = None
    last_seen: datetime | None = None
    created_at: datetime
    updated_at: datetime


# --- Edge ---

class EdgeCreate(CamelModel):
    source: str
    target: str
    animated: str | None = "false"


class EdgeOut(CamelModel):
    id: str
    source: str
    target: str
    animated: str | None = "false"
    created_at: datetime


# --- Topology / import ---

class TopologyResponse(CamelModel):
    nodes: list[NodeOut]
    edges: list[EdgeOut]


class ImportResponse(CamelModel):
    nodes: list[NodeOut]
    edges: list[EdgeOut]
    message: str


# --- Errors ---

class FieldErrorOut(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    detail: str
    errors: list[FieldErrorOut] = Field(default_factory=list)
