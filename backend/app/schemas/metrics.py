from __future__ import annotations

from pydantic import Field

from app.schemas.node import CamelModel


NO_NAS_DATA = "No NAS data"


class StorageSummary(CamelModel):
    total_gb: float = 0.0
    used_gb: float = 0.0
    # None means there was nothing to divide by
    used_percent: int | None = None
    node_count: int = 0
    total_display: str | None = None
    used_display: str | None = None
    label: str = NO_NAS_DATA

    @property
    def has_data(self) -> bool:
        return self.used_percent is not None


class DashboardMetrics(CamelModel):
    total_nodes: int = 0
    online_nodes: int = 0
    online_percent: int | None = None
    service_count: int = 0
    nodes_by_type: dict[str, int] = Field(default_factory=dict)
    nodes_by_status: dict[str, int] = Field(default_factory=dict)
    storage: StorageSummary = Field(default_factory=StorageSummary)
