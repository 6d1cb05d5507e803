from __future__ import annotations

import logging
import math
import re
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

from app.schemas.metrics import NO_NAS_DATA, DashboardMetrics, StorageSummary
from app.schemas.node import DeviceType, NodeOut, NodeStatus


logger = logging.getLogger(__name__)

NodeLike = Mapping[str, Any] | NodeOut

_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+))")


def _field(node: NodeLike, key: str, attr: str) -> Any:
    if isinstance(node, NodeOut):
        value = getattr(node, attr)
    else:
        value = node.get(key, node.get(attr))
    if isinstance(value, (DeviceType, NodeStatus)):
        return value.value
    return value


def _parse_gb(value: Any) -> float:
    """Parse a storage string like '1000' or '1.5' to GB.

    Mirrors the dashboard's lenient parse: the leading number wins and
    anything unparsable counts as 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if not isinstance(value, str):
        return 0.0
    match = _LEADING_NUMBER.match(value)
    if not match:
        return 0.0
    try:
        return float(match.group(1))
    except ValueError:
        return 0.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_storage(gb: float) -> str:
    """Render a GB quantity for display.

    1000 GB and above switch to TB. One decimal place, with a trailing
    '.0' dropped: 1500 -> '1.5 TB', 512.0 -> '512 GB'.
    """
    if gb >= 1000:
        return f"{_one_decimal(gb / 1000)} TB"
    return f"{_one_decimal(gb)} GB"


def _one_decimal(value: float) -> str:
    # Ties round up: 250.25 -> 250.3
    text = format(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def online_ratio(nodes: Iterable[NodeLike]) -> tuple[int, int]:
    """Return (online, total) node counts."""
    online = 0
    total = 0
    for node in nodes:
        total += 1
        if _field(node, "status", "status") == NodeStatus.ONLINE.value:
            online += 1
    return online, total


def count_services(nodes: Iterable[NodeLike]) -> int:
    return sum(len(_field(node, "services", "services") or []) for node in nodes)


def aggregate_storage(nodes: Iterable[NodeLike]) -> StorageSummary:
    """Sum NAS storage across nodes.

    Only NAS nodes with both storageTotal and storageUsed set take part.
    A value that does not parse counts as 0 instead of dropping the node,
    so a malformed record can understate both sums.
    """
    total_gb = 0.0
    used_gb = 0.0
    node_count = 0

    for node in nodes:
        if _field(node, "deviceType", "device_type") != DeviceType.NAS.value:
            continue
        total = _field(node, "storageTotal", "storage_total")
        used = _field(node, "storageUsed", "storage_used")
        if not total or not used:
            continue
        node_count += 1
        total_gb += _parse_gb(total)
        used_gb += _parse_gb(used)

    if total_gb <= 0:
        if node_count:
            logger.debug("NAS storage totals sum to zero across %d node(s)", node_count)
        return StorageSummary(
            total_gb=total_gb,
            used_gb=used_gb,
            used_percent=None,
            node_count=node_count,
            label=NO_NAS_DATA,
        )

    used_percent = _round_half_up(used_gb / total_gb * 100)
    total_display = format_storage(total_gb)
    used_display = format_storage(used_gb)
    return StorageSummary(
        total_gb=total_gb,
        used_gb=used_gb,
        used_percent=used_percent,
        node_count=node_count,
        total_display=total_display,
        used_display=used_display,
        label=f"{used_display} / {total_display}",
    )


def build_dashboard_metrics(nodes: Iterable[NodeLike]) -> DashboardMetrics:
    """Compute the dashboard summary for a node collection."""
    nodes = list(nodes)
    online, total = online_ratio(nodes)

    by_type = Counter(_field(node, "deviceType", "device_type") or DeviceType.SERVER.value for node in nodes)
    by_status = Counter(_field(node, "status", "status") or NodeStatus.UNKNOWN.value for node in nodes)

    return DashboardMetrics(
        total_nodes=total,
        online_nodes=online,
        online_percent=_round_half_up(online / total * 100) if total else None,
        service_count=count_services(nodes),
        nodes_by_type=dict(by_type),
        nodes_by_status=dict(by_status),
        storage=aggregate_storage(nodes),
    )
