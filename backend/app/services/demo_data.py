from __future__ import annotations

import logging
from typing import Any

from app.services.inventory import InventoryStore


logger = logging.getLogger(__name__)


DEMO_NODES: list[dict[str, Any]] = [
    {
        "id": "demo-router",
        "name": "pfSense Router",
        "ip": "192.168.1.1",
        "osType": "pfSense 2.7",
        "deviceType": "router",
        "status": "online",
        "tags": ["network", "firewall"],
        "services": [{"name": "Web UI", "url": "https://192.168.1.1"}],
        "metadata": {"wanIp": "203.0.113.10", "gateway": "203.0.113.1", "dhcpRange": "192.168.1.100-192.168.1.200"},
        "position": {"x": 250, "y": 50},
        "uptime": "99.9%",
    },
    {
        "id": "demo-switch",
        "name": "Core Switch",
        "ip": "192.168.1.2",
        "osType": "UniFi OS",
        "deviceType": "switch",
        "status": "online",
        "tags": ["network"],
        "metadata": {"portCount": "24", "portSpeed": "1 Gbps", "managementType": "managed", "vlanSupport": True},
        "position": {"x": 250, "y": 180},
    },
    {
        "id": "demo-ap",
        "name": "Living Room AP",
        "ip": "192.168.1.3",
        "osType": "UniFi OS",
        "deviceType": "access-point",
        "status": "online",
        "tags": ["wifi"],
        "metadata": {"wifiStandard": "Wi-Fi 6", "ssid": "homelab", "channel": "36", "security": "WPA3"},
        "position": {"x": 450, "y": 180},
    },
    {
        "id": "demo-proxmox",
        "name": "Proxmox Server",
        "ip": "192.168.1.10",
        "osType": "Proxmox VE 8",
        "deviceType": "server",
        "status": "online",
        "tags": ["virtualization", "production"],
        "services": [{"name": "Proxmox UI", "url": "https://proxmox.local:8006"}],
        "metadata": {"cpu": "Ryzen 9 5900X", "ram": "64 GB", "platform": "bare metal"},
        "position": {"x": 100, "y": 320},
        "uptime": "99.8%",
    },
    {
        "id": "demo-truenas",
        "name": "TrueNAS Storage",
        "ip": "192.168.1.20",
        "osType": "TrueNAS SCALE",
        "deviceType": "nas",
        "status": "online",
        "tags": ["storage", "NAS"],
        "services": [{"name": "TrueNAS UI", "url": "https://truenas.local"}],
        "storageTotal": "12400",
        "storageUsed": "8200",
        "metadata": {"raidType": "RAIDZ2", "protocols": ["SMB", "NFS"]},
        "position": {"x": 250, "y": 320},
        "uptime": "99.9%",
    },
    {
        "id": "demo-docker",
        "name": "Docker Host",
        "ip": "192.168.1.30",
        "osType": "Debian 12",
        "deviceType": "container",
        "status": "degraded",
        "tags": ["containers"],
        "services": [
            {"name": "Portainer", "url": "https://docker.local:9443"},
            {"name": "Grafana", "url": "http://docker.local:3000"},
        ],
        "metadata": {"runtime": "docker", "image": "portainer/portainer-ce", "ports": "9443, 3000"},
        "position": {"x": 400, "y": 320},
        "uptime": "95.2%",
    },
]

DEMO_EDGES: list[dict[str, Any]] = [
    {"source": "demo-router", "target": "demo-switch", "animated": True},
    {"source": "demo-switch", "target": "demo-ap"},
    {"source": "demo-switch", "target": "demo-proxmox"},
    {"source": "demo-switch", "target": "demo-truenas"},
    {"source": "demo-switch", "target": "demo-docker"},
    {"source": "demo-proxmox", "target": "demo-truenas", "animated": True},
]


def seed_demo_data(store: InventoryStore) -> int:
    """Import the demo topology into an empty store.

    Returns the number of nodes created; 0 when the store already had nodes.
    """
    existing = store.count_nodes()
    if existing:
        logger.info("Skipping demo data: store already holds %d node(s)", existing)
        return 0

    result = store.import_topology(DEMO_NODES, DEMO_EDGES)
    logger.info(
        "Seeded demo topology with %d nodes and %d edges",
        len(result["nodes"]),
        len(result["edges"]),
    )
    return len(result["nodes"])
