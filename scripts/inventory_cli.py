#!/usr/bin/env python3
"""
Command-line helper for the homelab inventory API.

Usage:
    python scripts/inventory_cli.py list [--search TEXT] [--type TYPE]
    python scripts/inventory_cli.py show ID
    python scripts/inventory_cli.py delete ID
    python scripts/inventory_cli.py export [--output FILE]
    python scripts/inventory_cli.py import FILE
    python scripts/inventory_cli.py metrics

Set INVENTORY_API to point at a backend other than http://localhost:8000.
"""

import argparse
import json
import os
import sys
import urllib.error
import urllib.parse
import urllib.request

API_BASE = os.environ.get("INVENTORY_API", "http://localhost:8000")
DEVICE_TYPES = ["server", "router", "switch", "access-point", "nas", "container"]


def api_request(method: str, endpoint: str, data: dict | None = None):
    """Make an API request and return the decoded JSON response (None for 204)."""
    url = f"{API_BASE}{endpoint}"
    headers = {"Content-Type": "application/json"}

    body = json.dumps(data).encode("utf-8") if data is not None else None

    req = urllib.request.Request(url, data=body, headers=headers, method=method)

    try:
        with urllib.request.urlopen(req, timeout=30) as response:
            raw = response.read().decode("utf-8")
            return json.loads(raw) if raw else None
    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8")
        try:
            error_json = json.loads(error_body)
            detail = error_json.get("detail", error_body)
            for error in error_json.get("errors", []):
                detail += f"\n  - {error['field']}: {error['message']}"
        except json.JSONDecodeError:
            detail = error_body
        print(f"Error {e.code}: {detail}")
        sys.exit(1)
    except urllib.error.URLError as e:
        print(f"Connection error: {e.reason}")
        print(f"Make sure the backend is running at {API_BASE}")
        sys.exit(1)


def list_nodes(search: str | None, device_type: str | None) -> None:
    """Print a one-line summary per node."""
    params = {k: v for k, v in {"search": search, "device_type": device_type}.items() if v}
    query = f"?{urllib.parse.urlencode(params)}" if params else ""
    nodes = api_request("GET", f"/api/nodes{query}")

    if not nodes:
        print("No nodes found")
        return
    for node in nodes:
        tags = f" [{', '.join(node['tags'])}]" if node.get("tags") else ""
        print(f"{node['id']}  {node['status']:<8} {node['deviceType']:<12} {node['name']} ({node['ip']}){tags}")


def show_node(node_id: str) -> None:
    node = api_request("GET", f"/api/nodes/{node_id}")
    print(json.dumps(node, indent=2))


def delete_node(node_id: str) -> None:
    api_request("DELETE", f"/api/nodes/{node_id}")
    print(f"Deleted node {node_id} and its edges")


def export_topology(output: str) -> None:
    """Save the full topology to a JSON file."""
    topology = api_request("GET", "/api/export")
    with open(output, "w", encoding="utf-8") as f:
        json.dump(topology, f, indent=2)
    print(f"Exported {len(topology['nodes'])} nodes and {len(topology['edges'])} edges to {output}")


def import_topology(path: str) -> None:
    """Load a topology file produced by export."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    result = api_request("POST", "/api/import", data)
    print(result["message"])


def show_metrics() -> None:
    metrics = api_request("GET", "/api/metrics")
    online = metrics.get("onlinePercent")
    print(f"Nodes:    {metrics['onlineNodes']}/{metrics['totalNodes']} online"
          + (f" ({online}%)" if online is not None else ""))
    print(f"Services: {metrics['serviceCount']}")
    storage = metrics["storage"]
    if storage.get("usedPercent") is not None:
        print(f"Storage:  {storage['label']} ({storage['usedPercent']}%)")
    else:
        print(f"Storage:  {storage['label']}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Homelab inventory command-line helper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_list = subparsers.add_parser("list", help="List nodes")
    p_list.add_argument("--search", "-s", help="Match name, IP or OS type")
    p_list.add_argument("--type", "-t", dest="device_type", choices=DEVICE_TYPES, help="Filter by device type")

    p_show = subparsers.add_parser("show", help="Show one node as JSON")
    p_show.add_argument("node_id")

    p_delete = subparsers.add_parser("delete", help="Delete a node and its edges")
    p_delete.add_argument("node_id")

    p_export = subparsers.add_parser("export", help="Export the topology to a file")
    p_export.add_argument("--output", "-o", default="topology.json", help="Output file (default: topology.json)")

    p_import = subparsers.add_parser("import", help="Import a topology file")
    p_import.add_argument("path")

    subparsers.add_parser("metrics", help="Show dashboard metrics")

    args = parser.parse_args()

    if args.command == "list":
        list_nodes(args.search, args.device_type)
    elif args.command == "show":
        show_node(args.node_id)
    elif args.command == "delete":
        delete_node(args.node_id)
    elif args.command == "export":
        export_topology(args.output)
    elif args.command == "import":
        import_topology(args.path)
    elif args.command == "metrics":
        show_metrics()


if __name__ == "__main__":
    main()
