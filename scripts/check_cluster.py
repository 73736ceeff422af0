#!/usr/bin/env python3
"""
Cluster preflight report.

Resolves a node group the same way the check runner does and prints, per
node, its overlay, peer count, Kademlia depth and connected bins. Useful
before a check run to tell environment problems from check failures.

Usage:
    python scripts/check_cluster.py --nodes bee-0 bee-1 bee-2 bee-3
    python scripts/check_cluster.py --group bee --domain cluster.local --json

Exit codes:
    0: Every node answered and has at least one peer
    1: The group could not be resolved or a node is isolated
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Any

from swarmcheck_engine.cluster.node_group import NodeGroup, NodeIdentity, TopologyError
from swarmcheck_engine.cluster.topology import StaticClusterTopology
from swarmcheck_engine.config import get_settings
from swarmcheck_engine.logging import setup_logging
from swarmcheck_engine.node.client import NodeAPIError
from swarmcheck_engine.sync.waiter import gather_all


async def describe_node(group: NodeGroup, node: NodeIdentity) -> dict[str, Any]:
    """Peer and topology summary for a single node."""
    peers = await group.invoke(node, lambda ops: ops.peers())
    topology = await group.invoke(node, lambda ops: ops.topology())
    return {
        "name": node.name,
        "overlay": node.overlay.hex(),
        "peers": len(peers),
        "depth": topology.depth,
        "population": topology.population,
        "connected_bins": sorted(
            int(name.removeprefix("bin_")) for name, b in topology.bins.items() if b.connected > 0
        ),
    }


async def run(args: argparse.Namespace) -> int:
    updates: dict[str, Any] = {}
    if args.group:
        updates["default_node_group"] = args.group
    if args.nodes:
        updates["node_names"] = args.nodes
    if args.domain:
        updates["api_domain"] = args.domain
        updates["debug_api_domain"] = args.domain
    settings = get_settings().model_copy(update=updates)

    topology = StaticClusterTopology.from_settings(settings)
    try:
        group = await topology.node_group(settings.default_node_group)
        report = await gather_all(*(describe_node(group, n) for n in group.nodes()))
    except (TopologyError, NodeAPIError, TimeoutError) as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        await topology.close()

    isolated = [r["name"] for r in report if r["peers"] == 0]

    if args.json:
        print(json.dumps({"group": group.name, "nodes": report, "isolated": isolated}, indent=2))
    else:
        print(f"\n{'='*72}")
        print(f"CLUSTER REPORT - {datetime.now().strftime('%Y-%m-%d %H:%M')}")
        print(f"{'='*72}")
        print(f"Group: {group.name} ({len(report)} nodes)")
        print(f"{'='*72}\n")
        for r in report:
            status = "OK " if r["peers"] else "!! "
            print(
                f"{status}{r['name']:12} | {r['overlay'][:16]} | "
                f"{r['peers']:>3} peers | depth {r['depth']:>2} | bins {r['connected_bins']}"
            )
        print(f"\n{'='*72}")
        print(f"SUMMARY: {len(report) - len(isolated)}/{len(report)} nodes connected")
        print(f"{'='*72}\n")

    return 1 if isolated else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Preflight report for a Bee node group")
    parser.add_argument("--group", help="Node group name")
    parser.add_argument("--nodes", nargs="+", help="Node names in the group")
    parser.add_argument("--domain", help="Domain of the node API and debug API")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    setup_logging(level=args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
