"""
Connectivity checks: full connectivity, Kademlia health, ping-pong and peer count.

These only read node state; nothing is uploaded.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import ConnectivityOptions
from swarmcheck_engine.swarm.address import MAX_PO, Address
from swarmcheck_engine.sync.waiter import gather_all


async def peer_table(run: CheckRun) -> dict[str, list[Address]]:
    nodes = run.group.nodes()
    results = await gather_all(*(run.invoke(n, lambda ops: ops.peers()) for n in nodes))
    return {n.name: peers for n, peers in zip(nodes, results)}


class FullConnectivityCheck(Check):
    """Every node is connected to every other node of the group."""

    kind = CheckKind.FULL_CONNECTIVITY
    options_model = ConnectivityOptions

    async def execute(self, run: CheckRun) -> None:
        nodes = run.group.nodes()
        run.select(nodes)

        async def connected() -> bool:
            peers = await peer_table(run)
            missing = {}
            for node in nodes:
                known = set(peers[node.name])
                absent = [o.name for o in nodes if o != node and o.overlay not in known]
                if absent:
                    missing[node.name] = absent
            if missing:
                raise not_met(f"{len(missing)} node(s) not fully connected: {missing}", observed=missing)
            return True

        await run.wait(connected, "full connectivity")


class KademliaCheck(Check):
    """
    Every bin below depth has a connected peer, and every known peer at or
    beyond depth is connected.
    """

    kind = CheckKind.KADEMLIA
    options_model = ConnectivityOptions

    async def execute(self, run: CheckRun) -> None:
        nodes = run.group.nodes()
        run.select(nodes)

        async def healthy() -> bool:
            topologies = await gather_all(*(run.invoke(n, lambda ops: ops.topology()) for n in nodes))
            problems = []
            for node, topology in zip(nodes, topologies):
                for po in range(topology.depth):
                    if topology.bin(po).connected < 1:
                        problems.append(f"{node.name}: bin {po} below depth {topology.depth} has no connected peer")
                for po in range(topology.depth, MAX_PO + 1):
                    disconnected = topology.bin(po).disconnected_peers
                    if disconnected:
                        problems.append(
                            f"{node.name}: {len(disconnected)} peer(s) in bin {po} within depth not connected"
                        )
            if problems:
                raise not_met("; ".join(problems), observed=problems)
            run.details["depths"] = {n.name: t.depth for n, t in zip(nodes, topologies)}
            return True

        await run.wait(healthy, "kademlia health")


class PingPongCheck(Check):
    """Every node pings each of its peers and gets a round-trip time back."""

    kind = CheckKind.PINGPONG
    options_model = ConnectivityOptions

    async def execute(self, run: CheckRun) -> None:
        nodes = run.group.nodes()
        run.select(nodes)

        rtts: dict[str, dict[str, float]] = {}
        for node in nodes:
            peers = await run.dispatch(node, lambda ops: ops.peers(), f"peers of {node}")
            rtts[node.name] = {}
            for peer in peers:
                rtt = await run.dispatch(node, lambda ops: ops.ping(peer), f"ping {peer} from {node}")
                run.ensure(
                    rtt >= 0,
                    f"{node.name} got a negative round-trip time to {peer}",
                    observed=rtt,
                    expected=">= 0",
                )
                rtts[node.name][peer.hex()] = rtt
                run.logger.debug("%s: %s -> %s rtt %.6fs", run.name, node.name, peer, rtt)
        run.details["rtt_s"] = rtts


class PeerCountCheck(Check):
    """Every node reports at least one connected peer."""

    kind = CheckKind.PEER_COUNT
    options_model = ConnectivityOptions

    async def execute(self, run: CheckRun) -> None:
        nodes = run.group.nodes()
        run.select(nodes)

        peers = await peer_table(run)
        counts = {name: len(p) for name, p in peers.items()}
        run.details["peer_counts"] = counts
        for name, count in counts.items():
            run.logger.info("%s: node %s has %d peer(s)", run.name, name, count)
        isolated = [name for name, count in counts.items() if count < 1]
        run.ensure(not isolated, f"node(s) without peers: {', '.join(isolated)}", observed=counts, expected=">= 1 each")
