"""
Node group view.

A NodeGroup is a read-only snapshot of named nodes, ordered by overlay
address, plus a dispatcher that runs one operation against one node under
a deadline. It keeps no cluster state and is safe to share between
concurrently running checks.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TypeVar

from swarmcheck_engine.interfaces.node_operations import NodeOperations
from swarmcheck_engine.swarm.address import Address, closest_node

T = TypeVar("T")


class TopologyError(Exception):
    """Raised when a node group cannot be resolved or used (fatal for a check)."""

    pass


@dataclass(frozen=True)
class NodeIdentity:
    """A node's stable name and its overlay address in the distance space."""

    name: str
    overlay: Address

    def __str__(self) -> str:
        return f"{self.name} ({self.overlay.hex()[:8]})"


class NodeGroup:
    """
    Ordered, immutable view over the nodes of one group.
    """

    def __init__(
        self,
        name: str,
        members: Iterable[tuple[NodeIdentity, NodeOperations]],
        call_timeout: float | None = None,
    ) -> None:
        """
        Args:
            name: Group name
            members: Node identities with the operations handle of each node
            call_timeout: Default deadline in seconds for a single invoke
        """
        ordered = sorted(members, key=lambda m: m[0].overlay)
        if not ordered:
            raise TopologyError(f"node group {name} has no nodes")

        self.name = name
        self._nodes = tuple(identity for identity, _ in ordered)
        self._operations = {identity.name: ops for identity, ops in ordered}
        self._by_overlay = {identity.overlay: identity for identity in self._nodes}
        self._call_timeout = call_timeout

        if len(self._operations) != len(self._nodes):
            raise TopologyError(f"node group {name} has duplicate node names")
        if len(self._by_overlay) != len(self._nodes):
            raise TopologyError(f"node group {name} has duplicate overlay addresses")

    def nodes(self) -> tuple[NodeIdentity, ...]:
        """Nodes sorted by overlay ascending."""
        return self._nodes

    def __iter__(self) -> Iterator[NodeIdentity]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def overlays(self) -> tuple[Address, ...]:
        return tuple(n.overlay for n in self._nodes)

    def node(self, name: str) -> NodeIdentity:
        for n in self._nodes:
            if n.name == name:
                return n
        raise TopologyError(f"node {name} is not in group {self.name}")

    def by_overlay(self, overlay: Address) -> NodeIdentity | None:
        return self._by_overlay.get(overlay)

    def closest(self, address: Address, among: Iterable[NodeIdentity] | None = None) -> NodeIdentity:
        """Node whose overlay is closest to address (ties: earliest in order)."""
        pool = tuple(among) if among is not None else self._nodes
        overlay = closest_node(address, (n.overlay for n in pool))
        return self._by_overlay[overlay]

    def operations(self, node: NodeIdentity) -> NodeOperations:
        try:
            return self._operations[node.name]
        except KeyError:
            raise TopologyError(f"node {node.name} is not in group {self.name}") from None

    async def invoke(
        self,
        node: NodeIdentity,
        operation: Callable[[NodeOperations], Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        """
        Run one operation against a node under a deadline.

        The deadline nests inside any deadline of the caller, so the
        effective limit is whichever expires first. Cancelling the caller
        cancels the in-flight call.

        Raises:
            TimeoutError: The deadline expired
        """
        ops = self.operations(node)
        deadline = timeout if timeout is not None else self._call_timeout
        if deadline is None:
            return await operation(ops)
        async with asyncio.timeout(deadline):
            return await operation(ops)

    async def close(self) -> None:
        for ops in self._operations.values():
            await ops.close()
