"""
ClusterTopology interface.

Resolves a named node group to a read-only snapshot. How nodes are
provisioned or discovered is up to the implementation.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from swarmcheck_engine.cluster.node_group import NodeGroup


class ClusterTopology(ABC):
    """Abstract provider of node group snapshots."""

    @abstractmethod
    async def node_group(self, name: str) -> "NodeGroup":
        """
        Resolve a node group.

        Args:
            name: Node group name (e.g., "bee")

        Returns:
            Snapshot of the group, ordered by overlay address.

        Raises:
            TopologyError: The group is empty, unknown, or a node is unreachable.
        """
        pass

    async def close(self) -> None:
        """Release resources held by resolved groups."""
        return None
