"""
Cluster topology: node identities, node group snapshots and their providers.
"""

from swarmcheck_engine.cluster.node_group import NodeGroup, NodeIdentity, TopologyError
from swarmcheck_engine.cluster.topology import NodeEndpoint, StaticClusterTopology

__all__ = [
    "NodeEndpoint",
    "NodeGroup",
    "NodeIdentity",
    "StaticClusterTopology",
    "TopologyError",
]
