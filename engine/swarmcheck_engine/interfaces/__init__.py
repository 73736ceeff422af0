"""
Interfaces (abstract base classes) for the swarmcheck engine.

These define the contracts that must be implemented by:
- NodeOperations: Network operations against a single node
- ClusterTopology: Node group resolution
- MetricsSink: Optional reporting of check outcomes
"""

from swarmcheck_engine.interfaces.cluster_topology import ClusterTopology
from swarmcheck_engine.interfaces.metrics_sink import MetricsSink
from swarmcheck_engine.interfaces.node_operations import NodeOperations

__all__ = [
    "ClusterTopology",
    "MetricsSink",
    "NodeOperations",
]
