"""
Bee node connectivity.

Response models for tags, topology, balances and settlements. The async
REST client (AsyncBeeClient) lives in swarmcheck_engine.node.client.
"""

from swarmcheck_engine.node.types import (
    Balance,
    Bin,
    NodeAddresses,
    Settlement,
    Settlements,
    Tag,
    Topology,
    UploadResult,
)

__all__ = [
    "Balance",
    "Bin",
    "NodeAddresses",
    "Settlement",
    "Settlements",
    "Tag",
    "Topology",
    "UploadResult",
]
