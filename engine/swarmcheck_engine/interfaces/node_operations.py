"""
NodeOperations interface.

Defines the contract every check uses to reach a node. Checks never build
transport details themselves; they receive one NodeOperations per node.
"""

from abc import ABC, abstractmethod

from swarmcheck_engine.node.types import NodeAddresses, Settlements, Tag, Topology, UploadResult
from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.swarm.chunk import Chunk
from swarmcheck_engine.swarm.soc import SingleOwnerChunk


class NodeOperations(ABC):
    """
    Abstract base class for the network operations of a single node.

    Implementations hold no cluster state: every call goes to the node.
    """

    # =========================================================================
    # Content
    # =========================================================================

    @abstractmethod
    async def upload_chunk(
        self, chunk: Chunk, *, pin: bool = False, tag: int | None = None
    ) -> UploadResult:
        """
        Upload a single chunk.

        Args:
            chunk: Chunk to upload
            pin: Pin the chunk locally on the receiving node
            tag: Tag UID to track sync progress under

        Returns:
            Reference and tag of the upload.
        """
        pass

    @abstractmethod
    async def download_chunk(
        self, address: Address, *, recovery_targets: str | None = None
    ) -> bytes:
        """
        Download a chunk's wire data (span || payload).

        Args:
            address: Chunk address
            recovery_targets: Overlay prefixes to ask for repair if the chunk is missing
        """
        pass

    @abstractmethod
    async def upload_bytes(
        self, data: bytes, *, pin: bool = False, tag: int | None = None
    ) -> UploadResult:
        """Upload arbitrary length data, split into chunks by the node."""
        pass

    @abstractmethod
    async def download_bytes(self, reference: Address) -> bytes:
        """Download data previously uploaded with upload_bytes."""
        pass

    @abstractmethod
    async def upload_soc(self, soc: SingleOwnerChunk) -> UploadResult:
        """Upload a signed single-owner chunk."""
        pass

    # =========================================================================
    # Local store (debug API)
    # =========================================================================

    @abstractmethod
    async def has_chunk(self, address: Address) -> bool:
        """Whether the node's local store holds the chunk."""
        pass

    @abstractmethod
    async def remove_chunk(self, address: Address) -> None:
        """Delete a chunk from the node's local store."""
        pass

    # =========================================================================
    # Tags and pinning
    # =========================================================================

    @abstractmethod
    async def create_tag(self) -> Tag:
        """Create a new upload tag."""
        pass

    @abstractmethod
    async def get_tag(self, uid: int) -> Tag:
        """Get the current counters of a tag."""
        pass

    @abstractmethod
    async def pin_chunk(self, address: Address) -> None:
        """Pin a chunk so it is never garbage collected."""
        pass

    @abstractmethod
    async def unpin_chunk(self, address: Address) -> None:
        """Remove a chunk pin."""
        pass

    @abstractmethod
    async def is_pinned(self, address: Address) -> bool:
        """Whether the chunk is pinned on this node."""
        pass

    # =========================================================================
    # Node state (debug API)
    # =========================================================================

    @abstractmethod
    async def addresses(self) -> NodeAddresses:
        """Overlay and underlay addresses of the node."""
        pass

    @abstractmethod
    async def peers(self) -> list[Address]:
        """Overlays of currently connected peers."""
        pass

    @abstractmethod
    async def topology(self) -> Topology:
        """Kademlia table summary."""
        pass

    @abstractmethod
    async def balances(self) -> dict[Address, int]:
        """Accounting balance per peer."""
        pass

    @abstractmethod
    async def settlements(self) -> Settlements:
        """Settlement totals per peer."""
        pass

    @abstractmethod
    async def ping(self, peer: Address) -> float:
        """Ping a peer and return the round-trip time in seconds."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        return None
