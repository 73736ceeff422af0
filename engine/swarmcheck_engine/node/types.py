"""
Pydantic models for Bee node API responses.

Numeric counters are accepted either as JSON numbers or as decimal strings,
since node versions differ in how they encode big integers.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from swarmcheck_engine.swarm.address import Address

_GO_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_GO_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_go_duration(value: str) -> float:
    """
    Parse a Go duration string (e.g. "1.5ms", "1m2.3s") into seconds.

    Raises:
        ValueError: value is not a valid duration
    """
    value = value.strip()
    if value == "0":
        return 0.0
    parts = _GO_DURATION_PART.findall(value)
    if not parts or "".join(n + u for n, u in parts) != value:
        raise ValueError(f"invalid duration: {value!r}")
    return sum(float(number) * _GO_DURATION_UNITS[unit] for number, unit in parts)


class _NodeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UploadResult(_NodeModel):
    """Reference returned by an upload, plus the tag it was tracked under."""

    reference: str
    tag_uid: int | None = None

    @property
    def address(self) -> Address:
        return Address.from_hex(self.reference)


class Tag(_NodeModel):
    """Server-side progress counters for an upload."""

    uid: int
    total: int = 0
    split: int = 0
    seen: int = 0
    stored: int = 0
    sent: int = 0
    synced: int = 0

    @property
    def outstanding(self) -> int:
        """Chunks still to be synced (already-seen chunks need no sync)."""
        return max(self.total - self.synced - self.seen, 0)

    @property
    def is_synced(self) -> bool:
        return self.total > 0 and self.split >= self.total and self.outstanding == 0


class NodeAddresses(_NodeModel):
    """Addresses reported by a node's debug API."""

    overlay: str
    underlay: list[str] = Field(default_factory=list)
    ethereum: str | None = None
    public_key: str | None = Field(default=None, alias="publicKey")
    pss_public_key: str | None = Field(default=None, alias="pssPublicKey")

    @property
    def overlay_address(self) -> Address:
        return Address.from_hex(self.overlay)


def _peer_address(value: Any) -> str:
    if isinstance(value, dict):
        return str(value["address"])
    return str(value)


class Bin(_NodeModel):
    """One Kademlia bin of a node's topology."""

    population: int = 0
    connected: int = 0
    connected_peers: list[str] = Field(default_factory=list, alias="connectedPeers")
    disconnected_peers: list[str] = Field(default_factory=list, alias="disconnectedPeers")

    @field_validator("connected_peers", "disconnected_peers", mode="before")
    @classmethod
    def normalize_peers(cls, v: Any) -> list[str]:
        if v is None:
            return []
        return [_peer_address(p) for p in v]


class Topology(_NodeModel):
    """Kademlia table summary of a node."""

    base_addr: str = Field(..., alias="baseAddr")
    population: int = 0
    connected: int = 0
    depth: int = 0
    bins: dict[str, Bin] = Field(default_factory=dict)

    def bin(self, po: int) -> Bin:
        return self.bins.get(f"bin_{po}", Bin())


class Settlement(_NodeModel):
    """Cumulative amounts settled with one peer."""

    peer: str
    received: int = 0
    sent: int = 0


class Settlements(_NodeModel):
    """Settlement totals of a node."""

    total_received: int = Field(default=0, alias="totalReceived")
    total_sent: int = Field(default=0, alias="totalSent")
    settlements: list[Settlement] = Field(default_factory=list)

    def with_peer(self, peer: Address) -> Settlement:
        for s in self.settlements:
            if Address.from_hex(s.peer) == peer:
                return s
        return Settlement(peer=peer.hex())


class Balance(_NodeModel):
    """Accounting balance with one peer (positive: the peer owes us)."""

    peer: str
    balance: int


class Balances(_NodeModel):
    balances: list[Balance] = Field(default_factory=list)

    def as_dict(self) -> dict[Address, int]:
        return {Address.from_hex(b.peer): b.balance for b in self.balances}


class Pong(_NodeModel):
    rtt: str

    @property
    def rtt_seconds(self) -> float:
        return parse_go_duration(self.rtt)
