"""
Swarm overlay addresses and the XOR distance metric.

Distance is only meaningful relative to a reference address: there is no
global ordering of nodes, only an ordering per point being measured against.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from swarmcheck_engine.swarm.errors import AddressLengthMismatch, EmptyCandidateSet

ADDRESS_SIZE = 32
MAX_PO = 31


@dataclass(frozen=True, order=True)
class Address:
    """
    Immutable byte address (chunk reference or node overlay).

    Ordering is plain byte order, which for equal-length addresses is the
    same as big-endian integer order.
    """

    data: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_hex(cls, value: str) -> "Address":
        """Parse a hex address, with or without a 0x prefix."""
        value = value.strip()
        if value.startswith(("0x", "0X")):
            value = value[2:]
        return cls(bytes.fromhex(value))

    def hex(self) -> str:
        return self.data.hex()

    def __str__(self) -> str:
        return self.data.hex()

    def __len__(self) -> int:
        return len(self.data)


def _check_lengths(*addresses: Address) -> None:
    first = len(addresses[0])
    for other in addresses[1:]:
        if len(other) != first:
            raise AddressLengthMismatch(first, len(other))


def distance(reference: Address, address: Address) -> int:
    """XOR distance between two addresses as a big-endian integer."""
    _check_lengths(reference, address)
    return int.from_bytes(reference.data, "big") ^ int.from_bytes(address.data, "big")


def distance_cmp(reference: Address, a: Address, b: Address) -> int:
    """
    Compare the distances of a and b to reference.

    Returns:
        1 if a is closer, -1 if b is closer, 0 if they are equidistant
    """
    _check_lengths(reference, a, b)
    da = distance(reference, a)
    db = distance(reference, b)
    if da < db:
        return 1
    if da > db:
        return -1
    return 0


def closest_node(reference: Address, candidates: Iterable[Address]) -> Address:
    """
    Return the candidate closest to reference by XOR distance.

    Ties resolve to the candidate that comes first in input order, so the
    result is reproducible for a given candidate sequence.

    Raises:
        EmptyCandidateSet: no candidates were given
        AddressLengthMismatch: a candidate's length differs from reference
    """
    pool = tuple(candidates)
    if not pool:
        raise EmptyCandidateSet("closest node requires at least one candidate")

    closest = pool[0]
    best = distance(reference, closest)
    for candidate in pool[1:]:
        d = distance(reference, candidate)
        # strict comparison keeps the earlier candidate on ties
        if d < best:
            closest, best = candidate, d
    return closest


def proximity(a: Address, b: Address) -> int:
    """
    Proximity order: number of leading bits a and b share, capped at MAX_PO.
    """
    _check_lengths(a, b)
    for i, (x, y) in enumerate(zip(a.data, b.data)):
        diff = x ^ y
        if diff:
            po = i * 8 + (8 - diff.bit_length())
            return min(po, MAX_PO)
    return MAX_PO
