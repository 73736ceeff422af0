"""
Content-addressed chunks.

A chunk is a bounded payload prefixed on the wire with its span (payload
length as an 8-byte little-endian integer). Its address is the BMT hash of
span and payload, computed exactly as the storage network computes it.
"""

from dataclasses import dataclass, field

from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.swarm.bmt import bmt_hash
from swarmcheck_engine.swarm.errors import InputError, PayloadTooLarge

MAX_CHUNK_SIZE = 4096
SPAN_SIZE = 8


def encode_span(length: int) -> bytes:
    """Encode a payload length as the 8-byte little-endian span prefix."""
    return length.to_bytes(SPAN_SIZE, "little")


def decode_span(span: bytes) -> int:
    """Decode an 8-byte little-endian span prefix."""
    return int.from_bytes(span[:SPAN_SIZE], "little")


def content_address(payload: bytes) -> Address:
    """
    Compute the content address of a payload.

    Raises:
        PayloadTooLarge: payload is longer than MAX_CHUNK_SIZE
    """
    if len(payload) > MAX_CHUNK_SIZE:
        raise PayloadTooLarge(len(payload), MAX_CHUNK_SIZE)
    return Address(bmt_hash(encode_span(len(payload)), payload, MAX_CHUNK_SIZE))


@dataclass(frozen=True)
class Chunk:
    """
    Immutable content-addressed chunk.

    The address is derived from the payload at construction and never
    recomputed.
    """

    payload: bytes
    address: Address = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", bytes(self.payload))
        object.__setattr__(self, "address", content_address(self.payload))

    @classmethod
    def from_data(cls, data: bytes) -> "Chunk":
        """
        Build a chunk from its wire form (span || payload).

        Raises:
            InputError: data is shorter than a span or the span disagrees
                with the payload length
        """
        if len(data) < SPAN_SIZE:
            raise InputError(f"chunk data of {len(data)} bytes is shorter than its span")
        span = decode_span(data[:SPAN_SIZE])
        payload = data[SPAN_SIZE:]
        if span != len(payload):
            raise InputError(f"span {span} does not match payload length {len(payload)}")
        return cls(payload)

    @property
    def span(self) -> int:
        return len(self.payload)

    @property
    def span_bytes(self) -> bytes:
        return encode_span(len(self.payload))

    @property
    def data(self) -> bytes:
        """Wire form: span || payload."""
        return self.span_bytes + self.payload

    @property
    def size(self) -> int:
        return len(self.payload) + SPAN_SIZE


def make_chunk(payload: bytes) -> Chunk:
    """Create a chunk from explicit bytes."""
    return Chunk(payload)
