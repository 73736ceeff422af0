"""
Binary Merkle Tree hashing used by Swarm content addressing.

The payload is zero-padded to the chunk size, cut into 32-byte segments and
reduced pairwise with Keccak-256. The content address is
keccak256(span || root).
"""

from Crypto.Hash import keccak

SEGMENT_SIZE = 32


def keccak256(*parts: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard SHA-3 variant) of the concatenated parts."""
    h = keccak.new(digest_bits=256)
    for part in parts:
        h.update(part)
    return h.digest()


def bmt_root(payload: bytes, capacity: int) -> bytes:
    """
    Root of the binary Merkle tree over payload padded to capacity bytes.

    Args:
        payload: Chunk payload (at most capacity bytes)
        capacity: Tree width in bytes; a power of two multiple of SEGMENT_SIZE
    """
    padded = payload.ljust(capacity, b"\x00")
    level = [padded[i : i + SEGMENT_SIZE] for i in range(0, capacity, SEGMENT_SIZE)]
    while len(level) > 1:
        level = [keccak256(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


def bmt_hash(span: bytes, payload: bytes, capacity: int) -> bytes:
    """Swarm chunk hash: keccak256(span || bmt_root(payload))."""
    return keccak256(span, bmt_root(payload, capacity))
