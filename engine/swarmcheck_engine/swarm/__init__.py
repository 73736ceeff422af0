"""
Swarm primitives: content addressing, XOR distance, and seeded workloads.

These are pure, in-process computations; nothing here talks to a node.
"""

from swarmcheck_engine.swarm.address import (
    ADDRESS_SIZE,
    Address,
    closest_node,
    distance,
    distance_cmp,
    proximity,
)
from swarmcheck_engine.swarm.chunk import (
    MAX_CHUNK_SIZE,
    SPAN_SIZE,
    Chunk,
    content_address,
    make_chunk,
)
from swarmcheck_engine.swarm.errors import (
    AddressLengthMismatch,
    EmptyCandidateSet,
    InputError,
    InsufficientPopulation,
    PayloadTooLarge,
)
from swarmcheck_engine.swarm.generator import Generator
from swarmcheck_engine.swarm.soc import SingleOwnerChunk, sign_chunk

__all__ = [
    "ADDRESS_SIZE",
    "MAX_CHUNK_SIZE",
    "SPAN_SIZE",
    "Address",
    "AddressLengthMismatch",
    "Chunk",
    "EmptyCandidateSet",
    "Generator",
    "InputError",
    "InsufficientPopulation",
    "PayloadTooLarge",
    "SingleOwnerChunk",
    "closest_node",
    "content_address",
    "distance",
    "distance_cmp",
    "make_chunk",
    "proximity",
    "sign_chunk",
]
