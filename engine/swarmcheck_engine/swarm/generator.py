"""
Seeded workload generator.

Every value a check draws (payload bytes, payload sizes, node picks,
single-owner identifiers and keys) comes from one Generator keyed only by
the check seed, so replaying the same call sequence with the same seed
reproduces the same workload.
"""

import random

from coincurve import PrivateKey

from swarmcheck_engine.swarm.chunk import MAX_CHUNK_SIZE, SPAN_SIZE, Chunk
from swarmcheck_engine.swarm.errors import InputError, InsufficientPopulation
from swarmcheck_engine.swarm.soc import ID_SIZE

# secp256k1 group order
_CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


class Generator:
    """
    Deterministic pseudo-random source.

    Not shared between checks: each check run owns its own instance.
    """

    def __init__(self, seed: int) -> None:
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def random_bytes(self, n: int) -> bytes:
        """Exactly n pseudo-random bytes; advances the generator."""
        if n < 0:
            raise InputError(f"cannot generate a negative number of bytes: {n}")
        return self._rng.randbytes(n)

    def random_chunk(self) -> Chunk:
        """Chunk whose payload size is drawn from [0, MAX_CHUNK_SIZE - SPAN_SIZE)."""
        size = self._rng.randrange(MAX_CHUNK_SIZE - SPAN_SIZE)
        return Chunk(self.random_bytes(size))

    def random_chunks(self, count: int) -> list[Chunk]:
        return [self.random_chunk() for _ in range(count)]

    def pick(self, n: int) -> int:
        """Uniform index in [0, n)."""
        if n < 1:
            raise InsufficientPopulation(n, exclusive=False)
        return self._rng.randrange(n)

    def pick_index(self, n: int, excluding: int) -> int:
        """
        Uniform index in [0, n) other than excluding, in a single draw.

        Raises:
            InsufficientPopulation: n < 2, so no distinct index exists
        """
        if n < 2:
            raise InsufficientPopulation(n)
        if not 0 <= excluding < n:
            raise InputError(f"excluded index {excluding} is outside [0, {n})")
        pick = self._rng.randrange(n - 1)
        return pick + 1 if pick >= excluding else pick

    def random_id(self) -> bytes:
        """Identifier for a single-owner chunk."""
        return self.random_bytes(ID_SIZE)

    def private_key(self) -> PrivateKey:
        """secp256k1 private key derived from the generator stream."""
        while True:
            secret = self.random_bytes(32)
            if 0 < int.from_bytes(secret, "big") < _CURVE_ORDER:
                return PrivateKey(secret)
