"""
Single-owner chunks.

A single-owner chunk wraps a content-addressed chunk with an identifier and
a signature. Its address is keccak256(id || owner), where owner is the
Ethereum address of the signing key, so it does not depend on the content.

Wire form: id (32) || signature (65, r || s || v) || span || payload.
"""

from dataclasses import dataclass, field

from coincurve import PrivateKey, PublicKey

from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.swarm.bmt import keccak256
from swarmcheck_engine.swarm.chunk import Chunk
from swarmcheck_engine.swarm.errors import InputError

ID_SIZE = 32
SIGNATURE_SIZE = 65
OWNER_SIZE = 20


def ethereum_address(public_key: PublicKey) -> bytes:
    """Ethereum address (last 20 bytes of keccak256 of the uncompressed key)."""
    uncompressed = public_key.format(compressed=False)
    return keccak256(uncompressed[1:])[-OWNER_SIZE:]


def _prefixed_hash(data: bytes) -> bytes:
    prefix = b"\x19Ethereum Signed Message:\n" + str(len(data)).encode()
    return keccak256(prefix, data)


def sign(private_key: PrivateKey, data: bytes) -> bytes:
    """
    Sign data the way Swarm nodes do: Ethereum message prefix, Keccak-256,
    recoverable secp256k1 signature laid out as r || s || v with v in {27, 28}.
    """
    signature = private_key.sign_recoverable(_prefixed_hash(data), hasher=None)
    return signature[:64] + bytes([signature[64] + 27])


def recover_owner(signature: bytes, data: bytes) -> bytes:
    """Recover the Ethereum address that produced signature over data."""
    if len(signature) != SIGNATURE_SIZE:
        raise InputError(f"signature must be {SIGNATURE_SIZE} bytes, got {len(signature)}")
    compact = signature[:64] + bytes([signature[64] - 27])
    public_key = PublicKey.from_signature_and_message(compact, _prefixed_hash(data), hasher=None)
    return ethereum_address(public_key)


@dataclass(frozen=True)
class SingleOwnerChunk:
    """Signed chunk bound to an owner and identifier."""

    id: bytes
    signature: bytes
    owner: bytes
    chunk: Chunk
    address: Address = field(init=False)

    def __post_init__(self) -> None:
        if len(self.id) != ID_SIZE:
            raise InputError(f"single-owner chunk id must be {ID_SIZE} bytes, got {len(self.id)}")
        if len(self.owner) != OWNER_SIZE:
            raise InputError(f"owner must be {OWNER_SIZE} bytes, got {len(self.owner)}")
        object.__setattr__(self, "address", Address(keccak256(self.id, self.owner)))

    @property
    def data(self) -> bytes:
        return self.id + self.signature + self.chunk.data

    def signed_digest(self) -> bytes:
        """The digest the owner signs: keccak256(id || content address)."""
        return keccak256(self.id, self.chunk.address.data)

    def verify(self) -> bool:
        """Whether the signature recovers to the declared owner."""
        try:
            return recover_owner(self.signature, self.signed_digest()) == self.owner
        except (InputError, ValueError):
            return False


def sign_chunk(chunk_id: bytes, chunk: Chunk, private_key: PrivateKey) -> SingleOwnerChunk:
    """Sign chunk under chunk_id with private_key."""
    owner = ethereum_address(private_key.public_key)
    digest = keccak256(chunk_id, chunk.address.data)
    return SingleOwnerChunk(
        id=chunk_id,
        signature=sign(private_key, digest),
        owner=owner,
        chunk=chunk,
    )
