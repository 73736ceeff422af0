"""
Tests for single-owner chunk signing and addressing.
"""

import pytest
from coincurve import PrivateKey

from swarmcheck_engine.swarm.bmt import keccak256
from swarmcheck_engine.swarm.chunk import make_chunk
from swarmcheck_engine.swarm.errors import InputError
from swarmcheck_engine.swarm.soc import (
    ID_SIZE,
    SIGNATURE_SIZE,
    SingleOwnerChunk,
    ethereum_address,
    recover_owner,
    sign,
    sign_chunk,
)


@pytest.fixture
def key() -> PrivateKey:
    return PrivateKey((1).to_bytes(32, "big"))


class TestEthereumAddress:
    """Tests for owner derivation."""

    def test_known_vector(self, key: PrivateKey) -> None:
        # the address of private key 1 is a well-known Ethereum test vector
        assert ethereum_address(key.public_key).hex() == "7e5f4552091a69125d5dfcb7b8c2659029395bdf"

    def test_sign_and_recover(self, key: PrivateKey) -> None:
        digest = keccak256(b"payload")
        signature = sign(key, digest)
        assert len(signature) == SIGNATURE_SIZE
        assert signature[64] in (27, 28)
        assert recover_owner(signature, digest) == ethereum_address(key.public_key)

    def test_recover_rejects_short_signature(self) -> None:
        with pytest.raises(InputError):
            recover_owner(b"\x00" * 10, b"data")


class TestSingleOwnerChunk:
    """Tests for SingleOwnerChunk."""

    def test_address_is_id_and_owner(self, key: PrivateKey) -> None:
        chunk_id = bytes(range(ID_SIZE))
        soc = sign_chunk(chunk_id, make_chunk(b"Hello Swarm :)"), key)
        assert soc.address.data == keccak256(chunk_id, soc.owner)

    def test_address_does_not_depend_on_content(self, key: PrivateKey) -> None:
        chunk_id = bytes(ID_SIZE)
        a = sign_chunk(chunk_id, make_chunk(b"one"), key)
        b = sign_chunk(chunk_id, make_chunk(b"two"), key)
        assert a.address == b.address
        assert a.data != b.data

    def test_wire_form(self, key: PrivateKey) -> None:
        chunk = make_chunk(b"content")
        soc = sign_chunk(bytes(ID_SIZE), chunk, key)
        assert soc.data[:ID_SIZE] == soc.id
        assert soc.data[ID_SIZE : ID_SIZE + SIGNATURE_SIZE] == soc.signature
        assert soc.data[ID_SIZE + SIGNATURE_SIZE :] == chunk.data

    def test_verify(self, key: PrivateKey) -> None:
        soc = sign_chunk(bytes(ID_SIZE), make_chunk(b"content"), key)
        assert soc.verify()

    def test_tampered_content_fails_verification(self, key: PrivateKey) -> None:
        soc = sign_chunk(bytes(ID_SIZE), make_chunk(b"content"), key)
        forged = SingleOwnerChunk(
            id=soc.id, signature=soc.signature, owner=soc.owner, chunk=make_chunk(b"other")
        )
        assert not forged.verify()

    def test_rejects_bad_id(self, key: PrivateKey) -> None:
        with pytest.raises(InputError):
            sign_chunk(b"short", make_chunk(b"content"), key)
