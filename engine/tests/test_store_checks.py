"""
Tests for local store checks: chunk repair, local pinning and garbage collection.
"""

from typing import Any

import pytest

from swarmcheck_engine.checks.chunk_repair import ChunkRepairCheck
from swarmcheck_engine.checks.gc import GCCheck
from swarmcheck_engine.checks.local_pinning import LocalPinningCheck
from swarmcheck_engine.checks.models import FailureCondition, RunState
from swarmcheck_engine.swarm.address import Address
from tests.fixtures.fake_swarm import FakeSwarm


@pytest.fixture
def small_store() -> FakeSwarm:
    """Cluster whose nodes keep at most five unpinned chunks."""
    return FakeSwarm(4, seed=3, replication=2, store_capacity=5)


@pytest.fixture
def store_options(fast: dict[str, Any]) -> dict[str, Any]:
    return {**fast, "seed": 9, "store-size": 5, "fill-factor": 2.0}


# =============================================================================
# Chunk repair
# =============================================================================


class TestChunkRepair:
    """Tests for ChunkRepairCheck."""

    @pytest.mark.asyncio
    async def test_closest_node_gets_chunk_back(self, swarm: FakeSwarm, fast: dict[str, Any]) -> None:
        check = ChunkRepairCheck()
        options = check.new_options({**fast, "number-of-chunks-to-repair": 2})

        result = await check.run(swarm.node_group(), options)

        assert result.passed, result.message
        assert len(result.details["repaired"]) == 2
        for address_hex in result.details["repaired"]:
            address = Address.from_hex(address_hex)
            assert address in swarm.closest(address).store
            assert "remove_chunk" in swarm.closest(address).calls

    @pytest.mark.asyncio
    async def test_no_repair_times_out(self, swarm: FakeSwarm, fast: dict[str, Any]) -> None:
        swarm.repair_enabled = False
        check = ChunkRepairCheck()

        result = await check.run(swarm.node_group(), check.new_options(fast))

        assert result.condition == FailureCondition.TIMEOUT
        assert "repair of chunk" in result.message

    @pytest.mark.asyncio
    async def test_needs_three_nodes(self, fast: dict[str, Any]) -> None:
        check = ChunkRepairCheck()
        result = await check.run(FakeSwarm(2).node_group(), check.new_options(fast))
        assert result.condition == FailureCondition.CONFIGURATION
        assert result.expected == 3
        assert result.state == RunState.FAILED


# =============================================================================
# Local pinning
# =============================================================================


class TestLocalPinning:
    """Tests for LocalPinningCheck."""

    @pytest.mark.asyncio
    async def test_pinned_chunk_survives_overflow(
        self, small_store: FakeSwarm, store_options: dict[str, Any]
    ) -> None:
        check = LocalPinningCheck()

        result = await check.run(small_store.node_group(), check.new_options(store_options))

        assert result.passed, result.message
        assert result.details["fillers"] == 10
        (name,) = result.details["nodes"]
        node = small_store.node(name)
        assert len(node.store) <= 5 + len(node.pins)
        assert node.pins

    @pytest.mark.asyncio
    async def test_evicted_pin_is_an_assertion(
        self, small_store: FakeSwarm, store_options: dict[str, Any]
    ) -> None:
        small_store.evict_pinned = True
        check = LocalPinningCheck()

        result = await check.run(small_store.node_group(), check.new_options(store_options))

        assert result.condition == FailureCondition.ASSERTION
        assert "was evicted" in result.message
        assert result.observed is False

    def test_fill_factor_must_exceed_one(self) -> None:
        with pytest.raises(ValueError):
            LocalPinningCheck().new_options({"fill-factor": 1.0})


# =============================================================================
# Garbage collection
# =============================================================================


class TestGC:
    """Tests for GCCheck."""

    @pytest.mark.asyncio
    async def test_unpinned_evicted_pinned_kept(
        self, small_store: FakeSwarm, store_options: dict[str, Any]
    ) -> None:
        check = GCCheck()

        result = await check.run(small_store.node_group(), check.new_options(store_options))

        assert result.passed, result.message
        assert result.state == RunState.PASSED

    @pytest.mark.asyncio
    async def test_store_without_eviction_times_out(self, store_options: dict[str, Any]) -> None:
        swarm = FakeSwarm(4, seed=3, replication=2, store_capacity=None)
        check = GCCheck()

        result = await check.run(swarm.node_group(), check.new_options(store_options))

        assert result.condition == FailureCondition.TIMEOUT
        assert "eviction of chunk" in result.message
