"""
Tests for seed resolution and typed check options.
"""

import pytest
from pydantic import ValidationError

from swarmcheck_engine.checks.options import (
    CheckOptions,
    PushSyncOptions,
    SettlementsOptions,
    StoreOptions,
    build_options,
    random_seed,
    resolve_seed,
)


class TestResolveSeed:
    """Seed precedence: local, then global, then random."""

    def test_local_wins(self) -> None:
        assert resolve_seed(5, 9) == 5

    def test_global_when_local_unset(self) -> None:
        assert resolve_seed(None, 9) == 9

    def test_global_when_local_negative(self) -> None:
        assert resolve_seed(-1, 9) == 9

    def test_zero_local_is_valid(self) -> None:
        assert resolve_seed(0, 9) == 0

    def test_zero_global_is_valid(self) -> None:
        assert resolve_seed(None, 0) == 0

    def test_random_when_both_unset(self) -> None:
        seeds = {resolve_seed(None, None) for _ in range(5)}
        assert all(s >= 0 for s in seeds)
        assert len(seeds) > 1

    def test_random_when_both_negative(self) -> None:
        assert resolve_seed(-3, -4) >= 0

    def test_random_seed_fits_63_bits(self) -> None:
        assert all(0 <= random_seed() < 2**63 for _ in range(20))


class TestCheckOptions:
    """Tests for options models."""

    def test_defaults(self) -> None:
        options = PushSyncOptions()
        assert options.node_group == "bee"
        assert options.seed is None
        assert options.replication_threshold == 1
        assert options.upload_node_count == 1

    def test_kebab_case_keys(self) -> None:
        options = build_options(PushSyncOptions, {"upload-node-count": 3, "chunks-per-node": 2})
        assert options.upload_node_count == 3
        assert options.chunks_per_node == 2

    def test_snake_case_keys(self) -> None:
        options = build_options(PushSyncOptions, {"upload_node_count": 2})
        assert options.upload_node_count == 2

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            build_options(CheckOptions, {"no-such-option": 1})

    def test_range_validated(self) -> None:
        with pytest.raises(ValidationError):
            build_options(CheckOptions, {"timeout": 0})

    def test_frozen(self) -> None:
        options = CheckOptions()
        with pytest.raises(ValidationError):
            options.seed = 3  # type: ignore[misc]

    def test_filler_count(self) -> None:
        options = StoreOptions(store_size=10, fill_factor=1.5)
        assert options.filler_count == 15

    def test_settlement_defaults(self) -> None:
        options = SettlementsOptions()
        assert options.expect_settlements is True
        assert options.threshold > 0
