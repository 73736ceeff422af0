"""
Typed per-check options.

Options are plain pydantic models with defaults. Keys may be given in
kebab-case (as in check profile files) or snake_case. The seed is resolved
field by field: local value, then the run-wide value, then a fresh random
seed.
"""

import secrets
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _kebab(name: str) -> str:
    return name.replace("_", "-")


def random_seed() -> int:
    """Fresh non-negative 63-bit seed from the OS entropy source."""
    return secrets.randbits(63)


def resolve_seed(local: int | None, global_seed: int | None) -> int:
    """
    Resolve the seed for one check run.

    A set, non-negative local seed wins; otherwise a set, non-negative
    global seed; otherwise a random one. Zero is a valid seed.
    """
    if local is not None and local >= 0:
        return local
    if global_seed is not None and global_seed >= 0:
        return global_seed
    return random_seed()


class CheckOptions(BaseModel):
    """Options shared by every check."""

    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    node_group: str = Field(default="bee", description="Node group the check runs against")
    seed: int | None = Field(default=None, description="Workload seed; unset or negative = global/random")
    timeout: float = Field(default=600.0, gt=0, description="Budget for the whole check in seconds")
    wait_timeout: float = Field(default=60.0, gt=0, description="Budget for a single convergence wait")
    poll_interval: float = Field(default=1.0, gt=0, description="Fixed delay between polls")
    poll_jitter: float = Field(default=0.0, ge=0, description="Random extra delay added to each poll")
    retries: int = Field(default=3, ge=0, le=100, description="Retries for transient operations")
    retry_delay: float = Field(default=1.0, ge=0, description="Fixed delay between retries")


class UploadOptions(CheckOptions):
    upload_node_count: int = Field(default=1, ge=1)
    chunks_per_node: int = Field(default=1, ge=1)


class PushSyncOptions(UploadOptions):
    replication_threshold: int = Field(default=1, ge=1)


class PullSyncOptions(UploadOptions):
    replication_threshold: int = Field(default=2, ge=1)


class RetrievalOptions(UploadOptions):
    pass


class SmokeOptions(CheckOptions):
    runs: int = Field(default=1, ge=1)
    data_size: int = Field(default=16 * 1024, ge=1, description="Bytes uploaded per run")


class ChunkRepairOptions(CheckOptions):
    number_of_chunks_to_repair: int = Field(default=1, ge=1)
    recovery_prefix_bytes: int = Field(default=2, ge=1, le=32)


class StoreOptions(CheckOptions):
    store_size: int = Field(default=1000, ge=1, description="Capacity of a node's local store in chunks")
    fill_factor: float = Field(default=1.5, gt=1.0, description="Filler chunks uploaded, relative to store size")
    max_chunk_attempts: int = Field(
        default=10_000,
        ge=1,
        description="Draws allowed when looking for a chunk closest to a given node",
    )

    @property
    def filler_count(self) -> int:
        return int(self.store_size * self.fill_factor)


class LocalPinningOptions(StoreOptions):
    pass


class GCOptions(StoreOptions):
    pass


class SOCOptions(CheckOptions):
    pass


class BalancesOptions(CheckOptions):
    upload_node_count: int = Field(default=1, ge=1)
    data_size: int = Field(default=64 * 1024, ge=1)


class SettlementsOptions(BalancesOptions):
    expect_settlements: bool = True
    threshold: int = Field(default=10_000_000_000_000, ge=0, description="Payment threshold no balance may exceed")


class ConnectivityOptions(CheckOptions):
    pass


def build_options(model: type[CheckOptions], raw: dict[str, Any] | None = None) -> CheckOptions:
    """Validate raw option values into the given options model."""
    return model.model_validate(raw or {})
