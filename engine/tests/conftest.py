"""
Pytest configuration and shared fixtures.
"""

import os
from collections.abc import Generator
from typing import Any

import pytest

from swarmcheck_engine.cluster.node_group import NodeGroup
from swarmcheck_engine.config import get_settings
from tests.fixtures.fake_swarm import FakeSwarm

# Set test environment variables before importing app modules
os.environ.setdefault("SWARMCHECK_ENV", "development")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Ensure no local .env or shell settings leak into tests."""
    for var in list(os.environ):
        if var.startswith("SWARMCHECK_") and var != "SWARMCHECK_ENV":
            monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fast() -> dict[str, Any]:
    """Options that keep waits and retries short."""
    return {
        "wait_timeout": 0.5,
        "poll_interval": 0.01,
        "retries": 1,
        "retry_delay": 0.0,
        "timeout": 10.0,
    }


@pytest.fixture
def swarm() -> FakeSwarm:
    """Four-node cluster replicating each chunk to its two closest nodes."""
    return FakeSwarm(4, seed=1, replication=2)


@pytest.fixture
def group(swarm: FakeSwarm) -> NodeGroup:
    return swarm.node_group("bee")
