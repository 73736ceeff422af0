"""
Swarmcheck Engine

A verification driver for running Bee (Swarm) clusters:
- Content addressing and XOR-distance node selection identical to the network's
- Seeded, reproducible workloads
- Bounded waits for eventually consistent cluster state
- Push/pull sync, retrieval, repair, pinning, GC, accounting and connectivity checks
"""

__version__ = "0.1.0"
__author__ = "Swarmcheck Development Team"

from swarmcheck_engine.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
