"""
Synchronization helpers that turn eventual consistency into pass/fail.
"""

from swarmcheck_engine.sync.waiter import (
    ConditionNotMet,
    RetriesExhausted,
    WaitResult,
    gather_all,
    retry,
    wait_until,
)

__all__ = [
    "ConditionNotMet",
    "RetriesExhausted",
    "WaitResult",
    "gather_all",
    "retry",
    "wait_until",
]
