"""
Check models.

Check runs move through
SEEDED -> NODES_SELECTED -> DISPATCHED -> (WAITING)* -> ASSERTED -> PASSED,
or jump to FAILED from any non-terminal state.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CheckKind(str, Enum):
    """Every check the engine can run."""

    PUSHSYNC = "pushsync"
    PULLSYNC = "pullsync"
    RETRIEVAL = "retrieval"
    SMOKE = "smoke"
    CHUNK_REPAIR = "chunk-repair"
    LOCAL_PINNING = "local-pinning"
    GC = "gc"
    SOC = "soc"
    BALANCES = "balances"
    SETTLEMENTS = "settlements"
    FULL_CONNECTIVITY = "full-connectivity"
    KADEMLIA = "kademlia"
    PINGPONG = "pingpong"
    PEER_COUNT = "peer-count"


class RunState(str, Enum):
    """
    Check run lifecycle.

    Valid transitions:
    - SEEDED -> NODES_SELECTED
    - NODES_SELECTED -> DISPATCHED | WAITING | ASSERTED
    - DISPATCHED -> DISPATCHED | WAITING | ASSERTED
    - WAITING -> WAITING | DISPATCHED | ASSERTED
    - ASSERTED -> PASSED
    - any non-terminal state -> FAILED

    Terminal states: PASSED, FAILED
    """

    SEEDED = "SEEDED"
    NODES_SELECTED = "NODES_SELECTED"
    DISPATCHED = "DISPATCHED"
    WAITING = "WAITING"
    ASSERTED = "ASSERTED"
    PASSED = "PASSED"
    FAILED = "FAILED"


VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.SEEDED: {RunState.NODES_SELECTED},
    RunState.NODES_SELECTED: {RunState.DISPATCHED, RunState.WAITING, RunState.ASSERTED},
    RunState.DISPATCHED: {RunState.DISPATCHED, RunState.WAITING, RunState.ASSERTED},
    RunState.WAITING: {RunState.WAITING, RunState.DISPATCHED, RunState.ASSERTED},
    RunState.ASSERTED: {RunState.PASSED},
    RunState.PASSED: set(),
    RunState.FAILED: set(),
}


class FailureCondition(str, Enum):
    """Why a check run failed."""

    ASSERTION = "ASSERTION"  # Invariant violated (data mismatch, too few replicas)
    TIMEOUT = "TIMEOUT"  # Convergence not reached within the wait or check budget
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"  # Operation kept failing
    CONFIGURATION = "CONFIGURATION"  # Invalid input (too few nodes, oversized payload)
    ENVIRONMENT = "ENVIRONMENT"  # Topology empty or unreachable
    NODE_ERROR = "NODE_ERROR"  # Non-retryable node API error


class CheckFailure(Exception):
    """
    Raised inside a check to end the run as FAILED.

    Carries the concrete observed and expected values.
    """

    def __init__(
        self,
        condition: FailureCondition,
        message: str,
        *,
        observed: Any = None,
        expected: Any = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.condition = condition
        self.message = message
        self.observed = observed
        self.expected = expected
        self.details = details or {}


class InvalidTransition(Exception):
    """Raised when a check run attempts an invalid state transition."""

    pass


class CheckResult(BaseModel):
    """Outcome of one check run."""

    name: str
    kind: CheckKind
    run_id: str
    seed: int | None = None
    node_group: str | None = None
    passed: bool
    state: RunState
    condition: FailureCondition | None = None
    message: str = ""
    observed: Any = None
    expected: Any = None
    details: dict[str, Any] = Field(default_factory=dict)
    started_at: datetime
    duration_s: float = 0.0

    def summary(self) -> str:
        status = "PASSED" if self.passed else f"FAILED ({self.condition.value if self.condition else '?'})"
        line = f"{self.name}: {status} in {self.duration_s:.2f}s"
        if self.seed is not None:
            line += f" [seed {self.seed}]"
        if self.message:
            line += f" - {self.message}"
        return line
