"""
Checks: scenarios composed from addressing, the seeded generator and the
sync waiter, run against a node group.
"""

from swarmcheck_engine.checks.base import Check, CheckRun
from swarmcheck_engine.checks.models import (
    CheckFailure,
    CheckKind,
    CheckResult,
    FailureCondition,
    RunState,
)
from swarmcheck_engine.checks.options import CheckOptions, resolve_seed
from swarmcheck_engine.checks.profiles import CheckProfile, ProfileError, load_profiles
from swarmcheck_engine.checks.registry import CHECKS, UnknownCheckError, new_check

__all__ = [
    "CHECKS",
    "Check",
    "CheckFailure",
    "CheckKind",
    "CheckOptions",
    "CheckProfile",
    "CheckResult",
    "CheckRun",
    "FailureCondition",
    "ProfileError",
    "RunState",
    "UnknownCheckError",
    "load_profiles",
    "new_check",
    "resolve_seed",
]
