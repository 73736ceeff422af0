"""
Check registry: the fixed mapping of check kind to implementation.
"""

from logging import Logger

from swarmcheck_engine.checks.balances import BalancesCheck
from swarmcheck_engine.checks.base import Check
from swarmcheck_engine.checks.chunk_repair import ChunkRepairCheck
from swarmcheck_engine.checks.connectivity import (
    FullConnectivityCheck,
    KademliaCheck,
    PeerCountCheck,
    PingPongCheck,
)
from swarmcheck_engine.checks.gc import GCCheck
from swarmcheck_engine.checks.local_pinning import LocalPinningCheck
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.pullsync import PullSyncCheck
from swarmcheck_engine.checks.pushsync import PushSyncCheck
from swarmcheck_engine.checks.retrieval import RetrievalCheck
from swarmcheck_engine.checks.settlements import SettlementsCheck
from swarmcheck_engine.checks.smoke import SmokeCheck
from swarmcheck_engine.checks.soc import SOCCheck
from swarmcheck_engine.interfaces.metrics_sink import MetricsSink

CHECKS: dict[CheckKind, type[Check]] = {
    CheckKind.PUSHSYNC: PushSyncCheck,
    CheckKind.PULLSYNC: PullSyncCheck,
    CheckKind.RETRIEVAL: RetrievalCheck,
    CheckKind.SMOKE: SmokeCheck,
    CheckKind.CHUNK_REPAIR: ChunkRepairCheck,
    CheckKind.LOCAL_PINNING: LocalPinningCheck,
    CheckKind.GC: GCCheck,
    CheckKind.SOC: SOCCheck,
    CheckKind.BALANCES: BalancesCheck,
    CheckKind.SETTLEMENTS: SettlementsCheck,
    CheckKind.FULL_CONNECTIVITY: FullConnectivityCheck,
    CheckKind.KADEMLIA: KademliaCheck,
    CheckKind.PINGPONG: PingPongCheck,
    CheckKind.PEER_COUNT: PeerCountCheck,
}


class UnknownCheckError(KeyError):
    """Raised for a check name that is neither a check kind nor a profile."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        known = ", ".join(k.value for k in CheckKind)
        return f"unknown check {self.name!r} (known checks: {known})"


def parse_kind(name: str) -> CheckKind:
    try:
        return CheckKind(name)
    except ValueError:
        raise UnknownCheckError(name) from None


def new_check(
    kind: CheckKind | str,
    global_seed: int | None = None,
    metrics: MetricsSink | None = None,
    logger: Logger | None = None,
) -> Check:
    """
    Instantiate the check registered for kind.

    Raises:
        UnknownCheckError: kind is not a registered check
    """
    if not isinstance(kind, CheckKind):
        kind = parse_kind(kind)
    return CHECKS[kind](global_seed=global_seed, metrics=metrics, logger=logger)
