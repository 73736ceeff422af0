"""
Check runner.

Resolves check names (kinds or profile names) to checks with typed options,
resolves each node group once, and runs the checks sequentially or
concurrently. Every check gets its own result; a failing check never stops
the others unless stop_on_first_failure is set.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import Logger

from swarmcheck_engine.checks.base import Check
from swarmcheck_engine.checks.models import CheckResult, FailureCondition, RunState
from swarmcheck_engine.checks.options import CheckOptions
from swarmcheck_engine.checks.profiles import CheckProfile
from swarmcheck_engine.checks.registry import new_check, parse_kind
from swarmcheck_engine.cluster.node_group import NodeGroup, TopologyError
from swarmcheck_engine.interfaces.cluster_topology import ClusterTopology
from swarmcheck_engine.interfaces.metrics_sink import MetricsSink
from swarmcheck_engine.logging import get_logger
from swarmcheck_engine.runtime.run_context import RunSummary, generate_run_id
from swarmcheck_engine.sync.waiter import gather_all


@dataclass(frozen=True)
class PlannedCheck:
    """A check instance with its options, ready to run."""

    name: str
    check: Check
    options: CheckOptions


class CheckRunner:
    """
    Runs a list of checks against a cluster topology.
    """

    def __init__(
        self,
        topology: ClusterTopology,
        global_seed: int | None = None,
        metrics: MetricsSink | None = None,
        stop_on_first_failure: bool = False,
        concurrent: bool = False,
        profiles: Mapping[str, CheckProfile] | None = None,
        default_node_group: str | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._topology = topology
        self._global_seed = global_seed
        self._metrics = metrics
        self._stop_on_first_failure = stop_on_first_failure
        self._concurrent = concurrent
        self._profiles = dict(profiles or {})
        # applied to every check that does not name its own group
        self._defaults = {"node-group": default_node_group} if default_node_group else {}
        self._logger = logger or get_logger(__name__)
        self._groups: dict[str, NodeGroup | TopologyError] = {}

    def plan(self, names: Sequence[str]) -> list[PlannedCheck]:
        """
        Resolve names to checks. Profile names take precedence over kinds.

        Raises:
            UnknownCheckError: a name is neither a profile nor a check kind
            ProfileError: a profile's options are invalid
        """
        planned = []
        for name in names:
            profile = self._profiles.get(name)
            if profile is not None:
                check = new_check(profile.type, self._global_seed, self._metrics)
                options = profile.build_options(self._defaults)
            else:
                check = new_check(parse_kind(name), self._global_seed, self._metrics)
                options = check.new_options(self._defaults)
            planned.append(PlannedCheck(name, check, options))
        return planned

    async def _group(self, name: str) -> NodeGroup:
        cached = self._groups.get(name)
        if cached is None:
            try:
                cached = await self._topology.node_group(name)
            except TopologyError as e:
                cached = e
            self._groups[name] = cached
        if isinstance(cached, TopologyError):
            raise cached
        return cached

    async def run_one(self, planned: PlannedCheck) -> CheckResult:
        """Run a single planned check; topology errors become a failed result."""
        try:
            group = await self._group(planned.options.node_group)
        except TopologyError as e:
            self._logger.error("%s: cannot resolve node group: %s", planned.name, e)
            return CheckResult(
                name=planned.name,
                kind=planned.check.kind,
                run_id=generate_run_id(planned.name),
                node_group=planned.options.node_group,
                passed=False,
                state=RunState.FAILED,
                condition=FailureCondition.ENVIRONMENT,
                message=str(e),
                started_at=datetime.now(UTC),
            )
        return await planned.check.run(group, planned.options, name=planned.name)

    async def run(self, names: Sequence[str]) -> RunSummary:
        """
        Run the named checks and collect their results in request order.

        Raises:
            UnknownCheckError: before anything runs, for an unknown name
        """
        planned = self.plan(names)
        summary = RunSummary()
        self._logger.info("Running %d check(s): %s", len(planned), ", ".join(p.name for p in planned))

        if self._concurrent:
            # resolve groups up front so concurrent checks share one snapshot
            for p in planned:
                try:
                    await self._group(p.options.node_group)
                except TopologyError:
                    continue  # cached, reported per check by run_one
            summary.results.extend(await gather_all(*(self.run_one(p) for p in planned)))
        else:
            for i, p in enumerate(planned):
                result = await self.run_one(p)
                summary.results.append(result)
                self._logger.info(result.summary())
                if not result.passed and self._stop_on_first_failure:
                    summary.skipped.extend(q.name for q in planned[i + 1 :])
                    self._logger.warning(
                        "Stopping after failure of %s, skipping %d check(s)", p.name, len(summary.skipped)
                    )
                    break

        summary.mark_completed()
        passed = sum(1 for r in summary.results if r.passed)
        self._logger.info("Checks finished: %d/%d passed", passed, len(planned))
        return summary
