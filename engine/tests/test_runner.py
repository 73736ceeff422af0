"""
Tests for CheckRunner.
"""

import pytest

from swarmcheck_engine.checks.models import CheckKind, FailureCondition, RunState
from swarmcheck_engine.checks.profiles import CheckProfile, ProfileError
from swarmcheck_engine.checks.registry import UnknownCheckError
from swarmcheck_engine.metrics import InMemoryMetricsSink
from swarmcheck_engine.runtime.runner import CheckRunner
from tests.fixtures.fake_swarm import FakeSwarm, FakeTopology


@pytest.fixture
def topology(swarm: FakeSwarm) -> FakeTopology:
    return FakeTopology({"bee": swarm})


def isolate(swarm: FakeSwarm, name: str) -> None:
    for other in swarm.nodes:
        if other != name:
            swarm.disconnect(name, other)


class TestPlan:
    """Tests for resolving check names."""

    def test_kinds(self, topology: FakeTopology) -> None:
        planned = CheckRunner(topology).plan(["pushsync", "gc"])
        assert [p.check.kind for p in planned] == [CheckKind.PUSHSYNC, CheckKind.GC]
        assert [p.name for p in planned] == ["pushsync", "gc"]

    def test_profile_takes_precedence(self, topology: FakeTopology) -> None:
        profiles = {"pingpong": CheckProfile(name="pingpong", type=CheckKind.PEER_COUNT)}
        (planned,) = CheckRunner(topology, profiles=profiles).plan(["pingpong"])
        assert planned.check.kind == CheckKind.PEER_COUNT

    def test_profile_options(self, topology: FakeTopology) -> None:
        profiles = {
            "heavy": CheckProfile(
                name="heavy", type=CheckKind.PUSHSYNC, timeout=30, options={"chunks-per-node": 4}
            )
        }
        (planned,) = CheckRunner(topology, profiles=profiles).plan(["heavy"])
        assert planned.options.chunks_per_node == 4
        assert planned.options.timeout == 30

    def test_default_node_group(self, topology: FakeTopology) -> None:
        profiles = {
            "elsewhere": CheckProfile(name="elsewhere", type=CheckKind.GC, options={"node-group": "light"})
        }
        runner = CheckRunner(topology, profiles=profiles, default_node_group="ring")
        kind, profile = runner.plan(["gc", "elsewhere"])
        assert kind.options.node_group == "ring"
        assert profile.options.node_group == "light"

    def test_unknown_name(self, topology: FakeTopology) -> None:
        with pytest.raises(UnknownCheckError, match="known checks: pushsync"):
            CheckRunner(topology).plan(["pushsync", "no-such-check"])

    def test_invalid_profile_options(self, topology: FakeTopology) -> None:
        profiles = {"bad": CheckProfile(name="bad", type=CheckKind.SMOKE, options={"runs": 0})}
        with pytest.raises(ProfileError, match="check profile bad"):
            CheckRunner(topology, profiles=profiles).plan(["bad"])


class TestRun:
    """Tests for running checks."""

    @pytest.mark.asyncio
    async def test_results_in_request_order(self, topology: FakeTopology) -> None:
        summary = await CheckRunner(topology, global_seed=9).run(["peer-count", "pingpong"])

        assert [r.name for r in summary.results] == ["peer-count", "pingpong"]
        assert all(r.seed == 9 for r in summary.results)
        assert summary.passed
        assert summary.completed_at is not None

    @pytest.mark.asyncio
    async def test_unknown_name_runs_nothing(self, topology: FakeTopology, swarm: FakeSwarm) -> None:
        with pytest.raises(UnknownCheckError):
            await CheckRunner(topology).run(["peer-count", "nope"])
        assert topology.resolved == []
        assert all(not node.calls for node in swarm.nodes.values())

    @pytest.mark.asyncio
    async def test_missing_group_is_an_environment_failure(self) -> None:
        topology = FakeTopology({})
        summary = await CheckRunner(topology).run(["peer-count", "pingpong"])

        assert [r.condition for r in summary.results] == [FailureCondition.ENVIRONMENT] * 2
        assert all(r.state == RunState.FAILED for r in summary.results)
        assert "node group bee" in summary.results[0].message
        assert topology.resolved == ["bee"]
        assert not summary.passed

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_the_rest(self, swarm: FakeSwarm, topology: FakeTopology) -> None:
        isolate(swarm, "bee-3")
        summary = await CheckRunner(topology).run(["peer-count", "pingpong"])

        assert [r.passed for r in summary.results] == [False, True]
        assert summary.skipped == []
        assert [r.name for r in summary.failed] == ["peer-count"]

    @pytest.mark.asyncio
    async def test_stop_on_first_failure(self, swarm: FakeSwarm, topology: FakeTopology) -> None:
        isolate(swarm, "bee-3")
        runner = CheckRunner(topology, stop_on_first_failure=True)

        summary = await runner.run(["peer-count", "pingpong", "full-connectivity"])

        assert [r.name for r in summary.results] == ["peer-count"]
        assert summary.skipped == ["pingpong", "full-connectivity"]
        assert not summary.passed

    @pytest.mark.asyncio
    async def test_concurrent_checks_share_one_group(self, topology: FakeTopology) -> None:
        metrics = InMemoryMetricsSink()
        runner = CheckRunner(topology, metrics=metrics, concurrent=True)

        summary = await runner.run(["peer-count", "pingpong", "kademlia"])

        assert [r.name for r in summary.results] == ["peer-count", "pingpong", "kademlia"]
        assert summary.passed
        assert topology.resolved == ["bee"]
        assert {o.check for o in metrics.observations} == {"peer-count", "pingpong", "kademlia"}

    @pytest.mark.asyncio
    async def test_profile_run(self, swarm: FakeSwarm) -> None:
        topology = FakeTopology({"other": swarm})
        profiles = {
            "quick": CheckProfile(
                name="quick",
                type=CheckKind.PEER_COUNT,
                options={"node-group": "other", "seed": 1},
            )
        }

        summary = await CheckRunner(topology, profiles=profiles).run(["quick"])

        (result,) = summary.results
        assert result.passed, result.message
        assert result.name == "quick"
        assert result.kind == CheckKind.PEER_COUNT
        assert result.node_group == "other"
        assert result.run_id.startswith("quick_")

    @pytest.mark.asyncio
    async def test_summary_serializes(self, topology: FakeTopology) -> None:
        summary = await CheckRunner(topology).run(["peer-count"])
        data = summary.to_dict()
        assert data["run_id"].startswith("suite_")
        assert data["passed"] is True
        assert data["results"][0]["kind"] == "peer-count"
        assert data["results"][0]["state"] == "PASSED"
