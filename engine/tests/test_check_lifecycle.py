"""
Tests for the check lifecycle: run state, seeds, failure mapping, log
correlation and metrics.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import pytest

from swarmcheck_engine.checks.base import Check, CheckRun
from swarmcheck_engine.checks.models import (
    CheckFailure,
    CheckKind,
    FailureCondition,
    InvalidTransition,
    RunState,
)
from swarmcheck_engine.checks.options import CheckOptions, RetrievalOptions, SOCOptions
from swarmcheck_engine.checks.pushsync import PushSyncCheck
from swarmcheck_engine.cluster.node_group import NodeGroup, TopologyError
from swarmcheck_engine.logging import InMemoryHandler, current_run_id, get_logger
from swarmcheck_engine.metrics import InMemoryMetricsSink
from swarmcheck_engine.node.client import NodeAPIError
from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.swarm.errors import InputError
from swarmcheck_engine.sync.waiter import RetriesExhausted
from tests.fixtures.fake_swarm import FakeSwarm

Action = Callable[[CheckRun], Awaitable[None]]


class ScriptedCheck(Check):
    """Check whose body is supplied by the test."""

    kind = CheckKind.SOC
    options_model = SOCOptions

    def __init__(self, action: Action, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._action = action

    async def execute(self, run: CheckRun) -> None:
        run.select(run.group.nodes())
        await self._action(run)


async def _noop(run: CheckRun) -> None:
    pass


# =============================================================================
# Run state
# =============================================================================


class TestRunState:
    """Tests for CheckRun state transitions."""

    def _run(self, group: NodeGroup) -> CheckRun:
        return CheckRun("scripted", "scripted_1", 1, group, CheckOptions(), get_logger("test"))

    def test_starts_seeded(self, group: NodeGroup) -> None:
        assert self._run(group).state == RunState.SEEDED

    def test_cannot_skip_node_selection(self, group: NodeGroup) -> None:
        run = self._run(group)
        with pytest.raises(InvalidTransition):
            run.advance(RunState.DISPATCHED)

    def test_full_path(self, group: NodeGroup) -> None:
        run = self._run(group)
        for state in (
            RunState.NODES_SELECTED,
            RunState.DISPATCHED,
            RunState.WAITING,
            RunState.DISPATCHED,
            RunState.ASSERTED,
            RunState.PASSED,
        ):
            run.advance(state)
        assert run.state == RunState.PASSED

    def test_failed_from_any_non_terminal_state(self, group: NodeGroup) -> None:
        run = self._run(group)
        run.advance(RunState.NODES_SELECTED)
        run.advance(RunState.FAILED)
        assert run.state == RunState.FAILED

    def test_terminal_states_are_final(self, group: NodeGroup) -> None:
        run = self._run(group)
        run.advance(RunState.NODES_SELECTED)
        run.advance(RunState.ASSERTED)
        run.advance(RunState.PASSED)
        with pytest.raises(InvalidTransition):
            run.advance(RunState.FAILED)

    def test_selection_recorded(self, group: NodeGroup) -> None:
        run = self._run(group)
        run.select(group.nodes()[:2])
        assert run.details["nodes"] == [n.name for n in group.nodes()[:2]]
        with pytest.raises(InvalidTransition):
            run.select(group.nodes())


# =============================================================================
# Results and seeds
# =============================================================================


class TestResult:
    """Tests for the structured result of Check.run."""

    @pytest.mark.asyncio
    async def test_passing_result(self, group: NodeGroup, fast: dict[str, Any]) -> None:
        check = ScriptedCheck(_noop)
        result = await check.run(group, check.new_options({**fast, "seed": 3}), name="scripted")

        assert result.passed
        assert result.name == "scripted"
        assert result.kind == CheckKind.SOC
        assert result.state == RunState.PASSED
        assert result.condition is None
        assert result.seed == 3
        assert result.node_group == "bee"
        assert result.run_id.startswith("scripted_")
        assert result.duration_s >= 0

    @pytest.mark.asyncio
    async def test_run_ids_are_unique(self, group: NodeGroup) -> None:
        check = ScriptedCheck(_noop)
        first = await check.run(group)
        second = await check.run(group)
        assert first.run_id != second.run_id

    @pytest.mark.asyncio
    async def test_global_seed_applies_without_local_seed(self, group: NodeGroup) -> None:
        check = ScriptedCheck(_noop, global_seed=42)
        result = await check.run(group)
        assert result.seed == 42

    @pytest.mark.asyncio
    async def test_local_seed_wins(self, group: NodeGroup) -> None:
        check = ScriptedCheck(_noop, global_seed=42)
        result = await check.run(group, check.new_options({"seed": 5}))
        assert result.seed == 5

    @pytest.mark.asyncio
    async def test_negative_seeds_draw_random(self, group: NodeGroup) -> None:
        check = ScriptedCheck(_noop, global_seed=-1)
        result = await check.run(group, check.new_options({"seed": -1}))
        assert result.seed is not None
        assert result.seed >= 0

    @pytest.mark.asyncio
    async def test_wrong_options_type(self, group: NodeGroup) -> None:
        with pytest.raises(TypeError, match="expects PushSyncOptions"):
            await PushSyncCheck().run(group, RetrievalOptions())


# =============================================================================
# Failure mapping
# =============================================================================


def _raiser(error: BaseException) -> Action:
    async def action(run: CheckRun) -> None:
        raise error

    return action


class TestFailureMapping:
    """Tests for mapping errors raised during execution to failure conditions."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,condition",
        [
            (InputError("payload too large"), FailureCondition.CONFIGURATION),
            (TopologyError("node group bee is empty"), FailureCondition.ENVIRONMENT),
            (RetriesExhausted(3, ValueError("boom")), FailureCondition.RETRIES_EXHAUSTED),
            (NodeAPIError("400 bad request", status_code=400), FailureCondition.NODE_ERROR),
            (httpx.ConnectError("connection refused"), FailureCondition.NODE_ERROR),
            (TimeoutError(), FailureCondition.TIMEOUT),
        ],
    )
    async def test_condition(
        self, group: NodeGroup, error: BaseException, condition: FailureCondition
    ) -> None:
        check = ScriptedCheck(_raiser(error))
        result = await check.run(group)

        assert not result.passed
        assert result.state == RunState.FAILED
        assert result.condition == condition

    @pytest.mark.asyncio
    async def test_node_call_deadline(self, group: NodeGroup) -> None:
        result = await ScriptedCheck(_raiser(TimeoutError())).run(group)
        assert result.message == "node call exceeded its deadline"

    @pytest.mark.asyncio
    async def test_check_budget(self, group: NodeGroup) -> None:
        async def stall(run: CheckRun) -> None:
            await asyncio.sleep(10)

        check = ScriptedCheck(stall)
        result = await check.run(group, check.new_options({"timeout": 0.05}))

        assert result.condition == FailureCondition.TIMEOUT
        assert result.message == "check exceeded its 0.05s budget in state NODES_SELECTED"

    @pytest.mark.asyncio
    async def test_retries_exhausted_reports_attempts(self, group: NodeGroup) -> None:
        result = await ScriptedCheck(_raiser(RetriesExhausted(4, ValueError("boom")))).run(group)
        assert result.details["attempts"] == 4
        assert "boom" in result.message

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, group: NodeGroup) -> None:
        with pytest.raises(RuntimeError):
            await ScriptedCheck(_raiser(RuntimeError("bug"))).run(group)
        assert current_run_id.get() is None

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, group: NodeGroup) -> None:
        started = asyncio.Event()

        async def stall(run: CheckRun) -> None:
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(ScriptedCheck(stall).run(group))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


# =============================================================================
# Fan-out
# =============================================================================


class TestFanOut:
    """Concurrent node calls never outlive the poll that started them."""

    @pytest.mark.asyncio
    async def test_failed_poll_leaves_no_calls_running(
        self, swarm: FakeSwarm, group: NodeGroup, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        finished: list[str] = []
        failing, *slow = swarm.nodes.values()

        async def broken(address: Address) -> bool:
            raise NodeAPIError("has_chunk: 500", status_code=500, node=failing.name)

        def stalled(name: str) -> Callable[[Address], Awaitable[bool]]:
            async def has_chunk(address: Address) -> bool:
                await asyncio.sleep(0.3)
                finished.append(name)
                return False

            return has_chunk

        monkeypatch.setattr(failing, "has_chunk", broken)
        for node in slow:
            monkeypatch.setattr(node, "has_chunk", stalled(node.name))

        run = CheckRun(
            "scripted",
            "scripted_1",
            1,
            group,
            CheckOptions(wait_timeout=0.05, poll_interval=0.01),
            get_logger("test"),
        )
        run.select(group.nodes())
        address = run.generator.random_chunk().address

        with pytest.raises(CheckFailure) as exc_info:
            await run.wait(lambda: run.holders(address), "replication")

        assert exc_info.value.condition == FailureCondition.TIMEOUT
        assert "has_chunk: 500" in exc_info.value.message
        assert [t for t in asyncio.all_tasks() if t is not asyncio.current_task()] == []
        await asyncio.sleep(0.4)
        assert finished == []


# =============================================================================
# Logs and metrics
# =============================================================================


class TestObservability:
    """Tests for run_id log correlation and metrics reporting."""

    @pytest.mark.asyncio
    async def test_logs_carry_run_id(self, group: NodeGroup, caplog: pytest.LogCaptureFixture) -> None:
        handler = InMemoryHandler()
        parent = logging.getLogger("swarmcheck_engine")
        parent.addHandler(handler)
        caplog.set_level(logging.INFO, logger="swarmcheck_engine")
        try:
            result = await ScriptedCheck(_noop).run(group)
        finally:
            parent.removeHandler(handler)

        messages = [log for log in handler.logs if log["logger"] == "swarmcheck_engine.checks.soc"]
        assert any("starting on group bee" in log["message"] for log in messages)
        assert all(log["run_id"] == result.run_id for log in messages)
        assert current_run_id.get() is None

    @pytest.mark.asyncio
    async def test_outcome_and_latency_metrics(self, swarm: FakeSwarm, fast: dict[str, Any]) -> None:
        sink = InMemoryMetricsSink()
        check = PushSyncCheck(metrics=sink)

        result = await check.run(swarm.node_group(), check.new_options({**fast, "seed": 8}))

        (observation,) = sink.for_check("pushsync")
        assert observation.passed is result.passed
        assert observation.labels == {"kind": "pushsync", "node_group": "bee", "seed": "8"}
        assert [lat.operation for lat in sink.latencies] == ["upload"]
        assert sink.latencies[0].seconds >= 0
