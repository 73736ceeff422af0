"""
Check base class and per-run context.

A Check is stateless apart from its collaborators; everything belonging to
one execution (seed, generator, state, diagnostics) lives in a CheckRun.
"""

import asyncio
import random
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from logging import Logger
from typing import Any, ClassVar, TypeVar

import httpx

from swarmcheck_engine.checks.models import (
    VALID_TRANSITIONS,
    CheckFailure,
    CheckKind,
    CheckResult,
    FailureCondition,
    InvalidTransition,
    RunState,
)
from swarmcheck_engine.checks.options import CheckOptions, resolve_seed
from swarmcheck_engine.cluster.node_group import NodeGroup, NodeIdentity, TopologyError
from swarmcheck_engine.interfaces.metrics_sink import MetricsSink
from swarmcheck_engine.interfaces.node_operations import NodeOperations
from swarmcheck_engine.logging import get_logger, run_id_context
from swarmcheck_engine.node.client import NodeAPIError
from swarmcheck_engine.runtime.run_context import generate_run_id
from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.swarm.chunk import Chunk
from swarmcheck_engine.swarm.errors import InputError
from swarmcheck_engine.swarm.generator import Generator
from swarmcheck_engine.sync.waiter import (
    ConditionNotMet,
    RetriesExhausted,
    gather_all,
    retry,
    wait_until,
)

T = TypeVar("T")


class CheckRun:
    """
    State of one check execution.

    Owns the seeded Generator; never shared between runs.
    """

    def __init__(
        self,
        name: str,
        run_id: str,
        seed: int,
        group: NodeGroup,
        options: CheckOptions,
        logger: Logger,
        metrics: MetricsSink | None = None,
    ) -> None:
        self.name = name
        self.run_id = run_id
        self.seed = seed
        self.group = group
        self.options = options
        self.logger = logger
        self.generator = Generator(seed)
        self.state = RunState.SEEDED
        self.details: dict[str, Any] = {}
        self._metrics = metrics
        # jitter draws must not shift the workload stream
        self._jitter_rng = random.Random(seed)

    def advance(self, state: RunState) -> None:
        """Move to a new state, enforcing the lifecycle."""
        if state is RunState.FAILED and self.state not in (RunState.PASSED, RunState.FAILED):
            self.state = state
            return
        if state not in VALID_TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.name}: cannot go from {self.state.value} to {state.value}")
        self.state = state

    def select(self, nodes: Sequence[NodeIdentity]) -> None:
        """Record the participating nodes. Selection happens once per run."""
        self.advance(RunState.NODES_SELECTED)
        self.details["nodes"] = [n.name for n in nodes]
        self.logger.info("%s: selected %s", self.name, ", ".join(str(n) for n in nodes))

    async def invoke(
        self, node: NodeIdentity, operation: Callable[[NodeOperations], Awaitable[T]]
    ) -> T:
        """Single call to a node, without retries (used inside waits)."""
        return await self.group.invoke(node, operation)

    async def dispatch(
        self,
        node: NodeIdentity,
        operation: Callable[[NodeOperations], Awaitable[T]],
        description: str,
    ) -> T:
        """Call a node, retrying transient failures per the check's retry policy."""
        if self.state is not RunState.DISPATCHED:
            self.advance(RunState.DISPATCHED)
        start = time.perf_counter()
        result = await retry(
            lambda: self.group.invoke(node, operation),
            self.options.retries,
            self.options.retry_delay,
            log=self.logger,
            description=f"{self.name}: {description}",
        )
        if self._metrics is not None:
            # label by the operation verb, e.g. "upload"
            verb = description.split(" ", 1)[0]
            self._metrics.observe_latency(self.name, verb, time.perf_counter() - start)
        return result

    async def wait(
        self,
        predicate: Callable[[], Awaitable[Any]],
        description: str,
        timeout: float | None = None,
    ) -> Any:
        """
        Wait until predicate holds; fail the run if it never does.

        Returns:
            The predicate's last (truthy) value.
        """
        if self.state is not RunState.WAITING:
            self.advance(RunState.WAITING)
        result = await wait_until(
            predicate,
            timeout if timeout is not None else self.options.wait_timeout,
            self.options.poll_interval,
            jitter=self.options.poll_jitter,
            rng=self._jitter_rng,
            log=self.logger,
            description=f"{self.name}: {description}",
        )
        if not result.ok:
            observed = getattr(result.last_error, "observed", None)
            raise CheckFailure(
                FailureCondition.TIMEOUT,
                f"{description}: {result.last_error}",
                observed=observed,
                details={"attempts": result.attempts, "elapsed_s": round(result.elapsed, 3)},
            )
        return result.value

    def ensure(
        self,
        condition: bool,
        message: str,
        *,
        observed: Any = None,
        expected: Any = None,
    ) -> None:
        """Fail the run with an assertion failure unless condition holds."""
        if not condition:
            raise CheckFailure(
                FailureCondition.ASSERTION, message, observed=observed, expected=expected
            )

    async def holders(self, address: Address, among: Sequence[NodeIdentity] | None = None) -> list[NodeIdentity]:
        """Nodes whose local store holds the chunk at address."""
        pool = list(among) if among is not None else list(self.group.nodes())
        found = await gather_all(
            *(self.invoke(n, lambda ops: ops.has_chunk(address)) for n in pool)
        )
        return [n for n, has in zip(pool, found) if has]

    def chunk_closest_to(self, node: NodeIdentity, max_attempts: int) -> Chunk:
        """
        Draw chunks until one lands closest to node.

        Raises:
            CheckFailure: no such chunk within max_attempts draws
        """
        for _ in range(max_attempts):
            chunk = self.generator.random_chunk()
            if self.group.closest(chunk.address) == node:
                return chunk
        raise CheckFailure(
            FailureCondition.CONFIGURATION,
            f"no chunk closest to {node} within {max_attempts} draws",
        )


class Check(ABC):
    """
    Base class for all checks.

    Subclasses set `kind` and `options_model` and implement execute().
    """

    kind: ClassVar[CheckKind]
    options_model: ClassVar[type[CheckOptions]] = CheckOptions

    def __init__(
        self,
        global_seed: int | None = None,
        metrics: MetricsSink | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._global_seed = global_seed
        self._metrics = metrics
        self._logger = logger or get_logger(f"swarmcheck_engine.checks.{self.kind.value}")

    def new_options(self, raw: dict[str, Any] | None = None) -> CheckOptions:
        return self.options_model.model_validate(raw or {})

    @abstractmethod
    async def execute(self, run: CheckRun) -> None:
        """
        Perform the check.

        Returns normally when every invariant holds; raises CheckFailure
        (or lets input/topology/node errors propagate) otherwise.
        """
        pass

    async def run(
        self,
        group: NodeGroup,
        options: CheckOptions | None = None,
        name: str | None = None,
    ) -> CheckResult:
        """
        Run the check once and return a structured result. Never raises for
        check failures; cancellation of the caller propagates.
        """
        options = options or self.new_options()
        if not isinstance(options, self.options_model):
            raise TypeError(
                f"{self.kind.value} expects {self.options_model.__name__}, got {type(options).__name__}"
            )
        name = name or self.kind.value
        run_id = generate_run_id(name)
        seed = resolve_seed(options.seed, self._global_seed)
        started_at = datetime.now(UTC)
        start = time.perf_counter()

        with run_id_context(run_id):
            run = CheckRun(name, run_id, seed, group, options, self._logger, self._metrics)
            self._logger.info("%s: starting on group %s with seed %d", name, group.name, seed)
            failure = await self._execute(run)

            duration = time.perf_counter() - start
            if failure is not None:
                run.advance(RunState.FAILED)
                self._logger.error(
                    "%s: failed (%s): %s", name, failure.condition.value, failure.message
                )
            else:
                self._logger.info("%s: passed in %.2fs", name, duration)

        result = CheckResult(
            name=name,
            kind=self.kind,
            run_id=run_id,
            seed=seed,
            node_group=group.name,
            passed=failure is None,
            state=run.state,
            condition=failure.condition if failure else None,
            message=failure.message if failure else "",
            observed=failure.observed if failure else None,
            expected=failure.expected if failure else None,
            details={**run.details, **(failure.details if failure else {})},
            started_at=started_at,
            duration_s=round(duration, 3),
        )
        if self._metrics is not None:
            self._metrics.observe(
                name,
                result.passed,
                duration,
                {"kind": self.kind.value, "node_group": group.name, "seed": str(seed)},
            )
        return result

    async def _execute(self, run: CheckRun) -> CheckFailure | None:
        """Execute under the check budget and map errors to a failure."""
        budget = asyncio.timeout(run.options.timeout)
        try:
            async with budget:
                await self.execute(run)
            run.advance(RunState.ASSERTED)
            run.advance(RunState.PASSED)
        except CheckFailure as e:
            return e
        except InputError as e:
            return CheckFailure(FailureCondition.CONFIGURATION, str(e))
        except TopologyError as e:
            return CheckFailure(FailureCondition.ENVIRONMENT, str(e))
        except RetriesExhausted as e:
            return CheckFailure(
                FailureCondition.RETRIES_EXHAUSTED,
                str(e),
                details={"attempts": e.attempts},
            )
        except TimeoutError:
            if budget.expired():
                message = (
                    f"check exceeded its {run.options.timeout}s budget in state {run.state.value}"
                )
            else:
                message = "node call exceeded its deadline"
            return CheckFailure(FailureCondition.TIMEOUT, message)
        except (NodeAPIError, httpx.HTTPError) as e:
            return CheckFailure(FailureCondition.NODE_ERROR, str(e))
        return None


def select_uploaders(run: CheckRun, count: int) -> tuple[NodeIdentity, ...]:
    """
    First `count` nodes of the group in overlay order.

    Raises:
        CheckFailure: the group has fewer nodes than requested
    """
    nodes = run.group.nodes()
    if count > len(nodes):
        raise CheckFailure(
            FailureCondition.CONFIGURATION,
            f"{count} upload node(s) requested but group {run.group.name} has {len(nodes)}",
            observed=len(nodes),
            expected=count,
        )
    return nodes[:count]


def not_met(message: str, observed: Any = None) -> ConditionNotMet:
    """Shorthand for predicates reporting why a condition does not hold yet."""
    return ConditionNotMet(message, observed=observed)
