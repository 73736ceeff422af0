"""
Metrics sinks.

LoggingMetricsSink writes every observation to the log; InMemoryMetricsSink
keeps them for inspection (tests, run summaries).
"""

from dataclasses import dataclass, field
from logging import Logger

from swarmcheck_engine.interfaces.metrics_sink import MetricsSink
from swarmcheck_engine.logging import get_logger


@dataclass
class Observation:
    """One recorded check outcome."""

    check: str
    passed: bool
    duration_s: float
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class LatencyObservation:
    check: str
    operation: str
    seconds: float


class LoggingMetricsSink(MetricsSink):
    """Reports observations as log lines."""

    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or get_logger(__name__)

    def observe(
        self,
        check: str,
        passed: bool,
        duration_s: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        label_str = " ".join(f"{k}={v}" for k, v in sorted((labels or {}).items()))
        self._logger.info(
            "metric check=%s passed=%s duration_s=%.3f %s", check, passed, duration_s, label_str
        )

    def observe_latency(self, check: str, operation: str, seconds: float) -> None:
        self._logger.debug("metric check=%s operation=%s latency_s=%.3f", check, operation, seconds)


class InMemoryMetricsSink(MetricsSink):
    """Collects observations in memory."""

    def __init__(self) -> None:
        self.observations: list[Observation] = []
        self.latencies: list[LatencyObservation] = []

    def observe(
        self,
        check: str,
        passed: bool,
        duration_s: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        self.observations.append(Observation(check, passed, duration_s, dict(labels or {})))

    def observe_latency(self, check: str, operation: str, seconds: float) -> None:
        self.latencies.append(LatencyObservation(check, operation, seconds))

    def for_check(self, check: str) -> list[Observation]:
        return [o for o in self.observations if o.check == check]
