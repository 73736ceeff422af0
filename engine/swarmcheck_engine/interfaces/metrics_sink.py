"""
MetricsSink interface.

Checks may report observations to a sink; a missing sink never changes
what a check asserts.
"""

from abc import ABC, abstractmethod


class MetricsSink(ABC):
    """Abstract receiver of check observations."""

    @abstractmethod
    def observe(
        self,
        check: str,
        passed: bool,
        duration_s: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Record the outcome of one check run.

        Args:
            check: Check name
            passed: Whether the check passed
            duration_s: Wall-clock duration of the run
            labels: Extra labels (check kind, node group, seed)
        """
        pass

    def observe_latency(self, check: str, operation: str, seconds: float) -> None:
        """Record the latency of a single operation within a check."""
        return None
