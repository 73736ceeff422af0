"""
Run context for check runs.

Provides unique run IDs and the summary of one invocation of the runner.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from swarmcheck_engine.checks.models import CheckResult


def generate_run_id(prefix: str = "run") -> str:
    """
    Generate a unique run ID.

    Format: {prefix}_{timestamp}_{uuid8}
    Example: pushsync_20240115_143022_a1b2c3d4

    Args:
        prefix: ID prefix (e.g., the check name)

    Returns:
        Unique run ID string.
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    short_uuid = uuid4().hex[:8]
    return f"{prefix}_{timestamp}_{short_uuid}"


@dataclass
class RunSummary:
    """
    Results of one runner invocation, in the order the checks were requested.
    """

    run_id: str = field(default_factory=lambda: generate_run_id("suite"))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    results: list["CheckResult"] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    completed_at: datetime | None = None

    @property
    def passed(self) -> bool:
        return not self.skipped and all(r.passed for r in self.results)

    @property
    def failed(self) -> list["CheckResult"]:
        return [r for r in self.results if not r.passed]

    def mark_completed(self) -> None:
        """Mark the run as completed."""
        self.completed_at = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "run_id": self.run_id,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "passed": self.passed,
            "results": [r.model_dump(mode="json") for r in self.results],
            "skipped": self.skipped,
        }
