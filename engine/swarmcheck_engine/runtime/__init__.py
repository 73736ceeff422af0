"""
Runtime: run identifiers and run summaries.

The check runner lives in swarmcheck_engine.runtime.runner.
"""

from swarmcheck_engine.runtime.run_context import RunSummary, generate_run_id

__all__ = [
    "RunSummary",
    "generate_run_id",
]
