"""
Swarmcheck command line driver.

Runs checks against an already-running Bee cluster.

Usage:
    python -m swarmcheck_engine.main --checks pushsync retrieval --seed 7 \
        --group bee --nodes bee-0 bee-1 bee-2 bee-3
    python -m swarmcheck_engine.main --profiles checks.yaml --checks pushsync-heavy

Exit codes:
    0: All checks passed
    1: One or more checks failed, or the run could not be configured
"""

import argparse
import asyncio
import json
import sys

from swarmcheck_engine import __version__
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.profiles import ProfileError, load_profiles
from swarmcheck_engine.checks.registry import UnknownCheckError
from swarmcheck_engine.cluster.topology import StaticClusterTopology
from swarmcheck_engine.config import Settings, get_settings
from swarmcheck_engine.logging import get_logger, setup_logging
from swarmcheck_engine.metrics import LoggingMetricsSink
from swarmcheck_engine.runtime.runner import CheckRunner

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swarmcheck",
        description="Run verification checks against a Bee cluster",
    )
    parser.add_argument("--checks", nargs="+", help="Checks or profile names to run, in order")
    parser.add_argument("--seed", type=int, help="Global seed (negative: random per check)")
    parser.add_argument("--group", help="Node group name")
    parser.add_argument("--nodes", nargs="+", help="Node names in the group")
    parser.add_argument("--profiles", help="YAML file with check profiles")
    parser.add_argument("--stop-on-first-failure", action="store_true", help="Abort after the first failed check")
    parser.add_argument("--concurrent", action="store_true", help="Run checks concurrently")
    parser.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    parser.add_argument("--list", action="store_true", help="List available checks and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Command line values take precedence over environment settings."""
    updates = {}
    if args.checks:
        updates["checks"] = args.checks
    if args.seed is not None:
        updates["seed"] = args.seed
    if args.group:
        updates["default_node_group"] = args.group
    if args.nodes:
        updates["node_names"] = args.nodes
    if args.profiles:
        updates["check_profiles_file"] = args.profiles
    if args.stop_on_first_failure:
        updates["stop_on_first_failure"] = True
    return settings.model_copy(update=updates)


async def run(settings: Settings, concurrent: bool = False, as_json: bool = False) -> int:
    """Run the configured checks and return the process exit code."""
    logger.info("Configuration: %s", settings.get_redacted_config())

    try:
        profiles = load_profiles(settings.check_profiles_file) if settings.check_profiles_file else {}
    except ProfileError as e:
        logger.error("%s", e)
        return 1

    topology = StaticClusterTopology.from_settings(settings)
    runner = CheckRunner(
        topology,
        global_seed=settings.seed,
        metrics=LoggingMetricsSink() if settings.metrics_enabled else None,
        stop_on_first_failure=settings.stop_on_first_failure,
        concurrent=concurrent,
        profiles=profiles,
        default_node_group=settings.default_node_group,
    )
    try:
        summary = await runner.run(settings.checks)
    except (UnknownCheckError, ProfileError) as e:
        logger.error("%s", e)
        return 1
    finally:
        await topology.close()

    if as_json:
        print(json.dumps(summary.to_dict(), indent=2, default=str))
    else:
        print("=" * 60)
        for result in summary.results:
            print(result.summary())
        for name in summary.skipped:
            print(f"{name}: SKIPPED")
        print("=" * 60)

    return 0 if summary.passed else 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        for kind in CheckKind:
            print(kind.value)
        return 0

    settings = apply_overrides(get_settings(), args)
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    return asyncio.run(run(settings, concurrent=args.concurrent, as_json=args.json))


if __name__ == "__main__":
    sys.exit(main())
