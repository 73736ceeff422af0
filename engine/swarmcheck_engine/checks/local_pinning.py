"""
Local pinning check.

A chunk pinned on a node must survive that node's store being filled past
capacity with chunks that node is responsible for.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import LocalPinningOptions, StoreOptions
from swarmcheck_engine.cluster.node_group import NodeIdentity


async def fill_store(run: CheckRun, node: NodeIdentity, options: StoreOptions) -> int:
    """Upload filler chunks closest to node until its store overflows."""
    count = options.filler_count
    run.logger.info("%s: uploading %d filler chunk(s) to %s", run.name, count, node)
    for _ in range(count):
        filler = run.chunk_closest_to(node, options.max_chunk_attempts)
        await run.dispatch(node, lambda ops: ops.upload_chunk(filler), f"upload filler to {node}")
    return count


class LocalPinningCheck(Check):
    kind = CheckKind.LOCAL_PINNING
    options_model = LocalPinningOptions

    async def execute(self, run: CheckRun) -> None:
        options: LocalPinningOptions = run.options
        nodes = run.group.nodes()
        node = nodes[run.generator.pick(len(nodes))]
        run.select([node])

        pinned = run.chunk_closest_to(node, options.max_chunk_attempts)
        address = pinned.address
        await run.dispatch(
            node, lambda ops: ops.upload_chunk(pinned, pin=True), f"upload pinned chunk {address} to {node}"
        )

        async def stored() -> bool:
            if not await run.invoke(node, lambda ops: ops.has_chunk(address)):
                raise not_met(f"{node} does not hold chunk {address}")
            return True

        await run.wait(stored, f"storage of pinned chunk {address} on {node}")
        run.details["fillers"] = await fill_store(run, node, options)

        present = await run.invoke(node, lambda ops: ops.has_chunk(address))
        run.ensure(
            present,
            f"pinned chunk {address} was evicted from {node}",
            observed=present,
            expected=True,
        )
        is_pinned = await run.invoke(node, lambda ops: ops.is_pinned(address))
        run.ensure(
            is_pinned,
            f"chunk {address} is no longer pinned on {node}",
            observed=is_pinned,
            expected=True,
        )
