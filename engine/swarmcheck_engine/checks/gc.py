"""
Garbage collection check.

Once a node's store overflows, an unpinned chunk it holds must be evicted
while a pinned one stays.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met
from swarmcheck_engine.checks.local_pinning import fill_store
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import GCOptions


class GCCheck(Check):
    kind = CheckKind.GC
    options_model = GCOptions

    async def execute(self, run: CheckRun) -> None:
        options: GCOptions = run.options
        nodes = run.group.nodes()
        node = nodes[run.generator.pick(len(nodes))]
        run.select([node])

        unpinned = run.chunk_closest_to(node, options.max_chunk_attempts)
        pinned = run.chunk_closest_to(node, options.max_chunk_attempts)
        await run.dispatch(
            node, lambda ops: ops.upload_chunk(unpinned), f"upload chunk {unpinned.address} to {node}"
        )
        await run.dispatch(
            node,
            lambda ops: ops.upload_chunk(pinned, pin=True),
            f"upload pinned chunk {pinned.address} to {node}",
        )

        async def both_stored() -> bool:
            for chunk in (unpinned, pinned):
                if not await run.invoke(node, lambda ops: ops.has_chunk(chunk.address)):
                    raise not_met(f"{node} does not hold chunk {chunk.address}")
            return True

        await run.wait(both_stored, f"storage of chunks on {node}")
        run.details["fillers"] = await fill_store(run, node, options)

        async def evicted() -> bool:
            if await run.invoke(node, lambda ops: ops.has_chunk(unpinned.address)):
                raise not_met(f"unpinned chunk {unpinned.address} still on {node}")
            return True

        await run.wait(evicted, f"eviction of chunk {unpinned.address} from {node}")

        present = await run.invoke(node, lambda ops: ops.has_chunk(pinned.address))
        run.ensure(
            present,
            f"pinned chunk {pinned.address} was garbage collected on {node}",
            observed=present,
            expected=True,
        )
