"""
Chunk repair check.

A pinned chunk is removed from the node closest to it; a download through a
third node, given the uploader as recovery target, must succeed and the
closest node must end up holding the chunk again.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met
from swarmcheck_engine.checks.models import CheckFailure, CheckKind, FailureCondition
from swarmcheck_engine.checks.options import ChunkRepairOptions
from swarmcheck_engine.cluster.node_group import NodeIdentity
from swarmcheck_engine.swarm.chunk import Chunk


class ChunkRepairCheck(Check):
    kind = CheckKind.CHUNK_REPAIR
    options_model = ChunkRepairOptions

    async def execute(self, run: CheckRun) -> None:
        options: ChunkRepairOptions = run.options
        nodes = run.group.nodes()
        if len(nodes) < 3:
            raise CheckFailure(
                FailureCondition.CONFIGURATION,
                f"chunk repair needs at least 3 nodes, group {run.group.name} has {len(nodes)}",
                observed=len(nodes),
                expected=3,
            )
        run.select(nodes)

        repaired: list[str] = []
        for _ in range(options.number_of_chunks_to_repair):
            chunk = run.generator.random_chunk()
            closest = run.group.closest(chunk.address)
            others = [n for n in nodes if n != closest]
            uploader = others.pop(run.generator.pick(len(others)))
            downloader = others[run.generator.pick(len(others))]
            await self._repair(run, chunk, closest, uploader, downloader, options.recovery_prefix_bytes)
            repaired.append(chunk.address.hex())
        run.details["repaired"] = repaired

    async def _repair(
        self,
        run: CheckRun,
        chunk: Chunk,
        closest: NodeIdentity,
        uploader: NodeIdentity,
        downloader: NodeIdentity,
        prefix_bytes: int,
    ) -> None:
        address = chunk.address
        run.logger.info(
            "%s: chunk %s uploader %s closest %s downloader %s",
            run.name,
            address,
            uploader,
            closest,
            downloader,
        )
        await run.dispatch(
            uploader,
            lambda ops: ops.upload_chunk(chunk, pin=True),
            f"upload pinned chunk {address} to {uploader}",
        )

        async def held_by_closest() -> bool:
            if not await run.invoke(closest, lambda ops: ops.has_chunk(address)):
                raise not_met(f"closest node {closest} does not hold chunk {address}")
            return True

        await run.wait(held_by_closest, f"push-sync of chunk {address} to {closest}")

        await run.dispatch(
            closest, lambda ops: ops.remove_chunk(address), f"remove chunk {address} from {closest}"
        )
        still_held = await run.invoke(closest, lambda ops: ops.has_chunk(address))
        run.ensure(
            not still_held,
            f"chunk {address} still present on {closest} after removal",
            observed=still_held,
            expected=False,
        )

        targets = uploader.overlay.hex()[: 2 * prefix_bytes]
        data = await run.wait(
            lambda: run.invoke(
                downloader, lambda ops: ops.download_chunk(address, recovery_targets=targets)
            ),
            f"download of chunk {address} from {downloader} with recovery target {targets}",
        )
        run.ensure(
            data == chunk.data,
            "repaired chunk data does not match uploaded data",
            observed=len(data),
            expected=len(chunk.data),
        )
        await run.wait(held_by_closest, f"repair of chunk {address} on {closest}")
