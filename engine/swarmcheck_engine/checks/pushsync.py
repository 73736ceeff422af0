"""
Push-sync check.

Uploads random chunks to the first upload nodes of the group and waits until
each chunk reaches its closest node and enough replicas exist overall.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met, select_uploaders
from swarmcheck_engine.checks.models import CheckFailure, CheckKind, FailureCondition
from swarmcheck_engine.checks.options import PushSyncOptions
from swarmcheck_engine.cluster.node_group import NodeIdentity
from swarmcheck_engine.swarm.chunk import Chunk


class PushSyncCheck(Check):
    kind = CheckKind.PUSHSYNC
    options_model = PushSyncOptions

    async def execute(self, run: CheckRun) -> None:
        options: PushSyncOptions = run.options
        if options.replication_threshold > len(run.group):
            raise CheckFailure(
                FailureCondition.CONFIGURATION,
                f"replication threshold {options.replication_threshold} exceeds group size {len(run.group)}",
                observed=len(run.group),
                expected=options.replication_threshold,
            )

        uploaders = select_uploaders(run, options.upload_node_count)
        run.select(uploaders)

        replicas: dict[str, int] = {}
        for uploader in uploaders:
            for chunk in run.generator.random_chunks(options.chunks_per_node):
                holders = await self._push(run, uploader, chunk, options.replication_threshold)
                replicas[chunk.address.hex()] = len(holders)
        run.details["replicas"] = replicas

    async def _push(
        self, run: CheckRun, uploader: NodeIdentity, chunk: Chunk, threshold: int
    ) -> list[NodeIdentity]:
        address = chunk.address
        closest = run.group.closest(address)

        result = await run.dispatch(
            uploader, lambda ops: ops.upload_chunk(chunk), f"upload chunk {address} to {uploader}"
        )
        run.ensure(
            result.address == address,
            f"node {uploader} returned reference {result.reference} for chunk {address}",
            observed=result.reference,
            expected=address.hex(),
        )

        async def replicated() -> list[NodeIdentity]:
            holders = await run.holders(address)
            if closest not in holders:
                raise not_met(f"closest node {closest} does not hold chunk {address}", observed=len(holders))
            if len(holders) < threshold:
                raise not_met(
                    f"chunk {address} held by {len(holders)} node(s), want at least {threshold}",
                    observed=len(holders),
                )
            return holders

        holders = await run.wait(replicated, f"replication of chunk {address}")
        run.logger.info(
            "%s: chunk %s uploaded to %s, held by %d node(s) incl. closest %s",
            run.name,
            address,
            uploader,
            len(holders),
            closest,
        )
        return holders
