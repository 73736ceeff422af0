"""
Pull-sync check.

After an upload, every node in the neighbourhood of a chunk (proximity to the
chunk at least the depth of the chunk's closest node) must end up holding it.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met, select_uploaders
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import PullSyncOptions
from swarmcheck_engine.cluster.node_group import NodeIdentity
from swarmcheck_engine.swarm.address import Address, proximity


def neighbourhood(
    nodes: tuple[NodeIdentity, ...], address: Address, closest: NodeIdentity, depth: int
) -> list[NodeIdentity]:
    """Nodes within depth of address, always including the closest node."""
    return [n for n in nodes if n == closest or proximity(n.overlay, address) >= depth]


class PullSyncCheck(Check):
    kind = CheckKind.PULLSYNC
    options_model = PullSyncOptions

    async def execute(self, run: CheckRun) -> None:
        options: PullSyncOptions = run.options
        uploaders = select_uploaders(run, options.upload_node_count)
        run.select(uploaders)

        synced: dict[str, int] = {}
        for uploader in uploaders:
            for chunk in run.generator.random_chunks(options.chunks_per_node):
                address = chunk.address
                closest = run.group.closest(address)
                await run.dispatch(
                    uploader,
                    lambda ops: ops.upload_chunk(chunk),
                    f"upload chunk {address} to {uploader}",
                )

                topology = await run.dispatch(
                    closest, lambda ops: ops.topology(), f"topology of {closest}"
                )
                members = neighbourhood(run.group.nodes(), address, closest, topology.depth)

                async def pulled() -> bool:
                    holders = await run.holders(address, among=members)
                    missing = [n.name for n in members if n not in holders]
                    if missing:
                        raise not_met(
                            f"chunk {address} missing on {', '.join(missing)} (depth {topology.depth})",
                            observed=len(holders),
                        )
                    return True

                await run.wait(pulled, f"pull-sync of chunk {address}")
                run.ensure(
                    len(members) >= options.replication_threshold,
                    f"chunk {address} replicated to {len(members)} node(s), "
                    f"want at least {options.replication_threshold}",
                    observed=len(members),
                    expected=options.replication_threshold,
                )
                synced[address.hex()] = len(members)
        run.details["replicas"] = synced
