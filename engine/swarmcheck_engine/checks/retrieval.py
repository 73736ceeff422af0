"""
Retrieval check.

Every chunk uploaded to one node must be downloadable, byte for byte, from
a different node picked by the seeded generator.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, select_uploaders
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import RetrievalOptions


class RetrievalCheck(Check):
    kind = CheckKind.RETRIEVAL
    options_model = RetrievalOptions

    async def execute(self, run: CheckRun) -> None:
        options: RetrievalOptions = run.options
        uploaders = select_uploaders(run, options.upload_node_count)
        run.select(uploaders)
        nodes = run.group.nodes()

        transfers = []
        for index, uploader in enumerate(uploaders):
            for chunk in run.generator.random_chunks(options.chunks_per_node):
                address = chunk.address
                downloader = nodes[run.generator.pick_index(len(nodes), index)]

                await run.dispatch(
                    uploader,
                    lambda ops: ops.upload_chunk(chunk),
                    f"upload chunk {address} to {uploader}",
                )
                data = await run.wait(
                    lambda: run.invoke(downloader, lambda ops: ops.download_chunk(address)),
                    f"download of chunk {address} from {downloader}",
                )
                run.ensure(
                    data == chunk.data,
                    "retrieved data does not match uploaded data",
                    observed=f"{len(data)} bytes from {downloader.name}",
                    expected=f"{len(chunk.data)} bytes of chunk {address.hex()}",
                )
                transfers.append(
                    {"chunk": address.hex(), "uploader": uploader.name, "downloader": downloader.name}
                )
        run.details["retrieved"] = len(transfers)
        run.details["transfers"] = transfers
