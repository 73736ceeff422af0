"""
Smoke check.

Per run: upload random bytes under a tag from a random node, wait for the tag
to report the upload as synced, then download from a different node.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import SmokeOptions
from swarmcheck_engine.node.types import Tag


class SmokeCheck(Check):
    kind = CheckKind.SMOKE
    options_model = SmokeOptions

    async def execute(self, run: CheckRun) -> None:
        options: SmokeOptions = run.options
        nodes = run.group.nodes()
        run.select(nodes)

        for i in range(options.runs):
            uploader_index = run.generator.pick(len(nodes))
            uploader = nodes[uploader_index]
            run.logger.info("%s: run %d, uploader node is %s", run.name, i, uploader)

            tag = await run.dispatch(uploader, lambda ops: ops.create_tag(), f"create tag on {uploader}")
            data = run.generator.random_bytes(options.data_size)
            result = await run.dispatch(
                uploader,
                lambda ops: ops.upload_bytes(data, tag=tag.uid),
                f"upload {len(data)} bytes to {uploader}",
            )

            async def synced() -> Tag:
                current = await run.invoke(uploader, lambda ops: ops.get_tag(tag.uid))
                if not current.is_synced:
                    raise not_met(
                        f"tag {tag.uid}: {current.synced + current.seen}/{current.total} chunks synced",
                        observed=current.model_dump(),
                    )
                return current

            await run.wait(synced, f"sync of tag {tag.uid} on {uploader}")

            downloader = nodes[run.generator.pick_index(len(nodes), uploader_index)]
            downloaded = await run.wait(
                lambda: run.invoke(downloader, lambda ops: ops.download_bytes(result.address)),
                f"download of {result.reference} from {downloader}",
            )
            run.ensure(
                downloaded == data,
                "download data mismatch",
                observed=f"{len(downloaded)} bytes from {downloader.name}",
                expected=f"{len(data)} bytes uploaded to {uploader.name}",
            )
            run.logger.info("%s: downloaded successfully from %s", run.name, downloader)
