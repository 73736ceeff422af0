"""
Single-owner chunk check.

Signs a random chunk under a random identifier with a key derived from the
seed, uploads it to the first node and reads it back.
"""

from swarmcheck_engine.checks.base import Check, CheckRun
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import SOCOptions
from swarmcheck_engine.swarm.soc import sign_chunk


class SOCCheck(Check):
    kind = CheckKind.SOC
    options_model = SOCOptions

    async def execute(self, run: CheckRun) -> None:
        node = run.group.nodes()[0]
        run.select([node])

        chunk = run.generator.random_chunk()
        soc = sign_chunk(run.generator.random_id(), chunk, run.generator.private_key())
        run.details.update(owner=soc.owner.hex(), id=soc.id.hex(), address=soc.address.hex())
        run.logger.info("%s: submitting single-owner chunk %s to %s", run.name, soc.address, node)

        result = await run.dispatch(node, lambda ops: ops.upload_soc(soc), f"upload single-owner chunk to {node}")
        run.ensure(
            result.address == soc.address,
            "node returned an unexpected single-owner chunk address",
            observed=result.reference,
            expected=soc.address.hex(),
        )

        retrieved = await run.wait(
            lambda: run.invoke(node, lambda ops: ops.download_chunk(soc.address)),
            f"download of single-owner chunk {soc.address}",
        )
        run.ensure(
            retrieved == soc.data,
            "retrieved content does not match signed content",
            observed=len(retrieved),
            expected=len(soc.data),
        )
