"""
Settlements check.

Amounts one node reports as sent to a peer must equal what that peer reports
as received, and no balance may remain beyond the payment threshold.
"""

from swarmcheck_engine.checks.balances import wait_for_symmetric_balances
from swarmcheck_engine.checks.base import Check, CheckRun, not_met, select_uploaders
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import SettlementsOptions
from swarmcheck_engine.cluster.node_group import NodeIdentity
from swarmcheck_engine.node.types import Settlements
from swarmcheck_engine.sync.waiter import gather_all


async def settlement_table(run: CheckRun) -> dict[NodeIdentity, Settlements]:
    nodes = run.group.nodes()
    results = await gather_all(*(run.invoke(n, lambda ops: ops.settlements()) for n in nodes))
    return dict(zip(nodes, results))


def mismatches(table: dict[NodeIdentity, Settlements]) -> list[str]:
    """Ordered pairs where sent(a->b) != received(b<-a)."""
    problems = []
    for a, settlements_a in table.items():
        for b, settlements_b in table.items():
            if a == b:
                continue
            sent = settlements_a.with_peer(b.overlay).sent
            received = settlements_b.with_peer(a.overlay).received
            if sent != received:
                problems.append(f"{a.name}->{b.name}: sent {sent}, received {received}")
    return problems


class SettlementsCheck(Check):
    kind = CheckKind.SETTLEMENTS
    options_model = SettlementsOptions

    async def execute(self, run: CheckRun) -> None:
        options: SettlementsOptions = run.options
        uploaders = select_uploaders(run, options.upload_node_count)
        run.select(uploaders)

        for uploader in uploaders:
            data = run.generator.random_bytes(options.data_size)
            await run.dispatch(
                uploader, lambda ops: ops.upload_bytes(data), f"upload {len(data)} bytes to {uploader}"
            )

        async def settled() -> dict[NodeIdentity, Settlements]:
            table = await settlement_table(run)
            problems = mismatches(table)
            if problems:
                raise not_met(f"{len(problems)} unmatched settlement(s): {'; '.join(problems[:5])}", observed=problems)
            return table

        table = await run.wait(settled, "matching settlements")
        total = sum(s.total_sent for s in table.values())
        run.details["total_settled"] = total
        if options.expect_settlements:
            run.ensure(total > 0, "no settlements happened", observed=total, expected="> 0")

        balances = await wait_for_symmetric_balances(run)
        excessive = [
            f"{node.name}->{peer.hex()[:8]}: {amount}"
            for node, per_peer in balances.items()
            for peer, amount in per_peer.items()
            if abs(amount) > options.threshold
        ]
        run.ensure(
            not excessive,
            f"{len(excessive)} balance(s) exceed the payment threshold {options.threshold}",
            observed=excessive,
            expected=f"|balance| <= {options.threshold}",
        )
