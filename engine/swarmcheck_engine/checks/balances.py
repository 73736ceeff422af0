"""
Balances check.

After an upload, the accounting balances of every pair of nodes must mirror
each other, and the uploader must end up owing for the traffic it caused.
"""

from swarmcheck_engine.checks.base import Check, CheckRun, not_met, select_uploaders
from swarmcheck_engine.checks.models import CheckKind
from swarmcheck_engine.checks.options import BalancesOptions
from swarmcheck_engine.cluster.node_group import NodeGroup, NodeIdentity
from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.sync.waiter import gather_all

BalanceTable = dict[NodeIdentity, dict[Address, int]]


async def balance_table(run: CheckRun) -> BalanceTable:
    """Balances of every node in the group, fetched concurrently."""
    nodes = run.group.nodes()
    results = await gather_all(*(run.invoke(n, lambda ops: ops.balances()) for n in nodes))
    return dict(zip(nodes, results))


def asymmetries(group: NodeGroup, table: BalanceTable) -> list[str]:
    """
    Pairs whose balances do not mirror each other.

    Peers outside the group are ignored.
    """
    problems = []
    for node, balances in table.items():
        for peer, amount in balances.items():
            other = group.by_overlay(peer)
            if other is None or other not in table:
                continue
            mirrored = table[other].get(node.overlay, 0)
            if amount != -mirrored:
                problems.append(f"{node.name}->{other.name}: {amount} vs {mirrored}")
    return problems


def total_balance(table: BalanceTable, node: NodeIdentity) -> int:
    return sum(table[node].values())


class BalancesCheck(Check):
    kind = CheckKind.BALANCES
    options_model = BalancesOptions

    async def execute(self, run: CheckRun) -> None:
        options: BalancesOptions = run.options
        uploaders = select_uploaders(run, options.upload_node_count)
        run.select(uploaders)

        before = await balance_table(run)
        for uploader in uploaders:
            data = run.generator.random_bytes(options.data_size)
            await run.dispatch(
                uploader, lambda ops: ops.upload_bytes(data), f"upload {len(data)} bytes to {uploader}"
            )

        after = await wait_for_symmetric_balances(run)
        moved = {}
        for uploader in uploaders:
            delta = total_balance(after, uploader) - total_balance(before, uploader)
            moved[uploader.name] = delta
            run.ensure(
                delta < 0,
                f"balance of uploader {uploader.name} did not decrease",
                observed=delta,
                expected="< 0",
            )
        run.details["uploader_balance_delta"] = moved


async def wait_for_symmetric_balances(run: CheckRun) -> BalanceTable:
    """Wait until every pair of balances mirrors; return the final table."""

    async def symmetric() -> BalanceTable:
        table = await balance_table(run)
        problems = asymmetries(run.group, table)
        if problems:
            raise not_met(f"{len(problems)} asymmetric balance(s): {'; '.join(problems[:5])}", observed=problems)
        return table

    return await run.wait(symmetric, "symmetric balances")
