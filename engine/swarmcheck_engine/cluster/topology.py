"""
Static cluster topology.

Builds node groups from a fixed list of endpoints. Overlay addresses are
fetched once from each node when the group is resolved.
"""

import asyncio
from collections.abc import Callable, Mapping, Sequence
from logging import Logger

from pydantic import BaseModel, ConfigDict

from swarmcheck_engine.cluster.node_group import NodeGroup, NodeIdentity, TopologyError
from swarmcheck_engine.config import Settings
from swarmcheck_engine.interfaces.cluster_topology import ClusterTopology
from swarmcheck_engine.interfaces.node_operations import NodeOperations
from swarmcheck_engine.logging import get_logger
from swarmcheck_engine.node.client import AsyncBeeClient


class NodeEndpoint(BaseModel):
    """Where a node's API and debug API are reachable."""

    model_config = ConfigDict(frozen=True)

    name: str
    api_url: str
    debug_api_url: str


ClientFactory = Callable[[NodeEndpoint], NodeOperations]


class StaticClusterTopology(ClusterTopology):
    """
    Topology provider over a fixed mapping of group name to endpoints.
    """

    def __init__(
        self,
        groups: Mapping[str, Sequence[NodeEndpoint]],
        settings: Settings,
        logger: Logger | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._groups = {name: tuple(endpoints) for name, endpoints in groups.items()}
        self._settings = settings
        self._logger = logger or get_logger(__name__)
        self._client_factory = client_factory or self._default_client
        self._resolved: list[NodeGroup] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        logger: Logger | None = None,
        client_factory: ClientFactory | None = None,
    ) -> "StaticClusterTopology":
        """Single group named settings.default_node_group built from settings.node_names."""
        endpoints = [
            NodeEndpoint(
                name=name,
                api_url=settings.api_url(name),
                debug_api_url=settings.debug_api_url(name),
            )
            for name in settings.node_names
        ]
        return cls({settings.default_node_group: endpoints}, settings, logger, client_factory)

    def _default_client(self, endpoint: NodeEndpoint) -> NodeOperations:
        return AsyncBeeClient(
            endpoint.name,
            endpoint.api_url,
            endpoint.debug_api_url,
            self._settings,
            self._logger,
        )

    async def node_group(self, name: str) -> NodeGroup:
        endpoints = self._groups.get(name)
        if not endpoints:
            raise TopologyError(f"node group {name} is empty or not defined")

        clients = [self._client_factory(ep) for ep in endpoints]
        results = await asyncio.gather(
            *(c.addresses() for c in clients), return_exceptions=True
        )

        members: list[tuple[NodeIdentity, NodeOperations]] = []
        failures: list[str] = []
        for endpoint, client, result in zip(endpoints, clients, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append(f"{endpoint.name}: {result}")
                continue
            members.append((NodeIdentity(endpoint.name, result.overlay_address), client))

        if failures:
            for client in clients:
                await client.close()
            raise TopologyError(f"cannot reach nodes of group {name}: {'; '.join(failures)}")

        group = NodeGroup(name, members, call_timeout=self._settings.request_timeout_s)
        self._resolved.append(group)
        self._logger.info(
            "Resolved node group %s: %s",
            name,
            ", ".join(str(n) for n in group.nodes()),
        )
        return group

    async def close(self) -> None:
        for group in self._resolved:
            await group.close()
        self._resolved.clear()
