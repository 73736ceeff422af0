"""
Async Bee node HTTP client.

Implements NodeOperations over a node's API and debug API. Each operation is a
single request; retry and polling policy belong to the calling check.
"""

import time
from logging import Logger
from typing import Any

import httpx

from swarmcheck_engine.config import Settings
from swarmcheck_engine.interfaces.node_operations import NodeOperations
from swarmcheck_engine.logging import redact_url
from swarmcheck_engine.node.types import (
    Balances,
    NodeAddresses,
    Pong,
    Settlements,
    Tag,
    Topology,
    UploadResult,
)
from swarmcheck_engine.swarm.address import Address
from swarmcheck_engine.swarm.chunk import Chunk
from swarmcheck_engine.swarm.soc import SingleOwnerChunk

HEADER_PIN = "Swarm-Pin"
HEADER_TAG = "Swarm-Tag"
HEADER_RECOVERY_TARGETS = "Swarm-Recovery-Targets"


class NodeAPIError(Exception):
    """Raised for node API errors."""

    def __init__(self, message: str, status_code: int | None = None, node: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.node = node


class NodeNotFoundError(NodeAPIError):
    """Raised when the node answers 404 for the requested resource."""

    pass


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and "message" in data:
        return str(data["message"])
    return response.reason_phrase


class AsyncBeeClient(NodeOperations):
    """
    Async client for one Bee node.

    Handles:
    - API and debug API base URLs
    - Error statuses and transport failures mapped to NodeAPIError
    """

    def __init__(
        self,
        name: str,
        api_url: str,
        debug_api_url: str,
        settings: Settings,
        logger: Logger,
    ) -> None:
        """
        Initialize node client.

        Args:
            name: Node name, used in logs and errors
            api_url: Base URL of the node API
            debug_api_url: Base URL of the node debug API
            settings: Run settings
            logger: Logger instance
        """
        self.name = name
        self._api_url = api_url.rstrip("/")
        self._debug_api_url = debug_api_url.rstrip("/")
        self._logger = logger
        self._timeout = settings.request_timeout_s
        self._verify = not settings.insecure_tls

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, verify=self._verify)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        debug: bool = False,
        content: bytes | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Make a single HTTP request to the node.

        Retrying is left to the caller: checks retry through their own
        retry policy and poll through the sync waiter.

        Args:
            method: HTTP method
            path: API path (without base URL)
            debug: Send to the debug API instead of the API
            content: Raw request body
            params: Query parameters
            headers: Extra request headers

        Returns:
            HTTP response with a 2xx status

        Raises:
            NodeNotFoundError: The node answered 404
            NodeAPIError: Any other error status, or a transport failure
        """
        base = self._debug_api_url if debug else self._api_url
        url = f"{base}{path}"

        self._logger.debug("%s request: %s %s", self.name, method, redact_url(url))

        client = await self._get_client()
        start_time = time.perf_counter()
        try:
            response = await client.request(
                method,
                url,
                content=content,
                params=params,
                headers=headers,
            )
        except httpx.TransportError as e:
            raise NodeAPIError(
                f"{method} {path}: {type(e).__name__}: {e}", node=self.name
            ) from e

        self._logger.debug(
            "%s response: status=%d latency=%dms",
            self.name,
            response.status_code,
            int((time.perf_counter() - start_time) * 1000),
        )

        if response.status_code == 404:
            raise NodeNotFoundError(
                f"{method} {path}: not found",
                status_code=404,
                node=self.name,
            )

        if response.status_code >= 400:
            raise NodeAPIError(
                f"{method} {path}: {response.status_code} {_error_message(response)}",
                status_code=response.status_code,
                node=self.name,
            )

        return response

    @staticmethod
    def _upload_headers(pin: bool, tag: int | None) -> dict[str, str]:
        headers = {"Content-Type": "application/octet-stream"}
        if pin:
            headers[HEADER_PIN] = "true"
        if tag is not None:
            headers[HEADER_TAG] = str(tag)
        return headers

    @staticmethod
    def _upload_result(response: httpx.Response) -> UploadResult:
        tag = response.headers.get(HEADER_TAG)
        return UploadResult(
            reference=response.json()["reference"],
            tag_uid=int(tag) if tag else None,
        )

    # =========================================================================
    # Content
    # =========================================================================

    async def upload_chunk(
        self, chunk: Chunk, *, pin: bool = False, tag: int | None = None
    ) -> UploadResult:
        response = await self._request(
            "POST", "/chunks", content=chunk.data, headers=self._upload_headers(pin, tag)
        )
        return self._upload_result(response)

    async def download_chunk(
        self, address: Address, *, recovery_targets: str | None = None
    ) -> bytes:
        headers = {HEADER_RECOVERY_TARGETS: recovery_targets} if recovery_targets else None
        response = await self._request("GET", f"/chunks/{address.hex()}", headers=headers)
        return response.content

    async def upload_bytes(
        self, data: bytes, *, pin: bool = False, tag: int | None = None
    ) -> UploadResult:
        response = await self._request(
            "POST", "/bytes", content=data, headers=self._upload_headers(pin, tag)
        )
        return self._upload_result(response)

    async def download_bytes(self, reference: Address) -> bytes:
        response = await self._request("GET", f"/bytes/{reference.hex()}")
        return response.content

    async def upload_soc(self, soc: SingleOwnerChunk) -> UploadResult:
        response = await self._request(
            "POST",
            f"/soc/{soc.owner.hex()}/{soc.id.hex()}",
            content=soc.chunk.data,
            params={"sig": soc.signature.hex()},
            headers={"Content-Type": "application/octet-stream"},
        )
        return self._upload_result(response)

    # =========================================================================
    # Local store
    # =========================================================================

    async def has_chunk(self, address: Address) -> bool:
        try:
            await self._request("GET", f"/chunks/{address.hex()}", debug=True)
        except NodeNotFoundError:
            return False
        return True

    async def remove_chunk(self, address: Address) -> None:
        await self._request("DELETE", f"/chunks/{address.hex()}", debug=True)

    # =========================================================================
    # Tags and pinning
    # =========================================================================

    async def create_tag(self) -> Tag:
        response = await self._request("POST", "/tags")
        return Tag.model_validate(response.json())

    async def get_tag(self, uid: int) -> Tag:
        response = await self._request("GET", f"/tags/{uid}")
        return Tag.model_validate(response.json())

    async def pin_chunk(self, address: Address) -> None:
        await self._request("POST", f"/pin/chunks/{address.hex()}")

    async def unpin_chunk(self, address: Address) -> None:
        await self._request("DELETE", f"/pin/chunks/{address.hex()}")

    async def is_pinned(self, address: Address) -> bool:
        try:
            await self._request("GET", f"/pin/chunks/{address.hex()}")
        except NodeNotFoundError:
            return False
        return True

    # =========================================================================
    # Node state
    # =========================================================================

    async def addresses(self) -> NodeAddresses:
        response = await self._request("GET", "/addresses", debug=True)
        return NodeAddresses.model_validate(response.json())

    async def peers(self) -> list[Address]:
        response = await self._request("GET", "/peers", debug=True)
        return [Address.from_hex(p["address"]) for p in response.json().get("peers") or []]

    async def topology(self) -> Topology:
        response = await self._request("GET", "/topology", debug=True)
        return Topology.model_validate(response.json())

    async def balances(self) -> dict[Address, int]:
        response = await self._request("GET", "/balances", debug=True)
        return Balances.model_validate(response.json()).as_dict()

    async def settlements(self) -> Settlements:
        response = await self._request("GET", "/settlements", debug=True)
        return Settlements.model_validate(response.json())

    async def ping(self, peer: Address) -> float:
        response = await self._request("POST", f"/pingpong/{peer.hex()}", debug=True)
        return Pong.model_validate(response.json()).rtt_seconds
