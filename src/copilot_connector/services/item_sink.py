"""Item sinks: the destination that accepts aligned items.

Two implementations are provided:
- InMemoryItemSink for tests and local runs
- HttpItemSink, a typed client for an external items endpoint
"""

from typing import Any, Protocol
from urllib.parse import quote

import httpx
from httpx import AsyncClient
from loguru import logger

from copilot_connector.exceptions import UpstreamError
from copilot_connector.schemas.item import NormalizedItem


class ItemSink(Protocol):
    async def upsert(self, item: NormalizedItem) -> None: ...

    async def delete(self, item_id: str) -> None: ...

    async def exists(self, item_id: str) -> bool: ...


def external_item_payload(item: NormalizedItem) -> dict[str, Any]:
    """Wire shape of an external item: text content and an acl list."""
    return {
        "id": item.id,
        "properties": item.properties,
        "content": {"value": item.content, "type": "text"},
        "acl": [acl.model_dump(by_alias=True) for acl in item.acls],
    }


class InMemoryItemSink:
    """Item sink backed by a dict keyed by item id."""

    def __init__(self) -> None:
        self.items: dict[str, NormalizedItem] = {}

    async def upsert(self, item: NormalizedItem) -> None:
        self.items[item.id] = item.model_copy(deep=True)

    async def delete(self, item_id: str) -> None:
        self.items.pop(item_id, None)

    async def exists(self, item_id: str) -> bool:
        return item_id in self.items


class HttpItemSink:
    """Typed client for the external items endpoint.

    Centralizes:
    - path construction for /connections/{connection_id}/items/{item_id}
    - mapping transport and HTTP failures to UpstreamError

    No retries happen here; failures surface with the upstream message.

    Usage:
        async with AsyncClient(base_url=config.sink_url) as http_client:
            sink = HttpItemSink(http_client, config.connection_id)
            await sink.upsert(item)
    """

    def __init__(self, http_client: AsyncClient, connection_id: str):
        """Initialize the sink.

        Args:
            http_client: HTTPX AsyncClient with base_url set to the sink
            connection_id: External connection the items belong to
        """
        self.http_client = http_client
        self.connection_id = connection_id
        self._base_path = f"/connections/{quote(connection_id, safe='')}/items"

    def _item_path(self, item_id: str) -> str:
        return f"{self._base_path}/{quote(item_id, safe='')}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.http_client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise UpstreamError(f"Item sink request failed: {e}") from e
        return response

    @staticmethod
    def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = response.text or response.reason_phrase
        logger.error(f"{method} {path} returned {response.status_code}: {message}")
        raise UpstreamError(message, status_code=response.status_code)

    async def upsert(self, item: NormalizedItem) -> None:
        path = self._item_path(item.id)
        response = await self._request("PUT", path, json=external_item_payload(item))
        self._raise_for_status("PUT", path, response)
        logger.debug(f"Upserted external item '{item.id}'")

    async def delete(self, item_id: str) -> None:
        path = self._item_path(item_id)
        response = await self._request("DELETE", path)
        self._raise_for_status("DELETE", path, response)
        logger.debug(f"Deleted external item '{item_id}'")

    async def exists(self, item_id: str) -> bool:
        path = self._item_path(item_id)
        response = await self._request("GET", path)
        if response.status_code == 404:
            return False
        self._raise_for_status("GET", path, response)
        return True
