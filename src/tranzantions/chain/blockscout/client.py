"""Blockscout REST client — address transaction history.

Async HTTP client for the Blockscout v2 API of the monitored test network:
- GET /api/v2/addresses/<addr>/transactions?filter=all[&start_timestamp=...]

Responses are returned as JSON with a guaranteed ``items`` list. The same
items feed the polling event source via ``item_to_event``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tranzantions.errors.app_errors import ExplorerError
from tranzantions.notifications.events import TransactionEvent, TransactionStatus

logger = logging.getLogger(__name__)


def _address_of(field: Any) -> str | None:
    """Blockscout nests addresses as ``{"hash": "0x..."}``."""
    if isinstance(field, dict):
        return field.get("hash")
    if isinstance(field, str) and field:
        return field
    return None


def _status_of(item: dict[str, Any]) -> TransactionStatus:
    if item.get("result") == "pending" or item.get("block_number", item.get("block")) is None:
        return TransactionStatus.PENDING
    return TransactionStatus.parse(item.get("status"))


def item_to_event(item: dict[str, Any]) -> TransactionEvent:
    """Convert one Blockscout transaction item to a ``TransactionEvent``.

    Raises:
        ValueError: If the item lacks a hash or sender.
    """
    return TransactionEvent.from_payload(
        {
            "hash": item.get("hash"),
            "from": _address_of(item.get("from")),
            "to": _address_of(item.get("to")),
            "value": item.get("value", 0),
            "status": _status_of(item),
            "blockNumber": item.get("block_number", item.get("block")),
            "timestamp": item.get("timestamp"),
        }
    )


class BlockscoutClient:
    """Async HTTP client for the Blockscout API.

    Usage::

        client = BlockscoutClient("https://base-sepolia.blockscout.com", api_key="...")
        await client.connect()
        try:
            data = await client.get_address_transactions("0xabc...")
        finally:
            await client.close()
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api/v2",
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def get_address_transactions(
        self,
        address: str,
        *,
        start_timestamp: str | None = None,
    ) -> dict[str, Any]:
        """Fetch transactions touching *address*.

        Returns:
            The upstream JSON object, with ``items`` defaulted to ``[]`` when
            absent or not a list.

        Raises:
            ExplorerError: On transport errors or a non-2xx response.
        """
        client = self._ensure_connected()
        params: dict[str, str] = {"filter": "all"}
        if start_timestamp:
            params["start_timestamp"] = start_timestamp

        try:
            resp = await client.get(f"/addresses/{address}/transactions", params=params)
        except httpx.HTTPError as exc:
            raise ExplorerError(f"Blockscout request failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("Blockscout returned %d: %s", resp.status_code, resp.text[:200])
            raise ExplorerError(
                f"Blockscout API request failed with status {resp.status_code}: {resp.text[:200]}"
            )

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Blockscout returned non-JSON body for %s", address)
            data = {}
        if not isinstance(data, dict):
            data = {}
        if not isinstance(data.get("items"), list):
            data["items"] = []

        logger.debug("Blockscout returned %d items for %s", len(data["items"]), address)
        return data

    async def get_transaction_events(
        self,
        address: str,
        *,
        start_timestamp: str | None = None,
    ) -> list[TransactionEvent]:
        """Fetch and convert transactions, skipping malformed items."""
        data = await self.get_address_transactions(address, start_timestamp=start_timestamp)
        events: list[TransactionEvent] = []
        for item in data["items"]:
            if not isinstance(item, dict):
                continue
            try:
                events.append(item_to_event(item))
            except ValueError:
                logger.warning("Skipping malformed Blockscout item: %r", item.get("hash"))
        return events

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "BlockscoutClient is not connected — call connect() first"
            raise RuntimeError(msg)
        return self._client
