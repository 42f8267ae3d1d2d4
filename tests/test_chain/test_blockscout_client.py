"""Tests for the Blockscout client — uses httpx mock transport."""

from __future__ import annotations

import httpx
import pytest

from tranzantions.chain.blockscout.client import BlockscoutClient, item_to_event
from tranzantions.errors.app_errors import ExplorerError
from tranzantions.notifications.events import TransactionStatus

_ADDRESS = "0xabcdef0123456789abcdef0123456789abcdef01"
_BASE = "https://base-sepolia.blockscout.com"


def _item(**overrides) -> dict:
    item = {
        "hash": "0x" + "ab" * 32,
        "from": {"hash": _ADDRESS},
        "to": {"hash": "0x1111111111111111111111111111111111111111"},
        "value": "1000000000000000000",
        "status": "ok",
        "result": "success",
        "block_number": 123,
        "timestamp": "2024-05-01T12:00:00.000000Z",
    }
    item.update(overrides)
    return item


async def _client(handler) -> BlockscoutClient:
    client = BlockscoutClient(_BASE, api_key="secret", transport=httpx.MockTransport(handler))
    await client.connect()
    return client


# ---------------------------------------------------------------------------
# Item conversion
# ---------------------------------------------------------------------------


class TestItemToEvent:
    def test_confirmed(self) -> None:
        event = item_to_event(_item())
        assert event.status is TransactionStatus.CONFIRMED
        assert event.from_address == _ADDRESS
        assert event.value == 10**18
        assert event.block_number == 123

    def test_pending_without_block(self) -> None:
        event = item_to_event(_item(block_number=None, status=None, result="pending"))
        assert event.status is TransactionStatus.PENDING
        assert event.block_number is None

    def test_failed(self) -> None:
        event = item_to_event(_item(status="error", result="Reverted"))
        assert event.status is TransactionStatus.FAILED

    def test_contract_creation(self) -> None:
        event = item_to_event(_item(to=None))
        assert event.to_address is None

    def test_missing_sender(self) -> None:
        with pytest.raises(ValueError):
            item_to_event(_item(**{"from": None}))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestBlockscoutClientLifecycle:
    async def test_connect_and_close(self) -> None:
        client = BlockscoutClient(_BASE)
        assert client.is_connected is False
        await client.connect()
        assert client.is_connected is True
        await client.close()
        assert client.is_connected is False

    async def test_close_idempotent(self) -> None:
        client = BlockscoutClient(_BASE)
        await client.close()
        assert client.is_connected is False

    async def test_not_connected_raises(self) -> None:
        client = BlockscoutClient(_BASE)
        with pytest.raises(RuntimeError, match="not connected"):
            await client.get_address_transactions(_ADDRESS)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestGetAddressTransactions:
    async def test_request_shape(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": [_item()], "next_page_params": None})

        client = await _client(handler)
        try:
            data = await client.get_address_transactions(
                _ADDRESS, start_timestamp="2024-05-01T00:00:00Z"
            )
        finally:
            await client.close()

        assert len(data["items"]) == 1
        [request] = seen
        assert request.url.path == f"/api/v2/addresses/{_ADDRESS}/transactions"
        assert request.url.params["filter"] == "all"
        assert request.url.params["start_timestamp"] == "2024-05-01T00:00:00Z"
        assert request.headers["X-API-Key"] == "secret"

    async def test_no_start_timestamp(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": []})

        client = await _client(handler)
        try:
            await client.get_address_transactions(_ADDRESS)
        finally:
            await client.close()
        assert "start_timestamp" not in seen[0].url.params

    @pytest.mark.parametrize("body", [{}, {"items": None}, {"items": "bad"}, []])
    async def test_items_always_list(self, body) -> None:
        client = await _client(lambda request: httpx.Response(200, json=body))
        try:
            data = await client.get_address_transactions(_ADDRESS)
        finally:
            await client.close()
        assert data["items"] == []

    async def test_upstream_error_status(self) -> None:
        client = await _client(lambda request: httpx.Response(500, text="upstream broke"))
        try:
            with pytest.raises(ExplorerError) as exc_info:
                await client.get_address_transactions(_ADDRESS)
        finally:
            await client.close()
        assert exc_info.value.status_code == 502
        assert "500" in exc_info.value.message
        assert "upstream broke" in exc_info.value.message

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = await _client(handler)
        try:
            with pytest.raises(ExplorerError, match="refused"):
                await client.get_address_transactions(_ADDRESS)
        finally:
            await client.close()


class TestGetTransactionEvents:
    async def test_skips_malformed_items(self) -> None:
        body = {"items": [_item(), {"hash": None}, "junk", _item(hash="0x" + "cd" * 32)]}
        client = await _client(lambda request: httpx.Response(200, json=body))
        try:
            events = await client.get_transaction_events(_ADDRESS)
        finally:
            await client.close()
        assert [e.hash for e in events] == ["0x" + "ab" * 32, "0x" + "cd" * 32]
