"""Tests for the Notifier: resolve, dedupe, compose, send, record."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tranzantions.config.settings import NotifyConfig
from tranzantions.errors.app_errors import DeliveryError, TranzError
from tranzantions.errors.definitions import ErrNotRegistered
from tranzantions.ledger.database import DatabaseNotificationLedger
from tranzantions.ledger.memory import MemoryNotificationLedger
from tranzantions.ledger.store import EmailStatus
from tranzantions.metrics.collector import NotifierMetrics
from tranzantions.notifications.events import TransactionStatus, TransactionType
from tranzantions.notifications.mailer import LogTransport
from tranzantions.notifications.notifier import DEV_FALLBACK_USER_ID, Notifier, NotifyOutcome
from tranzantions.registration.database import DatabaseRegistrationStore
from tranzantions.registration.memory import MemoryRegistrationStore

WALLET = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"
OTHER_WALLET = "0x1111111111111111111111111111111111111111"


@pytest.fixture
async def stores(request, datastore):
    backend = getattr(request, "param", "memory")
    if backend == "database":
        return DatabaseRegistrationStore(datastore), DatabaseNotificationLedger(datastore)
    return MemoryRegistrationStore(), MemoryNotificationLedger()


@pytest.fixture
async def registered(stores):
    registrations, _ = stores
    return await registrations.register("alice@example.com", WALLET)


def _notifier(stores, transport, **config) -> Notifier:
    registrations, ledger = stores
    return Notifier(
        registrations,
        ledger,
        transport,
        NotifyConfig(**config),
        explorer_tx_url="https://sepolia.basescan.org/tx",
    )


@pytest.mark.parametrize("stores", ["memory", "database"], indirect=True)
class TestNotifierDeduplication:
    async def test_notify_twice_sends_once(self, stores, registered, make_event) -> None:
        transport = LogTransport()
        notifier = _notifier(stores, transport)
        event = make_event()

        assert await notifier.notify(WALLET, event) is NotifyOutcome.NOTIFIED
        assert await notifier.notify(WALLET.lower(), event) is NotifyOutcome.ALREADY_NOTIFIED

        assert len(transport.sent) == 1
        _, ledger = stores
        history = await ledger.history(registered.user_id)
        assert len(history) == 1
        assert history[0].email_status is EmailStatus.SENT

    async def test_pending_then_confirmed_sends_two(self, stores, registered, make_event) -> None:
        transport = LogTransport()
        notifier = _notifier(stores, transport)

        pending = make_event(status=TransactionStatus.PENDING, block_number=None)
        confirmed = make_event(status=TransactionStatus.CONFIRMED)
        assert await notifier.notify(WALLET, pending) is NotifyOutcome.NOTIFIED
        assert await notifier.notify(WALLET, confirmed) is NotifyOutcome.NOTIFIED

        assert len(transport.sent) == 2
        assert "(Pending)" in transport.sent[0].subject
        assert "(Confirmed)" in transport.sent[1].subject
        assert all("Sent" in c.subject for c in transport.sent)

        _, ledger = stores
        history = await ledger.history(registered.user_id)
        assert {r.transaction_type for r in history} == {TransactionType.SENT}

    async def test_unregistered_wallet(self, stores, make_event) -> None:
        transport = LogTransport()
        notifier = _notifier(stores, transport)

        with pytest.raises(TranzError) as exc_info:
            await notifier.notify(OTHER_WALLET, make_event())
        assert exc_info.value is ErrNotRegistered
        assert exc_info.value.status_code == 404
        assert not transport.sent


class TestNotifierClassification:
    async def test_received_when_wallet_is_recipient(self, stores, make_event) -> None:
        registrations, _ = stores
        await registrations.register("bob@example.com", OTHER_WALLET)
        transport = LogTransport()
        notifier = _notifier(stores, transport)

        await notifier.notify(OTHER_WALLET, make_event())
        [content] = transport.sent
        assert content.to == "bob@example.com"
        assert content.subject.startswith("Transaction Alert: Received 1.000000 ETH")
        assert "https://sepolia.basescan.org/tx/" in content.text

    async def test_sender_and_recipient_both_notified(self, stores, make_event) -> None:
        registrations, _ = stores
        await registrations.register("alice@example.com", WALLET)
        await registrations.register("bob@example.com", OTHER_WALLET)
        transport = LogTransport()
        notifier = _notifier(stores, transport)
        event = make_event()

        assert await notifier.notify(WALLET, event) is NotifyOutcome.NOTIFIED
        assert await notifier.notify(OTHER_WALLET, event) is NotifyOutcome.NOTIFIED
        assert [c.to for c in transport.sent] == ["alice@example.com", "bob@example.com"]


class TestNotifierDeliveryFailure:
    async def test_delivery_error_recorded_as_failed(self, stores, registered, make_event) -> None:
        transport = AsyncMock()
        transport.send.side_effect = DeliveryError("smtp down")
        notifier = _notifier(stores, transport)

        with pytest.raises(DeliveryError, match="smtp down"):
            await notifier.notify(WALLET, make_event())

        _, ledger = stores
        [record] = await ledger.history(registered.user_id)
        assert record.email_status is EmailStatus.FAILED
        assert record.error_message == "smtp down"

    async def test_unexpected_error_wrapped(self, stores, registered, make_event) -> None:
        transport = AsyncMock()
        transport.send.side_effect = ConnectionResetError("reset")
        notifier = _notifier(stores, transport)

        with pytest.raises(DeliveryError) as exc_info:
            await notifier.notify(WALLET, make_event())
        assert isinstance(exc_info.value.cause, ConnectionResetError)
        assert exc_info.value.status_code == 500

    async def test_failed_attempt_not_retried(self, stores, registered, make_event) -> None:
        transport = AsyncMock()
        transport.send.side_effect = DeliveryError("smtp down")
        notifier = _notifier(stores, transport)
        event = make_event()

        with pytest.raises(DeliveryError):
            await notifier.notify(WALLET, event)
        assert await notifier.notify(WALLET, event) is NotifyOutcome.ALREADY_NOTIFIED
        assert transport.send.await_count == 1


class TestNotifierDevFallback:
    async def test_fallback_used_for_unregistered(self, stores, make_event) -> None:
        transport = LogTransport()
        notifier = _notifier(
            stores,
            transport,
            dev_fallback_enabled=True,
            dev_fallback_email="dev@example.com",
        )

        assert await notifier.notify(OTHER_WALLET, make_event()) is NotifyOutcome.NOTIFIED
        assert [c.to for c in transport.sent] == ["dev@example.com"]

        _, ledger = stores
        assert len(await ledger.history(DEV_FALLBACK_USER_ID)) == 1

    async def test_fallback_requires_address(self, stores, make_event) -> None:
        notifier = _notifier(stores, LogTransport(), dev_fallback_enabled=True)
        with pytest.raises(TranzError) as exc_info:
            await notifier.notify(OTHER_WALLET, make_event())
        assert exc_info.value is ErrNotRegistered


class TestNotifierWelcome:
    async def test_welcome_sent(self, stores, registered) -> None:
        transport = LogTransport()
        notifier = _notifier(stores, transport)
        assert await notifier.send_welcome(registered) is True
        assert transport.sent[0].to == "alice@example.com"

    async def test_welcome_failure_swallowed(self, stores, registered) -> None:
        transport = AsyncMock()
        transport.send.side_effect = DeliveryError("smtp down")
        notifier = _notifier(stores, transport)
        assert await notifier.send_welcome(registered) is False


class TestNotifierMetrics:
    async def test_outcomes_counted(self, stores, registered, make_event) -> None:
        registrations, ledger = stores
        metrics = NotifierMetrics()
        notifier = Notifier(
            registrations, ledger, LogTransport(), NotifyConfig(), metrics=metrics
        )
        event = make_event()
        await notifier.notify(WALLET, event)
        await notifier.notify(WALLET, event)
        with pytest.raises(TranzError):
            await notifier.notify(OTHER_WALLET, event)

        def _value(outcome: str) -> float:
            return metrics.registry.get_sample_value(
                "tranz_notifications_total", {"outcome": outcome}
            )

        assert _value("notified") == 1.0
        assert _value("already_notified") == 1.0
        assert _value("not_registered") == 1.0
        assert _value("delivery_failed") == 0.0
        assert metrics.registry.get_sample_value("tranz_email_send_seconds_count") == 1.0
