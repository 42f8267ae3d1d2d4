"""Tests for the notification ledger backends."""

from __future__ import annotations

import asyncio

import pytest

from tranzantions.errors.app_errors import TranzError
from tranzantions.errors.definitions import ErrDuplicateNotification
from tranzantions.ledger.database import DatabaseNotificationLedger
from tranzantions.ledger.memory import MemoryNotificationLedger
from tranzantions.ledger.store import EmailStatus, dedup_key
from tranzantions.notifications.events import TransactionStatus, TransactionType

TX_HASH = "0x" + "ab" * 32


class TestDedupKey:
    def test_hash_case_insensitive(self) -> None:
        assert dedup_key("u1", TX_HASH.upper(), "confirmed") == dedup_key(
            "u1", TX_HASH, TransactionStatus.CONFIRMED
        )

    def test_status_distinguishes(self) -> None:
        assert dedup_key("u1", TX_HASH, TransactionStatus.PENDING) != dedup_key(
            "u1", TX_HASH, TransactionStatus.CONFIRMED
        )


@pytest.fixture(params=["memory", "database"])
async def ledger(request, datastore):
    if request.param == "memory":
        return MemoryNotificationLedger()
    return DatabaseNotificationLedger(datastore)


class TestNotificationLedger:
    async def test_record_then_has_notified(self, ledger) -> None:
        assert not await ledger.has_notified("u1", TX_HASH, TransactionStatus.CONFIRMED)
        record = await ledger.record_notification(
            "u1",
            TX_HASH,
            TransactionType.SENT,
            TransactionStatus.CONFIRMED,
            EmailStatus.SENT,
        )
        assert record.email_status is EmailStatus.SENT
        assert await ledger.has_notified("u1", TX_HASH, TransactionStatus.CONFIRMED)
        assert await ledger.has_notified("u1", TX_HASH.upper(), TransactionStatus.CONFIRMED)

    async def test_other_status_and_user_not_notified(self, ledger) -> None:
        await ledger.record_notification(
            "u1", TX_HASH, TransactionType.SENT, TransactionStatus.PENDING, EmailStatus.SENT
        )
        assert not await ledger.has_notified("u1", TX_HASH, TransactionStatus.CONFIRMED)
        assert not await ledger.has_notified("u2", TX_HASH, TransactionStatus.PENDING)

    async def test_duplicate_triple_raises_and_keeps_one(self, ledger) -> None:
        await ledger.record_notification(
            "u1", TX_HASH, TransactionType.SENT, TransactionStatus.CONFIRMED, EmailStatus.SENT
        )
        with pytest.raises(TranzError) as exc_info:
            await ledger.record_notification(
                "u1",
                TX_HASH.upper(),
                TransactionType.SENT,
                TransactionStatus.CONFIRMED,
                EmailStatus.FAILED,
                "boom",
            )
        assert exc_info.value is ErrDuplicateNotification

        history = await ledger.history("u1")
        assert len(history) == 1
        assert history[0].email_status is EmailStatus.SENT

    async def test_concurrent_records_for_same_triple(self, ledger) -> None:
        outcomes = await asyncio.gather(
            *(
                ledger.record_notification(
                    "u1",
                    TX_HASH,
                    TransactionType.RECEIVED,
                    TransactionStatus.CONFIRMED,
                    EmailStatus.SENT,
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        recorded = [o for o in outcomes if not isinstance(o, BaseException)]
        rejected = [o for o in outcomes if isinstance(o, BaseException)]
        assert len(recorded) == 1
        assert len(rejected) == 4
        assert all(o is ErrDuplicateNotification for o in rejected)
        assert len(await ledger.history("u1")) == 1

    async def test_failed_record_keeps_error(self, ledger) -> None:
        await ledger.record_notification(
            "u1",
            TX_HASH,
            TransactionType.RECEIVED,
            TransactionStatus.FAILED,
            EmailStatus.FAILED,
            "smtp down",
        )
        [record] = await ledger.history("u1")
        assert record.email_status is EmailStatus.FAILED
        assert record.error_message == "smtp down"
        assert record.transaction_type is TransactionType.RECEIVED

    async def test_history_newest_first_and_limited(self, ledger) -> None:
        for status in (
            TransactionStatus.PENDING,
            TransactionStatus.PROCESSING,
            TransactionStatus.CONFIRMED,
        ):
            await ledger.record_notification(
                "u1", TX_HASH, TransactionType.SENT, status, EmailStatus.SENT
            )
        history = await ledger.history("u1")
        assert [r.transaction_status for r in history] == [
            TransactionStatus.CONFIRMED,
            TransactionStatus.PROCESSING,
            TransactionStatus.PENDING,
        ]
        assert len(await ledger.history("u1", limit=2)) == 2
        assert await ledger.history("someone-else") == []


class TestMemoryLedgerBounds:
    async def test_1001_insertions_retain_newest_500(self) -> None:
        ledger = MemoryNotificationLedger()
        for i in range(1001):
            await ledger.record_notification(
                "u1",
                f"0x{i:064x}",
                TransactionType.SENT,
                TransactionStatus.CONFIRMED,
                EmailStatus.SENT,
            )
        assert len(ledger) == 500
        assert not await ledger.has_notified("u1", f"0x{500:064x}", TransactionStatus.CONFIRMED)
        assert await ledger.has_notified("u1", f"0x{501:064x}", TransactionStatus.CONFIRMED)
        assert await ledger.has_notified("u1", f"0x{1000:064x}", TransactionStatus.CONFIRMED)
