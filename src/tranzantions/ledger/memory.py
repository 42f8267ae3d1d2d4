"""Bounded in-memory notification ledger.

Used when no durable backend is provisioned. Trades durability (lost on
restart, oldest keys evicted) for availability.
"""

from __future__ import annotations

from datetime import UTC, datetime

from tranzantions.cache.bounded import DEFAULT_CAPACITY, DEFAULT_RETAIN, BoundedKeyCache
from tranzantions.errors.definitions import ErrDuplicateNotification
from tranzantions.ledger.store import (
    EmailStatus,
    NotificationRecord,
    dedup_key,
)
from tranzantions.notifications.events import TransactionStatus, TransactionType


class MemoryNotificationLedger:
    """Ledger over a ``BoundedKeyCache`` keyed by the canonical triple."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, retain: int = DEFAULT_RETAIN) -> None:
        self._cache: BoundedKeyCache[NotificationRecord] = BoundedKeyCache(capacity, retain)

    def __len__(self) -> int:
        return len(self._cache)

    async def has_notified(  # noqa: ASYNC910
        self, user_id: str, transaction_hash: str, status: TransactionStatus
    ) -> bool:
        return dedup_key(user_id, transaction_hash, status) in self._cache

    async def record_notification(  # noqa: ASYNC910
        self,
        user_id: str,
        transaction_hash: str,
        transaction_type: TransactionType,
        status: TransactionStatus,
        email_status: EmailStatus,
        error_message: str | None = None,
    ) -> NotificationRecord:
        record = NotificationRecord(
            user_id=user_id,
            transaction_hash=transaction_hash,
            transaction_status=TransactionStatus.parse(status),
            transaction_type=TransactionType(transaction_type),
            email_status=EmailStatus(email_status),
            sent_at=datetime.now(UTC),
            error_message=error_message,
        )
        if not self._cache.add(record.key, record):
            raise ErrDuplicateNotification
        return record

    async def history(  # noqa: ASYNC910
        self, user_id: str, *, limit: int = 50
    ) -> list[NotificationRecord]:
        records = [r for r in self._cache.values() if r.user_id == user_id]
        records.reverse()
        return records[:limit]
