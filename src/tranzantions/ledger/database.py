"""Durable notification ledger backed by the ``notification_history`` table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from tranzantions.errors.definitions import ErrDuplicateNotification
from tranzantions.ledger.store import EmailStatus, NotificationRecord
from tranzantions.models.notification_history import NotificationHistory
from tranzantions.notifications.events import TransactionStatus, TransactionType

if TYPE_CHECKING:
    from tranzantions.datastore.client import Datastore

logger = logging.getLogger(__name__)


def _to_record(row: NotificationHistory) -> NotificationRecord:
    return NotificationRecord(
        id=row.id,
        user_id=row.user_id,
        transaction_hash=row.transaction_hash,
        transaction_status=TransactionStatus.parse(row.transaction_status),
        transaction_type=TransactionType(row.transaction_type),
        email_status=EmailStatus(row.email_status),
        sent_at=row.sent_at,
        error_message=row.error_message,
    )


class DatabaseNotificationLedger:
    """Ledger whose at-most-once guarantee is the table's unique constraint.

    ``record_notification`` does not pre-check: of two concurrent inserts
    for the same triple the database accepts one and the other surfaces as
    ``ErrDuplicateNotification``.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def has_notified(
        self, user_id: str, transaction_hash: str, status: TransactionStatus
    ) -> bool:
        stmt = select(NotificationHistory.id).where(
            NotificationHistory.user_id == user_id,
            NotificationHistory.transaction_hash == transaction_hash.lower(),
            NotificationHistory.transaction_status == TransactionStatus.parse(status).value,
        )
        async with self._ds.scope("query notification history") as session:
            result = await session.execute(stmt.limit(1))
            return result.first() is not None

    async def record_notification(
        self,
        user_id: str,
        transaction_hash: str,
        transaction_type: TransactionType,
        status: TransactionStatus,
        email_status: EmailStatus,
        error_message: str | None = None,
    ) -> NotificationRecord:
        row = NotificationHistory(
            user_id=user_id,
            transaction_hash=transaction_hash.lower(),
            transaction_type=TransactionType(transaction_type).value,
            transaction_status=TransactionStatus.parse(status).value,
            email_status=EmailStatus(email_status).value,
            error_message=error_message,
        )
        try:
            async with self._ds.scope("record notification") as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except IntegrityError as exc:
            logger.debug("Duplicate notification %s/%s/%s", user_id, transaction_hash, status)
            raise ErrDuplicateNotification from exc
        return _to_record(row)

    async def history(self, user_id: str, *, limit: int = 50) -> list[NotificationRecord]:
        stmt = (
            select(NotificationHistory)
            .where(NotificationHistory.user_id == user_id)
            .order_by(NotificationHistory.sent_at.desc(), NotificationHistory.id.desc())
            .limit(limit)
        )
        async with self._ds.scope("load notification history") as session:
            result = await session.execute(stmt)
            return [_to_record(r) for r in result.scalars().all()]
