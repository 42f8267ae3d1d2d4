"""Notification ledger contract and record type.

A transaction is expected to move through several statuses
(pending -> confirmed, pending -> failed). Each transition is a distinct
notifiable event, but repeated observations of the same status must not
re-send. The deduplication key is therefore ``(user_id, hash, status)``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - dataclass field type
from typing import Protocol

from tranzantions.notifications.events import TransactionStatus, TransactionType


class EmailStatus(enum.StrEnum):
    """Outcome of the email dispatch a ledger record describes."""

    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class NotificationRecord:
    """An immutable entry in the notification ledger."""

    user_id: str
    transaction_hash: str
    transaction_status: TransactionStatus
    transaction_type: TransactionType
    email_status: EmailStatus
    sent_at: datetime
    error_message: str | None = None
    id: int | None = None

    @property
    def key(self) -> str:
        return dedup_key(self.user_id, self.transaction_hash, self.transaction_status)


def dedup_key(user_id: str, transaction_hash: str, status: TransactionStatus | str) -> str:
    """Canonical string form of the ``(user, hash, status)`` triple.

    Hashes compare case-insensitively.
    """
    return f"{user_id}:{transaction_hash.lower()}:{TransactionStatus.parse(status)}"


class NotificationLedger(Protocol):
    """Records which ``(user, hash, status)`` triples have produced an email.

    ``record_notification`` raises ``ErrDuplicateNotification`` rather than
    silently ignoring a repeat so callers can tell "already sent" from
    "send failed".
    """

    async def has_notified(
        self, user_id: str, transaction_hash: str, status: TransactionStatus
    ) -> bool: ...

    async def record_notification(
        self,
        user_id: str,
        transaction_hash: str,
        transaction_type: TransactionType,
        status: TransactionStatus,
        email_status: EmailStatus,
        error_message: str | None = None,
    ) -> NotificationRecord: ...

    async def history(self, user_id: str, *, limit: int = 50) -> list[NotificationRecord]: ...
