"""Notification ledger — at-most-once bookkeeping for alert emails."""

from __future__ import annotations

from tranzantions.ledger.database import DatabaseNotificationLedger
from tranzantions.ledger.memory import MemoryNotificationLedger
from tranzantions.ledger.store import EmailStatus, NotificationLedger, NotificationRecord

__all__ = [
    "DatabaseNotificationLedger",
    "EmailStatus",
    "MemoryNotificationLedger",
    "NotificationLedger",
    "NotificationRecord",
]
