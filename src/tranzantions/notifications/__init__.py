"""Notifications — transaction events, alert composition and email dispatch.

Provides:
- ``TransactionEvent`` — normalised observation of a transaction
- ``Notifier`` — dedup-checked alert delivery (``notifications.notifier``)
- ``SMTPTransport`` / ``LogTransport`` — email transports (``notifications.mailer``)
"""

from __future__ import annotations

from tranzantions.notifications.events import (
    TransactionEvent,
    TransactionStatus,
    TransactionType,
)

__all__ = ["TransactionEvent", "TransactionStatus", "TransactionType"]
