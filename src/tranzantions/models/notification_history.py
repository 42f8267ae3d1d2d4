"""Notification history — one row per (user, transaction, status) alert."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import (
    BigInteger,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from tranzantions.models.base import Base, utcnow
from tranzantions.notifications.events import MAX_HASH_LENGTH


class NotificationHistory(Base):
    """A sent (or attempted) alert email.

    The unique constraint on ``(user_id, transaction_hash, transaction_status)``
    is what guarantees at-most-once delivery across processes.
    """

    __tablename__ = "notification_history"
    __table_args__ = (UniqueConstraint("user_id", "transaction_hash", "transaction_status"),)

    # SQLite only autoincrements INTEGER PRIMARY KEY
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    transaction_hash: Mapped[str] = mapped_column(
        String(MAX_HASH_LENGTH), nullable=False, index=True
    )
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    transaction_status: Mapped[str] = mapped_column(String(16), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    email_status: Mapped[str] = mapped_column(String(16), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    def __repr__(self) -> str:
        return (
            f"<NotificationHistory user={self.user_id} tx={self.transaction_hash[:12]}... "
            f"status={self.transaction_status} email={self.email_status}>"
        )
