"""User model — one registration per wallet address."""

from __future__ import annotations

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from tranzantions.models.base import Base, CreatedAtMixin


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base, CreatedAtMixin):
    """A wallet address registered for email alerts.

    ``wallet_address`` is stored lowercase; both it and ``email`` are unique.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(42), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id} wallet={self.wallet_address}>"
