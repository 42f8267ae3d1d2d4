"""Durable registration store backed by the ``users`` table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from tranzantions.errors.definitions import ErrDuplicateEmail, ErrDuplicateWallet
from tranzantions.models.user import User
from tranzantions.registration.store import (
    Registration,
    normalize_email,
    normalize_wallet_address,
)

if TYPE_CHECKING:
    from tranzantions.datastore.client import Datastore

logger = logging.getLogger(__name__)


def _to_registration(user: User) -> Registration:
    return Registration(
        user_id=user.id,
        email=user.email,
        wallet_address=user.wallet_address,
        created_at=user.created_at,
    )


class DatabaseRegistrationStore:
    """Registration store over the ``users`` table.

    The unique indexes on ``wallet_address`` and ``email`` back up the
    pre-insert checks when two registrations race.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def register(self, email: str, wallet_address: str) -> Registration:
        """Persist a new registration.

        Raises:
            TranzError: ``ErrDuplicateWallet`` or ``ErrDuplicateEmail``.
            StoreUnavailableError: If the database cannot be reached.
        """
        wallet = normalize_wallet_address(wallet_address)
        email = normalize_email(email)

        if await self.lookup_by_wallet(wallet) is not None:
            raise ErrDuplicateWallet
        if await self.lookup_by_email(email) is not None:
            raise ErrDuplicateEmail

        user = User(email=email, wallet_address=wallet)
        try:
            async with self._ds.scope("create registration") as session:
                session.add(user)
                await session.commit()
                await session.refresh(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent registration.
            if await self.lookup_by_wallet(wallet) is not None:
                raise ErrDuplicateWallet from exc
            raise ErrDuplicateEmail from exc

        logger.info("Registered %s for wallet %s", email, wallet)
        return _to_registration(user)

    async def lookup_by_wallet(self, wallet_address: str) -> Registration | None:
        wallet = normalize_wallet_address(wallet_address)
        return await self._find_one(select(User).where(User.wallet_address == wallet))

    async def lookup_by_email(self, email: str) -> Registration | None:
        return await self._find_one(select(User).where(User.email == normalize_email(email)))

    async def count(self) -> int:
        async with self._ds.scope("count registrations") as session:
            result = await session.execute(select(func.count(User.id)))
            return result.scalar() or 0

    async def list_all(self) -> list[Registration]:
        async with self._ds.scope("list registrations") as session:
            result = await session.execute(select(User).order_by(User.created_at))
            return [_to_registration(u) for u in result.scalars().all()]

    async def _find_one(self, stmt) -> Registration | None:  # type: ignore[no-untyped-def]
        async with self._ds.scope("query registrations") as session:
            user = (await session.execute(stmt)).scalar_one_or_none()
        return None if user is None else _to_registration(user)
