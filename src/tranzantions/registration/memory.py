"""In-memory registration store for offline or transitional operation."""

from __future__ import annotations

import threading
import uuid
from datetime import UTC, datetime

from tranzantions.errors.definitions import ErrDuplicateEmail, ErrDuplicateWallet
from tranzantions.registration.store import (
    Registration,
    normalize_email,
    normalize_wallet_address,
)


class MemoryRegistrationStore:
    """Process-local registration store. Contents are lost on restart."""

    def __init__(self) -> None:
        self._by_wallet: dict[str, Registration] = {}
        self._by_email: dict[str, Registration] = {}
        self._lock = threading.Lock()

    async def register(self, email: str, wallet_address: str) -> Registration:  # noqa: ASYNC910
        wallet = normalize_wallet_address(wallet_address)
        email = normalize_email(email)
        with self._lock:
            if wallet in self._by_wallet:
                raise ErrDuplicateWallet
            if email in self._by_email:
                raise ErrDuplicateEmail
            registration = Registration(
                user_id=str(uuid.uuid4()),
                email=email,
                wallet_address=wallet,
                created_at=datetime.now(UTC),
            )
            self._by_wallet[wallet] = registration
            self._by_email[email] = registration
        return registration

    async def lookup_by_wallet(self, wallet_address: str) -> Registration | None:  # noqa: ASYNC910
        with self._lock:
            return self._by_wallet.get(normalize_wallet_address(wallet_address))

    async def lookup_by_email(self, email: str) -> Registration | None:  # noqa: ASYNC910
        with self._lock:
            return self._by_email.get(normalize_email(email))

    async def count(self) -> int:  # noqa: ASYNC910
        with self._lock:
            return len(self._by_wallet)

    async def list_all(self) -> list[Registration]:  # noqa: ASYNC910
        with self._lock:
            return list(self._by_wallet.values())
