"""Registration store contract, entity and input normalisation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - dataclass field type
from typing import Protocol

from tranzantions.errors.definitions import ErrInvalidEmail, ErrInvalidWalletAddress

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WALLET_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


@dataclass(frozen=True)
class Registration:
    """An email address registered against a wallet address."""

    user_id: str
    email: str
    wallet_address: str
    created_at: datetime


def normalize_wallet_address(wallet_address: str) -> str:
    """Lowercase and strip a wallet address."""
    return wallet_address.strip().lower()


def normalize_email(email: str) -> str:
    """Lowercase and strip an email address."""
    return email.strip().lower()


def is_valid_wallet_address(wallet_address: str) -> bool:
    return bool(_WALLET_RE.match(wallet_address.strip()))


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email.strip()))


def validate_registration_input(email: str, wallet_address: str) -> tuple[str, str]:
    """Validate and normalise registration input before any store access.

    Returns:
        ``(email, wallet_address)`` normalised.

    Raises:
        TranzError: ``ErrInvalidEmail`` or ``ErrInvalidWalletAddress``.
    """
    if not is_valid_email(email):
        raise ErrInvalidEmail
    if not is_valid_wallet_address(wallet_address):
        raise ErrInvalidWalletAddress
    return normalize_email(email), normalize_wallet_address(wallet_address)


class RegistrationStore(Protocol):
    """Maps a normalised wallet address to a notification email.

    Implementations raise ``ErrDuplicateWallet`` / ``ErrDuplicateEmail`` on
    conflicts and ``StoreUnavailableError`` when the backend is unreachable.
    """

    async def register(self, email: str, wallet_address: str) -> Registration: ...
    async def lookup_by_wallet(self, wallet_address: str) -> Registration | None: ...
    async def lookup_by_email(self, email: str) -> Registration | None: ...
    async def count(self) -> int: ...
    async def list_all(self) -> list[Registration]: ...
