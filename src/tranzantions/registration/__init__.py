"""Registration store — wallet address to notification email."""

from __future__ import annotations

from tranzantions.registration.database import DatabaseRegistrationStore
from tranzantions.registration.memory import MemoryRegistrationStore
from tranzantions.registration.store import (
    Registration,
    RegistrationStore,
    normalize_wallet_address,
    validate_registration_input,
)

__all__ = [
    "DatabaseRegistrationStore",
    "MemoryRegistrationStore",
    "Registration",
    "RegistrationStore",
    "normalize_wallet_address",
    "validate_registration_input",
]
