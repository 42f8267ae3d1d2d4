"""Transaction event model and input normalisation.

Events arrive from three sources (the notify endpoint, the webhook endpoint
and the Blockscout poller) in slightly different shapes. ``TransactionEvent``
is the one shape the notifier accepts.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

# Epoch values above this are milliseconds (Date.now()), below are seconds.
_MS_THRESHOLD = 1_000_000_000_000

# Matches the notification_history.transaction_hash column; an EVM hash is 66.
MAX_HASH_LENGTH = 66


class TransactionStatus(enum.StrEnum):
    """Lifecycle state of an observed transaction."""

    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> TransactionStatus:
        """Map loose status strings onto the enum; anything else is UNKNOWN."""
        if isinstance(raw, TransactionStatus):
            return raw
        if not isinstance(raw, str):
            return cls.UNKNOWN
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError:
            return _STATUS_ALIASES.get(value, cls.UNKNOWN)


_STATUS_ALIASES = {
    "ok": TransactionStatus.CONFIRMED,
    "success": TransactionStatus.CONFIRMED,
    "mined": TransactionStatus.CONFIRMED,
    "error": TransactionStatus.FAILED,
    "reverted": TransactionStatus.FAILED,
}


class TransactionType(enum.StrEnum):
    """Direction of a transaction relative to the registered wallet."""

    SENT = "sent"
    RECEIVED = "received"


def parse_value(raw: Any) -> int:
    """Normalise a transaction value to an integer in the smallest unit.

    Accepts ints, ``0x``-prefixed hex strings, decimal strings and integral
    floats. Anything else is logged and treated as zero.
    """
    if isinstance(raw, bool):
        logger.warning("Malformed transaction value %r, using 0", raw)
        return 0
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            logger.warning("Malformed transaction value %r, using 0", raw)
            return 0
    else:
        logger.warning("Malformed transaction value %r, using 0", raw)
        return 0

    if value < 0:
        logger.warning("Negative transaction value %r, using 0", raw)
        return 0
    return value


def parse_timestamp(raw: Any) -> datetime:
    """Normalise an ISO-8601 string, epoch seconds/milliseconds or datetime.

    Naive datetimes are assumed UTC. Unparseable input falls back to now.
    """
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=UTC)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        seconds = raw / 1000 if raw > _MS_THRESHOLD else raw
        try:
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError):
            logger.warning("Out-of-range timestamp %r, using now", raw)
            return datetime.now(UTC)
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        try:
            return parse_timestamp(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            logger.warning("Malformed timestamp %r, using now", raw)
            return datetime.now(UTC)
    return datetime.now(UTC)


def parse_block_number(raw: Any) -> int | None:
    """Block numbers may be ints, decimal or hex strings, or absent."""
    if raw is None or isinstance(raw, bool) or raw == "":
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class TransactionEvent:
    """A single observation of a transaction touching a registered wallet."""

    hash: str
    from_address: str
    to_address: str | None
    value: int = 0
    status: TransactionStatus = TransactionStatus.UNKNOWN
    block_number: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        *,
        default_status: TransactionStatus = TransactionStatus.UNKNOWN,
    ) -> TransactionEvent:
        """Build an event from a loosely-typed JSON payload.

        Recognises both camelCase (``blockNumber``) and snake_case keys.

        Raises:
            ValueError: If ``hash`` or ``from`` is missing or not a string,
                ``hash`` is longer than ``MAX_HASH_LENGTH``, or ``to`` is
                neither a string nor absent.
        """
        tx_hash = payload.get("hash")
        from_address = payload.get("from") or payload.get("from_address")
        to_address = payload.get("to") or payload.get("to_address") or None
        if not tx_hash or not from_address:
            msg = "transaction requires 'hash' and 'from'"
            raise ValueError(msg)
        if not isinstance(tx_hash, str) or not isinstance(from_address, str):
            msg = "transaction 'hash' and 'from' must be strings"
            raise ValueError(msg)
        if to_address is not None and not isinstance(to_address, str):
            msg = "transaction 'to' must be a string"
            raise ValueError(msg)
        if len(tx_hash) > MAX_HASH_LENGTH:
            msg = f"transaction hash longer than {MAX_HASH_LENGTH} characters"
            raise ValueError(msg)

        raw_status = payload.get("status")
        status = default_status if raw_status is None else TransactionStatus.parse(raw_status)
        block = payload.get("blockNumber", payload.get("block_number"))

        return cls(
            hash=tx_hash,
            from_address=from_address,
            to_address=to_address,
            value=parse_value(payload.get("value", 0)),
            status=status,
            block_number=parse_block_number(block),
            timestamp=parse_timestamp(payload.get("timestamp")),
        )

    def direction_for(self, wallet_address: str) -> TransactionType:
        """``sent`` if the wallet is the sender, otherwise ``received``."""
        if self.from_address.lower() == wallet_address.lower():
            return TransactionType.SENT
        return TransactionType.RECEIVED
