"""Notifier — resolve, deduplicate, compose, send, record.

One call handles one observed transaction event for one wallet:

1. normalise the wallet address and resolve its registration
2. classify direction (sent / received)
3. skip if the ledger already holds ``(user, hash, status)``
4. compose and send the alert
5. record the attempt, successful or not

The notifier never retries; a failed send is recorded as ``failed`` and
reported once.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from tranzantions.errors.app_errors import DeliveryError, TranzError
from tranzantions.errors.definitions import ErrDuplicateNotification, ErrNotRegistered
from tranzantions.ledger.store import EmailStatus
from tranzantions.notifications.formatting import compose_transaction_alert, compose_welcome
from tranzantions.registration.store import normalize_wallet_address

if TYPE_CHECKING:
    from tranzantions.config.settings import NotifyConfig
    from tranzantions.ledger.store import NotificationLedger
    from tranzantions.metrics.collector import NotifierMetrics
    from tranzantions.notifications.events import TransactionEvent, TransactionType
    from tranzantions.notifications.mailer import EmailTransport
    from tranzantions.registration.store import Registration, RegistrationStore

logger = logging.getLogger(__name__)

DEV_FALLBACK_USER_ID = "dev-fallback"


class NotifyOutcome(enum.StrEnum):
    """Non-error results of ``Notifier.notify``."""

    NOTIFIED = "notified"
    ALREADY_NOTIFIED = "already_notified"


class Notifier:
    """Dispatches at most one alert per ``(user, transaction, status)``.

    Usage::

        notifier = Notifier(registrations, ledger, transport, config.notify)
        outcome = await notifier.notify("0xabc...", event)
    """

    def __init__(
        self,
        registrations: RegistrationStore,
        ledger: NotificationLedger,
        transport: EmailTransport,
        config: NotifyConfig,
        *,
        explorer_tx_url: str = "",
        metrics: NotifierMetrics | None = None,
    ) -> None:
        self._registrations = registrations
        self._ledger = ledger
        self._transport = transport
        self._config = config
        self._explorer_tx_url = explorer_tx_url
        self._metrics = metrics

    async def notify(self, wallet_address: str, event: TransactionEvent) -> NotifyOutcome:
        """Send an alert for *event* to the owner of *wallet_address*.

        Returns:
            ``NOTIFIED`` after a successful send, ``ALREADY_NOTIFIED`` if the
            triple was seen before.

        Raises:
            TranzError: ``ErrNotRegistered`` if no email is on file.
            DeliveryError: If the transport failed (the attempt is recorded).
            StoreUnavailableError: If a store could not be reached.
        """
        wallet = normalize_wallet_address(wallet_address)
        user_id, email = await self._resolve_destination(wallet)
        direction = event.direction_for(wallet)

        if await self._ledger.has_notified(user_id, event.hash, event.status):
            logger.debug("Already notified %s for %s (%s)", user_id, event.hash, event.status)
            self._count("already_notified")
            return NotifyOutcome.ALREADY_NOTIFIED

        content = compose_transaction_alert(
            email,
            event,
            direction,
            currency_symbol=self._config.currency_symbol,
            decimals=self._config.decimals,
            explorer_tx_url=self._explorer_tx_url,
        )

        try:
            if self._metrics:
                with self._metrics.track_email_send():
                    await self._transport.send(content)
            else:
                await self._transport.send(content)
        except DeliveryError as exc:
            await self._record_failure(user_id, event, direction, exc.message)
            self._count("delivery_failed")
            raise
        except Exception as exc:
            await self._record_failure(user_id, event, direction, str(exc))
            self._count("delivery_failed")
            raise DeliveryError(f"email delivery failed: {exc}", cause=exc) from exc

        try:
            await self._ledger.record_notification(
                user_id, event.hash, direction, event.status, EmailStatus.SENT
            )
        except TranzError as exc:
            if exc is not ErrDuplicateNotification:
                raise
            # A concurrent call recorded the same triple first.
            logger.warning("Concurrent alert for %s %s (%s)", user_id, event.hash, event.status)
            self._count("already_notified")
            return NotifyOutcome.ALREADY_NOTIFIED

        logger.info(
            "Alert sent to %s: %s %s (%s)", email, direction.value, event.hash, event.status.value
        )
        self._count("notified")
        return NotifyOutcome.NOTIFIED

    async def send_welcome(self, registration: Registration) -> bool:
        """Send the post-registration confirmation email.

        Failures are logged and reported as False; they never undo the
        registration.
        """
        content = compose_welcome(registration.email, registration.wallet_address)
        try:
            await self._transport.send(content)
        except Exception:
            logger.exception("Welcome email to %s failed", registration.email)
            return False
        return True

    async def _resolve_destination(self, wallet: str) -> tuple[str, str]:
        registration = await self._registrations.lookup_by_wallet(wallet)
        if registration is not None:
            return registration.user_id, registration.email

        if self._config.dev_fallback_enabled and self._config.dev_fallback_email:
            logger.warning(
                "No registration for %s, using development fallback %s",
                wallet,
                self._config.dev_fallback_email,
            )
            return DEV_FALLBACK_USER_ID, self._config.dev_fallback_email

        self._count("not_registered")
        raise ErrNotRegistered

    async def _record_failure(
        self, user_id: str, event: TransactionEvent, direction: TransactionType, error: str
    ) -> None:
        try:
            await self._ledger.record_notification(
                user_id,
                event.hash,
                direction,
                event.status,
                EmailStatus.FAILED,
                error,
            )
        except TranzError as exc:
            # The delivery error is what the caller must see.
            if exc is ErrDuplicateNotification:
                logger.warning("Failed send for %s %s already recorded", user_id, event.hash)
            else:
                logger.error("Could not record failed send for %s %s: %s", user_id, event.hash, exc)

    def _count(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.count_notification(outcome)
