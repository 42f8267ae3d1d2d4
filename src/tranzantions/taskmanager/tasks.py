"""Background task definitions — cron job handlers.

- ``poll_transactions`` (30 s) — Blockscout polling event source
- ``calculate_metrics`` (15 s) — registration count gauge
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tranzantions.errors.app_errors import (
    DeliveryError,
    ExplorerError,
    StoreUnavailableError,
    TranzError,
)
from tranzantions.errors.definitions import ErrNotRegistered
from tranzantions.notifications.events import parse_timestamp
from tranzantions.notifications.notifier import NotifyOutcome

if TYPE_CHECKING:
    from tranzantions.chain.blockscout.client import BlockscoutClient
    from tranzantions.metrics.collector import NotifierMetrics
    from tranzantions.notifications.events import TransactionEvent
    from tranzantions.notifications.notifier import Notifier
    from tranzantions.registration.store import RegistrationStore

logger = logging.getLogger(__name__)

CALCULATE_METRICS_PERIOD = 15


class TransactionPoller:
    """Polls Blockscout for every registered wallet and feeds the notifier.

    Only activity at or after the registration time is alerted on. Until a
    wallet has a cursor, ``start_timestamp`` is the registration time; after
    that it is the newest transaction already seen. Overlap at the cursor is
    harmless: the ledger drops repeats. Items older than the registration are
    also dropped locally.
    """

    def __init__(
        self,
        explorer: BlockscoutClient,
        registrations: RegistrationStore,
        notifier: Notifier,
    ) -> None:
        self._explorer = explorer
        self._registrations = registrations
        self._notifier = notifier
        self._cursors: dict[str, str] = {}

    def cursor(self, wallet_address: str) -> str | None:
        return self._cursors.get(wallet_address)

    async def poll_once(self) -> dict[str, int]:
        """Run one polling pass over all registrations.

        Returns:
            Counts of ``notified``, ``already_notified`` and ``failed`` events.
        """
        counts = {"notified": 0, "already_notified": 0, "failed": 0}
        for registration in await self._registrations.list_all():
            wallet = registration.wallet_address
            registered_at = parse_timestamp(registration.created_at)
            start = self._cursors.get(wallet) or registered_at.isoformat()
            try:
                events = await self._explorer.get_transaction_events(
                    wallet, start_timestamp=start
                )
            except ExplorerError as exc:
                logger.warning("Polling %s failed: %s", wallet, exc.message)
                continue

            events = [e for e in events if e.timestamp >= registered_at]
            for event in events:
                outcome = await self._dispatch(wallet, event)
                counts[outcome] += 1

            if events:
                newest = max(e.timestamp for e in events)
                self._cursors[wallet] = newest.isoformat()

        if counts["notified"] or counts["failed"]:
            logger.info(
                "Poll pass: %d notified, %d failed", counts["notified"], counts["failed"]
            )
        return counts

    async def _dispatch(self, wallet: str, event: TransactionEvent) -> str:
        try:
            outcome = await self._notifier.notify(wallet, event)
        except DeliveryError as exc:
            logger.warning("Alert for %s on %s not delivered: %s", event.hash, wallet, exc.message)
            return "failed"
        except TranzError as exc:
            if exc is not ErrNotRegistered:
                raise
            return "failed"
        if outcome is NotifyOutcome.ALREADY_NOTIFIED:
            return "already_notified"
        return "notified"


async def task_poll_transactions(poller: TransactionPoller) -> None:
    """Cron handler for the polling event source."""
    try:
        await poller.poll_once()
    except StoreUnavailableError as exc:
        logger.error("poll_transactions skipped: %s", exc.message)


async def task_calculate_metrics(
    registrations: RegistrationStore, metrics: NotifierMetrics
) -> None:
    """Push the registration count to its Prometheus gauge."""
    try:
        metrics.set_registration_count(await registrations.count())
    except StoreUnavailableError as exc:
        logger.error("calculate_metrics skipped: %s", exc.message)
