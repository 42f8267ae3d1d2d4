"""AlertEngine — central object owning stores, transport and notifier."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from tranzantions.config.settings import EmailBackend, StoreBackend

if TYPE_CHECKING:
    from tranzantions.chain.blockscout.client import BlockscoutClient
    from tranzantions.config.settings import AppConfig
    from tranzantions.datastore.client import Datastore
    from tranzantions.ledger.store import NotificationLedger
    from tranzantions.metrics.collector import NotifierMetrics
    from tranzantions.notifications.mailer import EmailTransport
    from tranzantions.notifications.notifier import Notifier
    from tranzantions.registration.store import RegistrationStore
    from tranzantions.taskmanager.manager import TaskManager
    from tranzantions.taskmanager.tasks import TransactionPoller

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class AlertEngine:
    """Owns infrastructure and services for the alert pipeline.

    ``store.backend`` selects durable (database) or in-memory stores; the
    notifier only ever sees the store protocols.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        transport: EmailTransport | None = None,
        metrics: NotifierMetrics | None = None,
        explorer: BlockscoutClient | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            transport: Email transport override; built from ``config.smtp``
                when omitted.
            metrics: Shared metrics collector; created when omitted and
                ``config.metrics.enabled``.
            explorer: Pre-built Blockscout client; built from
                ``config.explorer`` when omitted.
        """
        self._config = config
        self._initialized = False
        self._transport_override = transport
        self._metrics_override = metrics
        self._explorer_override = explorer

        self._datastore: Datastore | None = None
        self._registrations: RegistrationStore | None = None
        self._ledger: NotificationLedger | None = None
        self._transport: EmailTransport | None = None
        self._explorer: BlockscoutClient | None = None
        self._notifier: Notifier | None = None
        self._metrics: NotifierMetrics | None = None
        self._poller: TransactionPoller | None = None
        self._task_manager: TaskManager | None = None

    async def initialize(self) -> None:
        """Open stores, build services and start background jobs.

        Raises:
            RuntimeError: If already initialized.
            StoreUnavailableError: If the durable store cannot be provisioned.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        await self._init_stores()
        self._init_transport()

        from tranzantions.chain.blockscout.client import BlockscoutClient

        self._explorer = self._explorer_override or BlockscoutClient(
            self._config.explorer.api_url,
            api_key=self._config.explorer.api_key,
            timeout=self._config.explorer.timeout,
        )
        await self._explorer.connect()

        if self._metrics_override is not None:
            self._metrics = self._metrics_override
        elif self._config.metrics.enabled:
            from tranzantions.metrics.collector import NotifierMetrics

            self._metrics = NotifierMetrics()

        from tranzantions.notifications.notifier import Notifier

        assert self._registrations is not None
        assert self._ledger is not None
        assert self._transport is not None
        self._notifier = Notifier(
            self._registrations,
            self._ledger,
            self._transport,
            self._config.notify,
            explorer_tx_url=self._config.explorer.tx_url,
            metrics=self._metrics,
        )

        await self._init_tasks()

        self._initialized = True
        logger.info(
            "Engine initialized (store=%s, email=%s, poller=%s)",
            self._config.store.backend.value,
            type(self._transport).__name__,
            self._config.poller.enabled,
        )

    async def close(self) -> None:
        """Stop jobs and release connections. Idempotent."""
        if self._task_manager is not None:
            await self._task_manager.stop()
            self._task_manager = None
        self._poller = None
        self._notifier = None

        if self._explorer is not None:
            await self._explorer.close()
            self._explorer = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._registrations = None
        self._ledger = None
        self._transport = None
        self._metrics = None
        self._initialized = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def datastore(self) -> Datastore | None:
        """The datastore, or None when running on in-memory stores."""
        return self._datastore

    @property
    def registrations(self) -> RegistrationStore:
        if self._registrations is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._registrations

    @property
    def ledger(self) -> NotificationLedger:
        if self._ledger is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._ledger

    @property
    def transport(self) -> EmailTransport:
        if self._transport is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._transport

    @property
    def explorer(self) -> BlockscoutClient:
        if self._explorer is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._explorer

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._notifier

    @property
    def metrics(self) -> NotifierMetrics | None:
        return self._metrics

    @property
    def poller(self) -> TransactionPoller | None:
        """The polling event source (None if disabled)."""
        return self._poller

    @property
    def task_manager(self) -> TaskManager | None:
        return self._task_manager

    async def health_check(self) -> dict[str, str]:
        """Report component status ('ok', 'error', 'memory', 'not_initialized')."""
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "store": "unknown",
            "explorer": "unknown",
        }
        if not self._initialized:
            return status

        if self._datastore is None:
            status["store"] = "memory"
        else:
            status["store"] = "ok" if await self._datastore.ping() else "error"

        status["explorer"] = (
            "ok" if self._explorer and self._explorer.is_connected else "not_connected"
        )
        return status

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    async def _init_stores(self) -> None:
        store_cfg = self._config.store
        if store_cfg.backend is StoreBackend.MEMORY:
            from tranzantions.ledger.memory import MemoryNotificationLedger
            from tranzantions.registration.memory import MemoryRegistrationStore

            logger.warning("Using in-memory stores; registrations and ledger are not durable")
            self._registrations = MemoryRegistrationStore()
            self._ledger = MemoryNotificationLedger(
                store_cfg.ledger_capacity, store_cfg.ledger_retain
            )
            return

        from tranzantions.datastore.client import Datastore
        from tranzantions.ledger.database import DatabaseNotificationLedger
        from tranzantions.models import Base
        from tranzantions.registration.database import DatabaseRegistrationStore

        self._datastore = Datastore(self._config.db)
        await self._datastore.open(base=Base)
        self._registrations = DatabaseRegistrationStore(self._datastore)
        self._ledger = DatabaseNotificationLedger(self._datastore)

    def _init_transport(self) -> None:
        if self._transport_override is not None:
            self._transport = self._transport_override
            return

        from tranzantions.notifications.mailer import LogTransport, SMTPTransport

        if self._config.smtp.backend is EmailBackend.LOG:
            self._transport = LogTransport()
            return

        smtp = SMTPTransport(self._config.smtp)
        if not smtp.is_configured:
            logger.error("SMTP credentials not found; alert delivery will fail until configured")
        self._transport = smtp

    async def _init_tasks(self) -> None:
        from tranzantions.taskmanager.manager import CronJob, TaskManager
        from tranzantions.taskmanager.tasks import (
            CALCULATE_METRICS_PERIOD,
            TransactionPoller,
            task_calculate_metrics,
            task_poll_transactions,
        )

        assert self._explorer is not None
        assert self._registrations is not None
        assert self._notifier is not None

        self._poller = None
        manager = TaskManager(metrics=self._metrics)

        if self._config.poller.enabled:
            self._poller = TransactionPoller(self._explorer, self._registrations, self._notifier)
            manager.register(
                "poll_transactions",
                CronJob(
                    handler=partial(task_poll_transactions, self._poller),
                    period=self._config.poller.period,
                ),
            )
        if self._metrics is not None:
            manager.register(
                "calculate_metrics",
                CronJob(
                    handler=partial(task_calculate_metrics, self._registrations, self._metrics),
                    period=CALCULATE_METRICS_PERIOD,
                    run_immediately=True,
                ),
            )

        if manager.jobs:
            await manager.start()
            self._task_manager = manager
