"""Shared test fixtures for the tranzantions test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tranzantions.config.settings import (
    AppConfig,
    DatabaseConfig,
    DatabaseEngine,
    EmailBackend,
    MetricsConfig,
    NotifyConfig,
    SMTPConfig,
    StoreBackend,
    StoreConfig,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

WALLET = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"
OTHER_WALLET = "0x1111111111111111111111111111111111111111"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def app_config() -> AppConfig:
    """A test AppConfig: in-memory SQLite, logging email transport."""
    return AppConfig(
        debug=True,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn="sqlite+aiosqlite:///:memory:",
        ),
        store=StoreConfig(backend=StoreBackend.DATABASE),
        smtp=SMTPConfig(backend=EmailBackend.LOG),
        notify=NotifyConfig(welcome_email=True),
        metrics=MetricsConfig(enabled=True),
    )


@pytest.fixture
def memory_config(app_config: AppConfig) -> AppConfig:
    """Same as ``app_config`` but with the in-memory store backend."""
    return app_config.model_copy(update={"store": StoreConfig(backend=StoreBackend.MEMORY)})


@pytest.fixture
async def datastore(app_config: AppConfig) -> AsyncIterator:
    """An open Datastore over in-memory SQLite with all tables created."""
    from tranzantions.datastore.client import Datastore
    from tranzantions.models import Base

    ds = Datastore(app_config.db)
    await ds.open(base=Base)
    yield ds
    await ds.close()


@pytest.fixture
def log_transport():
    from tranzantions.notifications.mailer import LogTransport

    return LogTransport()


@pytest.fixture
def make_event():
    """Factory for ``TransactionEvent``s sent from ``WALLET`` to ``OTHER_WALLET``."""
    from tranzantions.notifications.events import TransactionEvent, TransactionStatus

    def _make(**overrides):
        fields = {
            "hash": TX_HASH,
            "from_address": WALLET,
            "to_address": OTHER_WALLET,
            "value": 10**18,
            "status": TransactionStatus.CONFIRMED,
            "block_number": 12345,
        }
        fields.update(overrides)
        return TransactionEvent(**fields)

    return _make
