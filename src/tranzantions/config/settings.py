"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``TRANZ_``, nested via ``__``)
2. YAML config file (``TRANZ_CONFIG_PATH`` env var or ``AppConfig.from_yaml``)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class DatabaseEngine(enum.StrEnum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class StoreBackend(enum.StrEnum):
    """Backing technology for the registration store and notification ledger."""

    DATABASE = "database"
    MEMORY = "memory"


class EmailBackend(enum.StrEnum):
    """Email transport selection."""

    SMTP = "smtp"
    LOG = "log"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000


class DatabaseConfig(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_DB__",
        case_sensitive=False,
    )

    engine: DatabaseEngine = Field(
        default=DatabaseEngine.SQLITE,
        description="Database backend: sqlite or postgresql",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./tranzantions.db",
        description="Async database connection string",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    debug_sql: bool = False

    @model_validator(mode="after")
    def _check_dsn_matches_engine(self) -> Self:
        scheme = self.dsn.split(":", 1)[0].split("+", 1)[0].lower()
        if scheme == "postgres":
            scheme = DatabaseEngine.POSTGRESQL.value
        if scheme != self.engine.value:
            msg = f"dsn scheme {scheme!r} does not match engine {self.engine.value!r}"
            raise ValueError(msg)
        return self


class StoreConfig(BaseSettings):
    """Registration store / notification ledger selection."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_STORE__",
        case_sensitive=False,
    )

    backend: StoreBackend = Field(
        default=StoreBackend.DATABASE,
        description="database (durable) or memory (bounded, lost on restart)",
    )
    ledger_capacity: int = Field(default=1000, ge=1)
    ledger_retain: int = Field(default=500, ge=0)

    @model_validator(mode="after")
    def _check_retain(self) -> Self:
        if self.ledger_retain > self.ledger_capacity:
            msg = "ledger_retain must not exceed ledger_capacity"
            raise ValueError(msg)
        return self


class SMTPConfig(BaseSettings):
    """Outgoing email settings (Gmail defaults)."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_SMTP__",
        case_sensitive=False,
    )

    backend: EmailBackend = EmailBackend.SMTP
    host: str = "smtp.gmail.com"
    port: int = 587
    username: str = ""
    password: str = ""
    from_name: str = "TranzAntions"
    from_address: str = ""
    start_tls: bool = True
    timeout: float = 30.0

    @property
    def sender(self) -> str:
        """``"Name" <address>`` header value, falling back to the login account."""
        address = self.from_address or self.username
        if not address:
            return ""
        return f'"{self.from_name}" <{address}>'


class ExplorerConfig(BaseSettings):
    """Blockscout chain-indexing API settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_EXPLORER__",
        case_sensitive=False,
    )

    api_url: str = "https://base-sepolia.blockscout.com"
    api_key: str = ""
    tx_url: str = "https://sepolia.basescan.org/tx"
    timeout: float = 30.0


class NotifyConfig(BaseSettings):
    """Alert composition and destination policy."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_NOTIFY__",
        case_sensitive=False,
    )

    currency_symbol: str = "ETH"
    decimals: int = Field(default=18, ge=0)
    dev_fallback_enabled: bool = False
    dev_fallback_email: str = ""
    welcome_email: bool = True


class PollerConfig(BaseSettings):
    """Blockscout polling event source."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_POLLER__",
        case_sensitive=False,
    )

    enabled: bool = False
    period: float = 30.0


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``TRANZ_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRANZ_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    smtp: SMTPConfig = Field(default_factory=SMTPConfig)
    explorer: ExplorerConfig = Field(default_factory=ExplorerConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    poller: PollerConfig = Field(default_factory=PollerConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        for key, val in _load_yaml(config_path).items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
