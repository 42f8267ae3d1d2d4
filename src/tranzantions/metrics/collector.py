"""Metrics collector — Prometheus counters, gauges, histograms.

- ``tranz_notifications_total{outcome}`` counter
- ``tranz_registrations_total`` gauge
- ``tranz_email_send_seconds`` histogram
- ``tranz_cron_histogram{job_name}`` / ``tranz_cron_last_execution_gauge{job_name}``
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "tranz"

NOTIFICATION_OUTCOMES = (
    "notified",
    "already_notified",
    "not_registered",
    "delivery_failed",
)


class NotifierMetrics:
    """Owns a private registry so test instances never collide."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._notifications = Counter(
            f"{_PREFIX}_notifications_total",
            "Notification attempts by outcome",
            ("outcome",),
            registry=self._registry,
        )
        for outcome in NOTIFICATION_OUTCOMES:
            self._notifications.labels(outcome=outcome)

        self._registrations = Gauge(
            f"{_PREFIX}_registrations_total",
            "Registered wallet addresses",
            registry=self._registry,
        )
        self._email_send = Histogram(
            f"{_PREFIX}_email_send_seconds",
            "Duration of email transport calls",
            registry=self._registry,
        )
        self._cron_histogram = Histogram(
            f"{_PREFIX}_cron_histogram",
            "Duration of cron job executions",
            ("job_name",),
            registry=self._registry,
        )
        self._cron_last = Gauge(
            f"{_PREFIX}_cron_last_execution_gauge",
            "Timestamp of last cron execution",
            ("job_name",),
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def count_notification(self, outcome: str) -> None:
        self._notifications.labels(outcome=outcome).inc()

    def set_registration_count(self, count: int) -> None:
        self._registrations.set(count)

    @contextmanager
    def track_email_send(self) -> Iterator[None]:
        """Track the duration of one transport call."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._email_send.observe(time.monotonic() - start)

    @contextmanager
    def track_cron(self, job_name: str) -> Iterator[None]:
        """Track the duration of a cron job and record last execution time."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._cron_histogram.labels(job_name=job_name).observe(time.monotonic() - start)
            self._cron_last.labels(job_name=job_name).set(time.time())
