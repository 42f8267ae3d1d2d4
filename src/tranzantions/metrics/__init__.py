"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from tranzantions.metrics.collector import NotifierMetrics

__all__ = ["NotifierMetrics"]
