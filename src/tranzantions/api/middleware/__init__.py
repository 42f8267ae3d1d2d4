"""API middleware — CORS."""

from tranzantions.api.middleware.cors import setup_cors

__all__ = ["setup_cors"]
