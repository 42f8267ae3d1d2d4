"""Application entry point for the TranzAntions server."""

from __future__ import annotations

import os

import uvicorn

from tranzantions.config.settings import AppConfig


def main() -> None:
    """Start the TranzAntions server."""
    server = AppConfig().server
    reload = os.getenv("TRANZ_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "tranzantions.api.app:create_app",
        factory=True,
        host=server.host,
        port=server.port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
