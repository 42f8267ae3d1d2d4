"""FastAPI dependency injection helpers.

Usage in a route::

    @router.get("/register")
    async def count(engine: Annotated[AlertEngine, Depends(get_engine)]) -> ...:
        ...
"""

from __future__ import annotations

from fastapi import Request

from tranzantions.engine.client import AlertEngine  # noqa: TC001
from tranzantions.errors.app_errors import StoreUnavailableError


def get_engine(request: Request) -> AlertEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        StoreUnavailableError: If the engine is not initialized.
    """
    engine: AlertEngine | None = getattr(request.app.state, "engine", None)
    if engine is None or not engine.is_initialized:
        msg = "service is not initialized"
        raise StoreUnavailableError(msg)
    return engine
