"""Blockscout proxy endpoint.

Lets the browser dashboard read a wallet's transaction history without
exposing the explorer API key. The response always carries an ``items``
list, including on upstream failure.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from tranzantions.api.dependencies import get_engine
from tranzantions.engine.client import AlertEngine  # noqa: TC001
from tranzantions.errors.app_errors import ExplorerError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions"])


@router.get("/blockscout/transactions")
async def blockscout_transactions(
    engine: Annotated[AlertEngine, Depends(get_engine)],
    address: Annotated[str | None, Query()] = None,
    start_timestamp: Annotated[str | None, Query()] = None,
) -> JSONResponse:
    """Proxy ``GET /api/v2/addresses/{address}/transactions?filter=all``."""
    if not address:
        return JSONResponse(
            status_code=400, content={"error": "Wallet address is required", "items": []}
        )
    try:
        data = await engine.explorer.get_address_transactions(
            address, start_timestamp=start_timestamp
        )
    except ExplorerError as exc:
        logger.error("Blockscout proxy error for %s: %s", address, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "items": []})
    return JSONResponse(content=data)
