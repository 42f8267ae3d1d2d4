"""Direct notification endpoint.

``POST /api/notify`` hands one transaction for one wallet to the notifier.
Unlike the webhook and poller sources, a wallet without a registration is
reported to the caller as 404.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from tranzantions.api.dependencies import get_engine
from tranzantions.api.v1.schemas import NotifyRequest, NotifyResponse
from tranzantions.engine.client import AlertEngine  # noqa: TC001
from tranzantions.errors.definitions import ErrInvalidTransaction
from tranzantions.notifications.events import TransactionEvent
from tranzantions.notifications.notifier import NotifyOutcome

router = APIRouter(tags=["notify"])

_MESSAGES = {
    NotifyOutcome.NOTIFIED: "Alert sent successfully",
    NotifyOutcome.ALREADY_NOTIFIED: "Alert already sent for this transaction status",
}


@router.post("/notify")
async def notify(
    body: NotifyRequest,
    engine: Annotated[AlertEngine, Depends(get_engine)],
) -> dict:
    """Send an alert for a transaction touching a registered wallet."""
    if not body.wallet_address or not body.transaction:
        raise ErrInvalidTransaction
    try:
        event = TransactionEvent.from_payload(body.transaction)
    except ValueError as exc:
        raise ErrInvalidTransaction from exc

    outcome = await engine.notifier.notify(body.wallet_address, event)
    return NotifyResponse(outcome=outcome.value, message=_MESSAGES[outcome]).to_json()
