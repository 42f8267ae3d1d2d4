"""Chain-event webhook endpoint.

Accepts Alchemy-style address-activity payloads::

    {"event": {"activity": [{"hash": "0x..", "fromAddress": "0x..",
                             "toAddress": "0x..", "blockNum": "0x..",
                             "rawContract": {"rawValue": "0x.."}}]}}

``activity`` may also be a single object. Each activity is a mined
(``confirmed``) transaction and is offered to the notifier once for every
distinct wallet among its sender and recipient. Unregistered wallets are
skipped silently.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from tranzantions.api.dependencies import get_engine
from tranzantions.api.v1.schemas import WebhookResponse, WebhookResult
from tranzantions.engine.client import AlertEngine  # noqa: TC001
from tranzantions.errors.app_errors import DeliveryError, TranzError
from tranzantions.errors.definitions import ErrInvalidWebhookPayload, ErrNotRegistered
from tranzantions.notifications.events import TransactionEvent, TransactionStatus
from tranzantions.registration.store import normalize_wallet_address

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


def _activities(payload: Any) -> list[dict[str, Any]]:
    event = payload.get("event") if isinstance(payload, dict) else None
    activity = event.get("activity") if isinstance(event, dict) else None
    if isinstance(activity, dict):
        return [activity]
    if isinstance(activity, list) and activity:
        return [a for a in activity if isinstance(a, dict)]
    raise ErrInvalidWebhookPayload


def activity_to_event(activity: dict[str, Any]) -> TransactionEvent:
    """Convert one webhook activity into a confirmed ``TransactionEvent``.

    The exact wei amount in ``rawContract.rawValue`` wins over ``value``.

    Raises:
        ValueError: If the activity has no usable hash or sender, or a
            non-string recipient.
    """
    raw_contract = activity.get("rawContract")
    value = activity.get("value", 0)
    if isinstance(raw_contract, dict) and raw_contract.get("rawValue"):
        value = raw_contract["rawValue"]
    return TransactionEvent.from_payload(
        {
            "hash": activity.get("hash"),
            "from": activity.get("fromAddress"),
            "to": activity.get("toAddress"),
            "value": value,
            "blockNumber": activity.get("blockNum"),
            "timestamp": activity.get("timestamp"),
        },
        default_status=TransactionStatus.CONFIRMED,
    )


def _wallets(event: TransactionEvent) -> list[str]:
    wallets = [normalize_wallet_address(event.from_address)]
    if event.to_address:
        to = normalize_wallet_address(event.to_address)
        if to not in wallets:
            wallets.append(to)
    return wallets


async def _deliver(engine: AlertEngine, wallet: str, event: TransactionEvent) -> str:
    try:
        outcome = await engine.notifier.notify(wallet, event)
    except DeliveryError as exc:
        logger.warning("Webhook alert for %s on %s failed: %s", event.hash, wallet, exc.message)
        return "delivery_failed"
    except TranzError as exc:
        if exc is not ErrNotRegistered:
            raise
        return "not_registered"
    return outcome.value


@router.post("/webhook")
async def webhook(
    payload: Annotated[Any, Body()],
    engine: Annotated[AlertEngine, Depends(get_engine)],
) -> dict:
    """Process a batch of address activities."""
    results: list[WebhookResult] = []
    for activity in _activities(payload):
        try:
            event = activity_to_event(activity)
        except ValueError as exc:
            logger.warning("Skipping malformed webhook activity (%s): %r", exc, activity)
            raw_hash = activity.get("hash")
            results.append(
                WebhookResult(
                    hash=raw_hash if isinstance(raw_hash, str) else None,
                    wallet_address=None,
                    outcome="invalid",
                )
            )
            continue

        for wallet in _wallets(event):
            outcome = await _deliver(engine, wallet, event)
            if outcome == "not_registered":
                continue
            results.append(WebhookResult(hash=event.hash, wallet_address=wallet, outcome=outcome))

    return WebhookResponse(results=results).to_json()
