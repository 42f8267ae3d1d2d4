"""Notification history endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from tranzantions.api.dependencies import get_engine
from tranzantions.api.v1.schemas import NotificationHistoryResponse, NotificationRecordResponse
from tranzantions.engine.client import AlertEngine  # noqa: TC001
from tranzantions.errors.definitions import ErrInvalidWalletAddress, ErrNotRegistered
from tranzantions.registration.store import is_valid_wallet_address, normalize_wallet_address

router = APIRouter(tags=["notifications"])


@router.get("/notifications/{wallet_address}")
async def notification_history(
    wallet_address: str,
    engine: Annotated[AlertEngine, Depends(get_engine)],
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> dict:
    """Most recent alert attempts for a registered wallet, newest first."""
    if not is_valid_wallet_address(wallet_address):
        raise ErrInvalidWalletAddress
    wallet = normalize_wallet_address(wallet_address)

    registration = await engine.registrations.lookup_by_wallet(wallet)
    if registration is None:
        raise ErrNotRegistered

    records = await engine.ledger.history(registration.user_id, limit=limit)
    items = [
        NotificationRecordResponse(
            transaction_hash=r.transaction_hash,
            transaction_type=str(r.transaction_type),
            transaction_status=str(r.transaction_status),
            email_status=str(r.email_status),
            sent_at=r.sent_at,
            error_message=r.error_message,
        )
        for r in records
    ]
    return NotificationHistoryResponse(wallet_address=wallet, items=items).to_json()
