"""Registration endpoints.

Associates one email address with one wallet address and reports how many
wallets are registered.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from tranzantions.api.dependencies import get_engine
from tranzantions.api.v1.schemas import (
    RegisterRequest,
    RegisterResponse,
    RegistrationCountResponse,
    RegistrationResponse,
)
from tranzantions.engine.client import AlertEngine  # noqa: TC001
from tranzantions.errors.definitions import ErrMissingFields
from tranzantions.registration.store import Registration, validate_registration_input

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])


def _registration_resp(r: Registration) -> RegistrationResponse:
    return RegistrationResponse(
        user_id=r.user_id,
        email=r.email,
        wallet_address=r.wallet_address,
        created_at=r.created_at,
    )


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    engine: Annotated[AlertEngine, Depends(get_engine)],
) -> dict:
    """Register an email address for a wallet address.

    Validation runs before any store access; the welcome email is best
    effort and never fails the registration.
    """
    if not body.email or not body.wallet_address:
        raise ErrMissingFields
    email, wallet = validate_registration_input(body.email, body.wallet_address)

    registration = await engine.registrations.register(email, wallet)
    logger.info("Registered %s for wallet %s", registration.email, registration.wallet_address)

    if engine.config.notify.welcome_email:
        await engine.notifier.send_welcome(registration)

    return RegisterResponse(
        message="Registration successful",
        registration=_registration_resp(registration),
    ).to_json()


@router.get("/register")
async def registration_count(
    engine: Annotated[AlertEngine, Depends(get_engine)],
) -> dict:
    """Number of registered wallets."""
    count = await engine.registrations.count()
    return RegistrationCountResponse(registered_users=count).to_json()
