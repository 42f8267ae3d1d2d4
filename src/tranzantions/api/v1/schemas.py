"""V1 API request/response Pydantic schemas.

These are the *API-layer* schemas: the JSON contract uses camelCase keys
(``walletAddress``) while Python code uses snake_case. Endpoint code maps
between store entities and these models.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelModel):
    """POST /api/register.

    Both fields are optional at the schema level so a missing field is
    reported as ``missing-fields`` rather than a generic validation error.
    """

    email: str | None = None
    wallet_address: str | None = None


class RegistrationResponse(_CamelModel):
    user_id: str
    email: str
    wallet_address: str
    created_at: datetime


class RegisterResponse(_CamelModel):
    message: str
    registration: RegistrationResponse


class RegistrationCountResponse(_CamelModel):
    """GET /api/register."""

    registered_users: int


# ---------------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------------


class NotifyRequest(_CamelModel):
    """POST /api/notify — one transaction observed for one wallet."""

    wallet_address: str | None = None
    transaction: dict[str, Any] | None = None


class NotifyResponse(_CamelModel):
    outcome: str
    message: str


class WebhookResult(_CamelModel):
    """Outcome for a single webhook activity and wallet."""

    hash: str | None
    wallet_address: str | None
    outcome: str


class WebhookResponse(_CamelModel):
    results: list[WebhookResult]


class NotificationRecordResponse(_CamelModel):
    transaction_hash: str
    transaction_type: str
    transaction_status: str
    email_status: str
    sent_at: datetime
    error_message: str | None = None


class NotificationHistoryResponse(_CamelModel):
    wallet_address: str
    items: list[NotificationRecordResponse]
