"""Pre-defined error instances raised by stores, notifier and API."""

from __future__ import annotations

from tranzantions.errors.app_errors import TranzError

# -- Validation ------------------------------------------------------------

ErrMissingFields = TranzError(
    "email and wallet address are required", status_code=400, code="missing-fields"
)
ErrInvalidEmail = TranzError("invalid email format", status_code=400, code="invalid-email")
ErrInvalidWalletAddress = TranzError(
    "invalid wallet address format", status_code=400, code="invalid-wallet-address"
)
ErrInvalidTransaction = TranzError(
    "wallet address and transaction details are required",
    status_code=400,
    code="invalid-transaction",
)
ErrInvalidWebhookPayload = TranzError(
    "invalid webhook payload", status_code=400, code="invalid-webhook-payload"
)

# -- Registration ----------------------------------------------------------

ErrDuplicateWallet = TranzError(
    "wallet address already registered", status_code=409, code="duplicate-wallet"
)
ErrDuplicateEmail = TranzError("email already registered", status_code=409, code="duplicate-email")
ErrNotRegistered = TranzError(
    "no registered email for this wallet", status_code=404, code="not-registered"
)

# -- Ledger ----------------------------------------------------------------

ErrDuplicateNotification = TranzError(
    "notification already recorded for this transaction status",
    status_code=409,
    code="duplicate-notification",
)
