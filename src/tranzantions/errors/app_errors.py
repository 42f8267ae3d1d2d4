"""TranzError — base exception class for all service errors."""

from __future__ import annotations


class TranzError(Exception):
    """Base error for registration and notification operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "tranz-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class StoreUnavailableError(TranzError):
    """The backing store is unreachable or its schema is not provisioned.

    Distinct from a lookup miss so callers can tell "not registered"
    from "broken setup".
    """

    def __init__(self, message: str = "backing store unavailable") -> None:
        super().__init__(message, status_code=503, code="store-unavailable")


class DeliveryError(TranzError):
    """Email transport failed to deliver an alert."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message, status_code=500, code="delivery-failed")
        self.cause = cause


class ExplorerError(TranzError):
    """Error from the chain-indexing (Blockscout) API."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="explorer-error")
