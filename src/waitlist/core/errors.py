"""Error hierarchy for the waitlist service.

Every failure surfaced to the routing layer is one of the kinds below. Each
carries the HTTP status and the public message the API returns; internal
details stay in the logs.
"""

from __future__ import annotations

from typing import Any


class WaitlistError(Exception):
    """Base exception for all waitlist failures."""

    status_code: int = 500
    public_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_response(self) -> dict[str, Any]:
        """Return the JSON body sent to the caller."""
        return {"detail": self.message}

    def headers(self) -> dict[str, str]:
        """Return extra response headers."""
        return {}


class ClaimsValidationError(WaitlistError):
    """Malformed or missing claims, reported with field detail."""

    status_code = 400
    public_message = "Invalid request"

    def __init__(self, violations: dict[str, str], message: str | None = None) -> None:
        super().__init__(message)
        self.violations = dict(violations)

    def to_response(self) -> dict[str, Any]:
        return {"detail": self.message, "fields": self.violations}


class OutOfRangeError(WaitlistError):
    """Pagination window outside the stored participant list."""

    status_code = 400
    public_message = "Offset or limit out of range"


class UnauthorizedError(WaitlistError):
    """Fingerprint mismatch or invalid token. Never carries detail."""

    status_code = 401
    public_message = "Unauthorized"

    def __init__(self) -> None:
        super().__init__(None)


class ConflictError(WaitlistError):
    """Identity already registered."""

    status_code = 409
    public_message = "Identity already registered"


class PreconditionFailedError(WaitlistError):
    """Referrer is not a known participant."""

    status_code = 412
    public_message = "Referrer not found"


class ThrottledError(WaitlistError):
    """Admission limiter exhausted for the client key."""

    status_code = 429
    public_message = "Too Many Requests"

    def __init__(self, retry_after: int | None = None) -> None:
        super().__init__(None)
        self.retry_after = retry_after

    def headers(self) -> dict[str, str]:
        if self.retry_after is None:
            return {}
        return {"Retry-After": str(self.retry_after)}


class UnavailableError(WaitlistError):
    """Durable store or other dependency fault.

    The message passed in is logged by the caller; the response stays generic.
    """

    status_code = 500
    public_message = "Internal Server Error"

    def to_response(self) -> dict[str, Any]:
        return {"detail": self.public_message}
