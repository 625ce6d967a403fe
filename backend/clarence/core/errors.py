"""
Domain exception hierarchy.

Every service error inherits from ClarenceError so the HTTP layer can
translate them with a single handler.  Each exception carries the status
code it maps to and a `details` dict with structured context for logs
and response bodies.
"""

from __future__ import annotations

from typing import Any


class ClarenceError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ─── 400 ──────────────────────────────────────
class ValidationError(ClarenceError):
    """Missing or malformed input the caller can correct."""

    status_code = 400


class NoCoveragesSelectedError(ValidationError):
    """Submit attempted with zero selected coverages."""
    pass


class InvalidCodeError(ValidationError):
    """A verification code did not match."""

    def __init__(self, message: str, *, attempts_remaining: int, **kwargs) -> None:
        self.attempts_remaining = attempts_remaining
        super().__init__(message, **kwargs)
        self.details.setdefault("attempts_remaining", attempts_remaining)


class QuoteExpiredError(ClarenceError):
    """The carrier quote is past its valid-until instant."""

    status_code = 400


class BindRejectedError(ClarenceError):
    """The carrier refused to bind the quote."""

    status_code = 400


# ─── 401 / 404 / 409 ──────────────────────────
class UnauthorizedError(ClarenceError):
    """Bad credentials, or a revoked / expired / malformed token."""

    status_code = 401


class NotFoundError(ClarenceError):
    """Unknown id or expired session."""

    status_code = 404


class ConflictError(ClarenceError):
    """Duplicate resource or an operation the current state forbids."""

    status_code = 409


class AlreadySubmittedError(ConflictError):
    """Quote request is no longer in draft."""
    pass


# ─── 423 / 429 ────────────────────────────────
class RateLimitedError(ClarenceError):
    """Too many requests within the rate window."""

    status_code = 429

    def __init__(self, message: str, *, retry_after: int | None = None, **kwargs) -> None:
        self.retry_after = retry_after
        super().__init__(message, **kwargs)
        if retry_after is not None:
            self.details.setdefault("retry_after", retry_after)


class TooManyAttemptsError(RateLimitedError):
    """A verification session exhausted its attempts."""
    pass


class AccountLockedError(RateLimitedError):
    """Login temporarily locked after repeated failures."""

    status_code = 423


# ─── Carrier integration ──────────────────────
class CarrierRequestError(ClarenceError):
    """Transport-level failure talking to a carrier API."""

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        carrier_code: str | None = None,
        http_status: int | None = None,
        response_body: str | None = None,
        timed_out: bool = False,
        **kwargs,
    ) -> None:
        self.carrier_code = carrier_code
        self.http_status = http_status
        self.response_body = response_body
        self.timed_out = timed_out
        super().__init__(message, **kwargs)


class CarrierQuoteFailure(ClarenceError):
    """One (carrier, coverage) quote call produced no usable quote.

    Internal only: the fan-out swallows it and the carrier simply
    contributes nothing for that coverage.
    """

    def __init__(
        self,
        message: str,
        *,
        carrier_code: str,
        coverage_type: str,
        **kwargs,
    ) -> None:
        self.carrier_code = carrier_code
        self.coverage_type = coverage_type
        super().__init__(message, **kwargs)


class StructuralProcessingError(ClarenceError):
    """Quote processing failed outside any single carrier branch."""

    def __init__(self, message: str, *, quote_request_id: str, **kwargs) -> None:
        self.quote_request_id = quote_request_id
        super().__init__(message, **kwargs)
