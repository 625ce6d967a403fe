"""Shared constants and enums used across the application."""

from enum import StrEnum


class AccountStatus(StrEnum):
    """Lifecycle of a customer account."""

    ACTIVE = "active"
    LOCKED = "locked"
    SUSPENDED = "suspended"


class VerificationPurpose(StrEnum):
    """Why a one-time code was issued."""

    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


class TokenType(StrEnum):
    """The `type` claim carried by every issued JWT."""

    ACCESS = "access"
    REFRESH = "refresh"
    VERIFICATION = "verification"


class InsuranceType(StrEnum):
    PERSONAL = "personal"
    COMMERCIAL = "commercial"


class RequestType(StrEnum):
    NEW_COVERAGE = "new_coverage"
    RENEWAL = "renewal"


class AddressType(StrEnum):
    PHYSICAL = "physical"
    VIRTUAL = "virtual"


class QuoteRequestStatus(StrEnum):
    """
    Quote request lifecycle.

    draft → submitted → processing → quotes_ready.  processing falls back
    to draft on a structural failure.  The last three are set outside
    the quoting engine.
    """

    DRAFT = "draft"
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    QUOTES_READY = "quotes_ready"
    QUOTE_SELECTED = "quote_selected"
    PURCHASED = "purchased"
    EXPIRED = "expired"


class CarrierHealthStatus(StrEnum):
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    DOWN = "down"


class CarrierQuoteStatus(StrEnum):
    """Canonical status of one carrier answer."""

    QUOTED = "quoted"
    DECLINED = "declined"
    REFERRED = "referred"
    EXPIRED = "expired"


class PolicyStatus(StrEnum):
    BOUND = "bound"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    PENDING_CANCELLATION = "pending_cancellation"


class PaymentPlan(StrEnum):
    ANNUAL = "annual"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class DispatchMode(StrEnum):
    """How submitted quote requests are handed to background processing."""

    INLINE = "inline"
    CELERY = "celery"


# Installments left after binding, by plan (annual has no schedule)
PAYMENTS_PER_PLAN: dict[str, int | None] = {
    PaymentPlan.ANNUAL: None,
    PaymentPlan.MONTHLY: 12,
    PaymentPlan.QUARTERLY: 4,
}

FIRST_PAYMENT_GRACE_DAYS = 15
REQUESTED_EFFECTIVE_DATE_OFFSET_DAYS = 30
