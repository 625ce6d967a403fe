"""
Map carrier response shapes onto canonical records.

Carriers answer with loosely-typed JSON.  The raw body is kept verbatim
on `CarrierQuote.carrier_response`; the functions here pull the typed
columns out of it without coercing missing values to zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from clarence.core.constants import CarrierQuoteStatus
from clarence.core.errors import BindRejectedError, CarrierQuoteFailure

_STATUS_MAP = {
    "quoted": CarrierQuoteStatus.QUOTED,
    "declined": CarrierQuoteStatus.DECLINED,
    "referred": CarrierQuoteStatus.REFERRED,
    "expired": CarrierQuoteStatus.EXPIRED,
}


def map_status(token: Any) -> CarrierQuoteStatus:
    """Carrier status token → canonical status; anything unknown is referred."""
    return _STATUS_MAP.get(str(token or "").strip().lower(), CarrierQuoteStatus.REFERRED)


def to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _pick_quote_entry(quotes: list[Any], coverage_type: str) -> dict[str, Any] | None:
    entries = [q for q in quotes if isinstance(q, dict)]
    for entry in entries:
        if entry.get("coverage_type") == coverage_type:
            return entry
    return entries[0] if entries else None


def normalize_quote(
    response: dict[str, Any],
    *,
    carrier_code: str,
    coverage_type: str,
    insurance_type: str | None,
    response_time_ms: int,
) -> dict[str, Any]:
    """
    Build CarrierQuote column values from one quote response.

    Raises CarrierQuoteFailure when the body carries no quote entry or no
    parseable `valid_until`.
    """
    quotes = response.get("quotes")
    entry = _pick_quote_entry(quotes, coverage_type) if isinstance(quotes, list) else None
    if entry is None:
        raise CarrierQuoteFailure(
            "No quote data returned from carrier",
            carrier_code=carrier_code,
            coverage_type=coverage_type,
        )

    quote_id = entry.get("quote_id")
    if not quote_id:
        raise CarrierQuoteFailure(
            "Carrier quote has no quote_id",
            carrier_code=carrier_code,
            coverage_type=coverage_type,
        )

    valid_until = parse_datetime(response.get("valid_until") or entry.get("valid_until"))
    if valid_until is None:
        raise CarrierQuoteFailure(
            "Carrier quote has no valid_until",
            carrier_code=carrier_code,
            coverage_type=coverage_type,
        )

    premium = entry.get("premium") if isinstance(entry.get("premium"), dict) else {}
    package_discount = response.get("package_discount")
    if not isinstance(package_discount, dict):
        package_discount = {}

    return {
        "carrier_quote_id": str(quote_id),
        "carrier_response": response,
        "status": map_status(entry.get("status")).value,
        "coverage_type": coverage_type,
        "insurance_type": insurance_type,
        # ── Premium ──
        "annual_premium": to_decimal(premium.get("annual")),
        "monthly_premium": to_decimal(premium.get("monthly")),
        "quarterly_premium": to_decimal(premium.get("quarterly")),
        "payment_in_full_discount": to_decimal(premium.get("payment_in_full_discount")),
        # ── Coverage ──
        "coverage_limits": entry.get("coverage_limits"),
        "deductible": to_decimal(entry.get("deductible")),
        "effective_date": parse_date(entry.get("effective_date")),
        "expiration_date": parse_date(entry.get("expiration_date")),
        "policy_form": entry.get("policy_form"),
        "highlights": entry.get("highlights"),
        "exclusions": entry.get("exclusions"),
        "optional_coverages": entry.get("optional_coverages"),
        "underwriting_notes": entry.get("underwriting_notes"),
        # ── Decline ──
        "decline_reason": entry.get("decline_reason"),
        "decline_code": entry.get("decline_code"),
        # ── Package ──
        "package_discount_percentage": to_decimal(package_discount.get("percentage")),
        "package_discount_amount": to_decimal(package_discount.get("amount")),
        "valid_until": valid_until,
        "cached": bool(response.get("cached", False)),
        "response_time_ms": response_time_ms,
    }


# ─── Bind ─────────────────────────────────────
@dataclass
class BindOutcome:
    """Canonical view of a carrier bind response."""

    policy_id: str
    policy_number: str
    bind_id: str | None
    status: str
    effective_date: date | None = None
    expiration_date: date | None = None
    policy_document_url: str | None = None
    declarations_url: str | None = None
    certificate_url: str | None = None
    carrier_contact: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)


def _document_url(documents: Any, doc_type: str) -> str | None:
    if not isinstance(documents, list):
        return None
    for doc in documents:
        if isinstance(doc, dict) and doc.get("type") == doc_type:
            return doc.get("url")
    return None


def parse_bind_response(response: dict[str, Any], *, carrier_code: str) -> BindOutcome:
    """
    Accept both `{policy: {...}, bind_id}` and a flat body.

    Anything other than status "bound" raises BindRejectedError with the
    carrier's message.
    """
    policy_data = response.get("policy") if isinstance(response.get("policy"), dict) else response
    status = str(policy_data.get("status") or response.get("status") or "").lower()

    if status != "bound":
        message = (
            response.get("error_message")
            or policy_data.get("error_message")
            or response.get("message")
            or f"Carrier {carrier_code} did not bind the quote (status={status or 'unknown'})"
        )
        raise BindRejectedError(
            str(message),
            details={"carrier_code": carrier_code, "carrier_status": status or None},
        )

    policy_id = policy_data.get("policy_id")
    policy_number = policy_data.get("policy_number") or policy_id
    if not policy_id or not policy_number:
        raise BindRejectedError(
            f"Carrier {carrier_code} bound without a policy identifier",
            details={"carrier_code": carrier_code},
        )

    documents = policy_data.get("documents")
    flat_documents = policy_data.get("policy_documents")
    if not isinstance(flat_documents, dict):
        flat_documents = {}

    contact = policy_data.get("carrier_contact")
    return BindOutcome(
        policy_id=str(policy_id),
        policy_number=str(policy_number),
        bind_id=response.get("bind_id") or policy_data.get("bind_id"),
        status=status,
        effective_date=parse_date(policy_data.get("effective_date")),
        expiration_date=parse_date(policy_data.get("expiration_date")),
        policy_document_url=_document_url(documents, "policy") or flat_documents.get("policy_url"),
        declarations_url=(
            _document_url(documents, "declarations") or flat_documents.get("declarations_url")
        ),
        certificate_url=(
            _document_url(documents, "certificate") or flat_documents.get("certificate_url")
        ),
        carrier_contact=contact if isinstance(contact, dict) else {},
        raw=response,
    )
