"""Build carrier-specific request payloads from canonical records."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from clarence.core.constants import REQUESTED_EFFECTIVE_DATE_OFFSET_DAYS
from clarence.db.models.carrier_quote import CarrierQuote
from clarence.db.models.quote_request import QuoteRequest

DEFAULT_LIMITS: dict[str, dict[str, int]] = {
    "general_liability": {"per_occurrence": 1_000_000, "general_aggregate": 2_000_000},
    "professional_liability": {"per_claim": 1_000_000, "aggregate": 2_000_000},
    "cyber_liability": {"per_incident": 1_000_000, "aggregate": 2_000_000},
    "workers_comp": {
        "each_accident": 1_000_000,
        "disease_policy_limit": 1_000_000,
        "disease_each_employee": 1_000_000,
    },
    "commercial_property": {"building": 1_000_000, "business_personal_property": 500_000},
    "business_auto": {"combined_single_limit": 1_000_000},
}
FALLBACK_LIMITS = {"per_occurrence": 1_000_000, "aggregate": 2_000_000}

DEFAULT_DEDUCTIBLES: dict[str, int] = {
    "general_liability": 500,
    "professional_liability": 5000,
    "cyber_liability": 10000,
    "workers_comp": 0,
    "commercial_property": 1000,
    "business_auto": 500,
}
FALLBACK_DEDUCTIBLE = 1000


def default_limits(coverage_type: str) -> dict[str, int]:
    return dict(DEFAULT_LIMITS.get(coverage_type, FALLBACK_LIMITS))


def default_deductible(coverage_type: str) -> int:
    return DEFAULT_DEDUCTIBLES.get(coverage_type, FALLBACK_DEDUCTIBLE)


def requested_effective_date(today: date | None = None) -> date:
    today = today or datetime.now(timezone.utc).date()
    return today + timedelta(days=REQUESTED_EFFECTIVE_DATE_OFFSET_DAYS)


def _number(value: Decimal | int | float | None) -> float | int:
    if value is None:
        return 0
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def build_quote_payload(
    quote_request: QuoteRequest,
    coverage_type: str,
    *,
    today: date | None = None,
) -> dict[str, Any]:
    """Payload for POST /carriers/{code}/quote — one coverage per call."""
    return {
        "quote_request_id": f"qr_{uuid.uuid4().hex}",
        "insurance_type": quote_request.insurance_type,
        "business_info": {
            "legal_name": quote_request.legal_business_name,
            "industry": quote_request.industry,
            "industry_code": quote_request.industry_code,
            "year_started": quote_request.year_started,
            "address": {
                "street": quote_request.street_address,
                "city": quote_request.city,
                "state": quote_request.state,
                "zip": quote_request.zip_code,
            },
            "financial_info": {
                "annual_revenue": _number(quote_request.revenue_current_year),
                "annual_payroll": _number(quote_request.total_payroll),
                "full_time_employees": quote_request.full_time_employees or 0,
            },
            "contact_info": {
                "first_name": quote_request.contact_first_name,
                "last_name": quote_request.contact_last_name,
                "email": quote_request.contact_email,
                "phone": quote_request.contact_phone,
            },
        },
        "coverage_requests": [
            {
                "coverage_type": coverage_type,
                "requested_limits": default_limits(coverage_type),
                "requested_deductible": default_deductible(coverage_type),
                "effective_date": requested_effective_date(today).isoformat(),
            }
        ],
        "additional_data": {
            "prior_coverage": False,
            "claims_history": [],
            "credit_score_tier": "good",
        },
    }


def format_insured_address(quote_request: QuoteRequest | None) -> str:
    if quote_request is None:
        return "Address not available"
    street = quote_request.street_address or ""
    if quote_request.address_unit:
        street = f"{street} {quote_request.address_unit}"
    return f"{street}, {quote_request.city}, {quote_request.state} {quote_request.zip_code}"


def build_bind_payload(
    quote: CarrierQuote,
    quote_request: QuoteRequest | None,
    *,
    payment_plan: str,
    payment_method_ref: str | None,
    signer_ip: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Payload for POST /carriers/{code}/bind."""
    now = now or datetime.now(timezone.utc)
    effective_date = quote.effective_date or requested_effective_date(now.date())

    contact: dict[str, Any] = {}
    billing_address: dict[str, Any] = {}
    if quote_request is not None:
        contact = {
            "first_name": quote_request.contact_first_name,
            "last_name": quote_request.contact_last_name,
            "email": quote_request.contact_email,
            "phone": quote_request.contact_phone,
        }
        billing_address = {
            "street": quote_request.street_address,
            "city": quote_request.city,
            "state": quote_request.state,
            "zip": quote_request.zip_code,
        }

    full_name = " ".join(
        part for part in (contact.get("first_name"), contact.get("last_name")) if part
    )

    return {
        "quote_id": quote.carrier_quote_id,
        "effective_date": effective_date.isoformat(),
        "payment_plan": payment_plan,
        "payment_info": {
            "method": "credit_card",
            "token": payment_method_ref,
            "billing_address": billing_address,
        },
        "insured_info": {"primary_contact": contact},
        "signature": {
            "full_name": full_name,
            "signed_at": now.isoformat(),
            "ip_address": signer_ip,
        },
    }
