"""
PolicyService — bind a carrier quote into a policy, then read / cancel.

Binding is at most once per CarrierQuote: an existing policy for the
quote is rejected up front, and the UNIQUE constraint on
`policies.carrier_quote_id` rejects a concurrent bind that slips past
the pre-check.
"""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError

from clarence.carriers.client import CarrierClient
from clarence.carriers.normalizer import BindOutcome, parse_bind_response
from clarence.carriers.payloads import build_bind_payload, format_insured_address
from clarence.core.constants import (
    FIRST_PAYMENT_GRACE_DAYS,
    PAYMENTS_PER_PLAN,
    CarrierQuoteStatus,
    PaymentPlan,
    PolicyStatus,
)
from clarence.core.errors import (
    BindRejectedError,
    CarrierRequestError,
    ConflictError,
    NotFoundError,
    QuoteExpiredError,
    ValidationError,
)
from clarence.core.logging import get_logger
from clarence.db.models.carrier_quote import CarrierQuote
from clarence.db.models.policy import Policy
from clarence.db.session import SessionFactory
from clarence.repositories import carrier_quotes as carrier_quote_repository
from clarence.repositories import policies as policy_repository
from clarence.repositories import quote_requests as quote_request_repository

logger = get_logger(__name__)


def monthly_amount_for(quote: CarrierQuote, payment_plan: str) -> Decimal | None:
    """Carrier monthly premium, else ceil(annual / 12); monthly plans only."""
    if payment_plan != PaymentPlan.MONTHLY:
        return None
    if quote.monthly_premium:
        return Decimal(quote.monthly_premium)
    if quote.annual_premium is None:
        return None
    return Decimal(math.ceil(Decimal(quote.annual_premium) / 12))


def payment_schedule(
    effective_date: date | None,
    payment_plan: str,
) -> tuple[date | None, int | None]:
    """(first_payment_due, payments_remaining)."""
    first_payment_due = (
        effective_date + timedelta(days=FIRST_PAYMENT_GRACE_DAYS) if effective_date else None
    )
    return first_payment_due, PAYMENTS_PER_PLAN.get(payment_plan)


class PolicyService:
    def __init__(self, *, session_factory: SessionFactory, client: CarrierClient) -> None:
        self._session_factory = session_factory
        self._client = client

    # ─── Bind ─────────────────────────────────────
    async def bind(
        self,
        carrier_quote_id: uuid.UUID,
        user_id: uuid.UUID,
        payment_plan: str,
        *,
        auto_renewal: bool = True,
        payment_method_ref: str | None = None,
        signer_ip: str | None = None,
    ) -> Policy:
        if payment_plan not in set(PaymentPlan):
            raise ValidationError(f"Unknown payment plan: {payment_plan}")

        log = logger.bind(carrier_quote_id=str(carrier_quote_id), user_id=str(user_id))

        async with self._session_factory() as db:
            quote = await carrier_quote_repository.get_carrier_quote(db, carrier_quote_id)
            if quote is None:
                raise NotFoundError("Quote not found", details={"carrier_quote_id": str(carrier_quote_id)})

            if quote.is_expired():
                raise QuoteExpiredError(
                    "Quote has expired",
                    details={"valid_until": quote.valid_until.isoformat()},
                )
            if quote.status != CarrierQuoteStatus.QUOTED:
                raise ValidationError(
                    "Quote cannot be bound",
                    details={"status": quote.status},
                )
            if await policy_repository.get_policy_for_quote(db, quote.id):
                raise ConflictError("Quote has already been bound")

            quote_request = await quote_request_repository.get_quote_request(
                db, quote.quote_request_id
            )

        carrier = quote.carrier
        payload = build_bind_payload(
            quote,
            quote_request,
            payment_plan=payment_plan,
            payment_method_ref=payment_method_ref,
            signer_ip=signer_ip,
        )

        log.info("Binding quote", carrier_code=carrier.code, payment_plan=payment_plan)
        try:
            response = await self._client.bind(carrier, payload)
        except CarrierRequestError as exc:
            log.error("Carrier bind call failed", error=exc.message, http_status=exc.http_status)
            raise BindRejectedError(
                f"Carrier {carrier.code} could not bind the quote",
                details={"carrier_code": carrier.code, "http_status": exc.http_status},
            ) from exc

        try:
            outcome = parse_bind_response(response.data, carrier_code=carrier.code)
        except BindRejectedError as exc:
            log.warning("Carrier rejected bind", error=exc.message)
            raise

        policy_fields = self._policy_fields(quote, quote_request, outcome, payment_plan)
        try:
            async with self._session_factory() as db, db.begin():
                policy = await policy_repository.add_policy(
                    db,
                    user_id=user_id,
                    auto_renewal=auto_renewal,
                    **policy_fields,
                )
        except IntegrityError as exc:
            log.error("Policy insert conflicted", policy_number=outcome.policy_number)
            raise ConflictError(
                "Quote has already been bound",
                details={"policy_number": outcome.policy_number},
            ) from exc

        policy.carrier = carrier
        log.info("Policy bound", policy_number=policy.policy_number)
        return policy

    @staticmethod
    def _policy_fields(
        quote: CarrierQuote,
        quote_request: Any,
        outcome: BindOutcome,
        payment_plan: str,
    ) -> dict[str, Any]:
        effective_date = outcome.effective_date or quote.effective_date
        first_payment_due, payments_remaining = payment_schedule(effective_date, payment_plan)
        return {
            "quote_request_id": quote.quote_request_id,
            "carrier_quote_id": quote.id,
            "carrier_id": quote.carrier_id,
            "policy_number": outcome.policy_number,
            "carrier_policy_id": outcome.policy_id,
            "carrier_bind_id": outcome.bind_id,
            "insurance_type": quote.insurance_type or "commercial",
            "coverage_type": quote.coverage_type,
            "status": PolicyStatus.BOUND.value,
            "coverage_limits": quote.coverage_limits,
            "deductible": quote.deductible,
            "annual_premium": quote.annual_premium,
            "payment_plan": payment_plan,
            "monthly_amount": monthly_amount_for(quote, payment_plan),
            "effective_date": effective_date,
            "expiration_date": outcome.expiration_date or quote.expiration_date,
            "bound_at": datetime.now(timezone.utc),
            "insured_name": (
                quote_request.legal_business_name
                if quote_request is not None and quote_request.legal_business_name
                else "Unknown"
            ),
            "insured_address": format_insured_address(quote_request),
            "first_payment_due": first_payment_due,
            "next_payment_date": first_payment_due,
            "payments_remaining": payments_remaining,
            "policy_document_url": outcome.policy_document_url,
            "declarations_url": outcome.declarations_url,
            "certificate_url": outcome.certificate_url,
            "carrier_contact_info": outcome.carrier_contact,
            "carrier_policy_data": outcome.raw,
        }

    # ─── Reads ────────────────────────────────────
    async def list_for_user(self, user_id: uuid.UUID) -> list[Policy]:
        async with self._session_factory() as db:
            return await policy_repository.list_policies(db, user_id)

    async def list_active(self, user_id: uuid.UUID) -> list[Policy]:
        async with self._session_factory() as db:
            return await policy_repository.list_policies(db, user_id, status=PolicyStatus.ACTIVE)

    async def list_expiring_soon(self, user_id: uuid.UUID, days: int = 60) -> list[Policy]:
        today = datetime.now(timezone.utc).date()
        async with self._session_factory() as db:
            return await policy_repository.list_policies(
                db,
                user_id,
                status=PolicyStatus.ACTIVE,
                expiring_between=(today, today + timedelta(days=days)),
            )

    async def get(self, policy_id: uuid.UUID, *, user_id: uuid.UUID | None = None) -> Policy:
        async with self._session_factory() as db:
            policy = await policy_repository.get_policy(db, policy_id)
        return self._owned_or_404(policy, user_id)

    async def get_by_number(self, policy_number: str, *, user_id: uuid.UUID | None = None) -> Policy:
        async with self._session_factory() as db:
            policy = await policy_repository.get_policy_by_number(db, policy_number)
        return self._owned_or_404(policy, user_id)

    # ─── Cancel ───────────────────────────────────
    async def cancel(
        self,
        policy_id: uuid.UUID,
        reason: str | None = None,
        *,
        user_id: uuid.UUID | None = None,
    ) -> Policy:
        async with self._session_factory() as db, db.begin():
            policy = self._owned_or_404(await policy_repository.get_policy(db, policy_id), user_id)
            if policy.status == PolicyStatus.CANCELLED:
                raise ConflictError("Policy already cancelled")

            policy.status = PolicyStatus.CANCELLED.value
            policy.cancelled_at = datetime.now(timezone.utc)
            policy.cancellation_reason = reason
            await db.flush()

        logger.info("Policy cancelled", policy_number=policy.policy_number, reason=reason)
        return policy

    @staticmethod
    def _owned_or_404(policy: Policy | None, user_id: uuid.UUID | None) -> Policy:
        if policy is None or (user_id is not None and policy.user_id != user_id):
            raise NotFoundError("Policy not found")
        return policy
