"""Policy binding and policy read schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from clarence.api.schemas.quotes import CarrierSummary
from clarence.core.constants import PaymentPlan


class BindPolicyRequest(BaseModel):
    carrier_quote_id: uuid.UUID
    payment_plan: PaymentPlan
    auto_renewal: bool = True
    payment_method_id: str | None = Field(default=None, max_length=255)


class CancelPolicyRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class PolicyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    quote_request_id: uuid.UUID
    carrier_quote_id: uuid.UUID
    carrier_id: uuid.UUID
    carrier: CarrierSummary | None = None
    policy_number: str
    carrier_policy_id: str
    carrier_bind_id: str | None
    insurance_type: str
    coverage_type: str
    status: str
    coverage_limits: Any = None
    deductible: Decimal | None
    annual_premium: Decimal | None
    payment_plan: str
    monthly_amount: Decimal | None
    effective_date: date | None
    expiration_date: date | None
    bound_at: datetime
    cancelled_at: datetime | None
    cancellation_reason: str | None
    insured_name: str
    insured_address: str
    first_payment_due: date | None
    next_payment_date: date | None
    payments_remaining: int | None
    auto_renewal: bool
    policy_document_url: str | None
    declarations_url: str | None
    certificate_url: str | None
    carrier_contact_info: Any = None
