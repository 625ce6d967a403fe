"""Quote request, coverage and carrier quote schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from clarence.core.constants import AddressType, InsuranceType, RequestType


class QuoteRequestFields(BaseModel):
    """Wizard fields; every one optional until submission."""

    # ── Business ──
    legal_business_name: str | None = Field(default=None, max_length=255)
    dba_name: str | None = Field(default=None, max_length=255)
    legal_structure: str | None = Field(default=None, max_length=50)
    business_website: str | None = Field(default=None, max_length=255)
    industry: str | None = Field(default=None, max_length=255)
    industry_code: str | None = Field(default=None, max_length=20)
    business_description: str | None = None
    fein: str | None = Field(default=None, max_length=20)
    year_started: int | None = Field(default=None, ge=1800, le=2100)
    years_current_ownership: int | None = Field(default=None, ge=0)
    has_subsidiaries: bool | None = None
    has_foreign_subsidiaries: bool | None = None
    multiple_entities: bool | None = None

    # ── Address ──
    address_type: AddressType | None = None
    street_address: str | None = Field(default=None, max_length=255)
    address_unit: str | None = Field(default=None, max_length=50)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    zip_code: str | None = Field(default=None, max_length=10)

    # ── Contact ──
    contact_first_name: str | None = Field(default=None, max_length=100)
    contact_last_name: str | None = Field(default=None, max_length=100)
    contact_email: str | None = Field(default=None, max_length=255)
    contact_phone: str | None = Field(default=None, max_length=15)

    # ── Financials ──
    revenue_current_year: Decimal | None = Field(default=None, ge=0)
    expenses_current_year: Decimal | None = Field(default=None, ge=0)
    revenue_next_year_estimate: Decimal | None = Field(default=None, ge=0)
    expenses_next_year_estimate: Decimal | None = Field(default=None, ge=0)
    full_time_employees: int | None = Field(default=None, ge=0)
    part_time_employees: int | None = Field(default=None, ge=0)
    total_payroll: Decimal | None = Field(default=None, ge=0)
    contractor_percentage: Decimal | None = Field(default=None, ge=0, le=100)

    # ── Final details ──
    additional_comments: str | None = None
    consent_marketing: bool | None = None
    consent_privacy_policy: bool | None = None


class CreateQuoteRequest(QuoteRequestFields):
    session_id: str = Field(..., min_length=1, max_length=100)
    insurance_type: InsuranceType
    request_type: RequestType = RequestType.NEW_COVERAGE


class UpdateQuoteRequest(QuoteRequestFields):
    pass


class SelectCoveragesRequest(BaseModel):
    selected_coverages: list[str] = Field(..., min_length=1)
    recommended: dict[str, str] | None = None


class CoverageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    coverage_type: str
    is_selected: bool
    is_recommended: bool
    recommendation_reason: str | None


class QuoteRequestResponse(QuoteRequestFields):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: str
    insurance_type: str
    request_type: str
    status: str
    submitted_at: datetime | None
    quotes_ready_at: datetime | None
    estimated_completion_time: datetime | None
    created_at: datetime
    updated_at: datetime


class CarrierSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    name: str


class CarrierQuoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    carrier_id: uuid.UUID
    carrier: CarrierSummary | None = None
    carrier_quote_id: str
    status: str
    coverage_type: str
    insurance_type: str | None
    annual_premium: Decimal | None
    monthly_premium: Decimal | None
    quarterly_premium: Decimal | None
    payment_in_full_discount: Decimal | None
    coverage_limits: Any = None
    deductible: Decimal | None
    effective_date: date | None
    expiration_date: date | None
    policy_form: str | None
    highlights: Any = None
    exclusions: Any = None
    optional_coverages: Any = None
    underwriting_notes: Any = None
    decline_reason: str | None
    decline_code: str | None
    package_discount_percentage: Decimal | None
    package_discount_amount: Decimal | None
    valid_until: datetime
    cached: bool
    response_time_ms: int | None


class QuoteRequestDetailResponse(BaseModel):
    quote_request: QuoteRequestResponse
    coverages: list[CoverageResponse]
    quotes: list[CarrierQuoteResponse]
