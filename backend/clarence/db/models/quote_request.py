"""
QuoteRequest — one customer's quoting session.

Filled in over several wizard steps while in `draft`, submitted once,
then driven to `quotes_ready` by background processing.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from clarence.db.models.base import Base, generate_uuid, utcnow


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    user_id = Column(Uuid, nullable=True, index=True)
    session_id = Column(String(100), nullable=False, index=True)

    insurance_type = Column(String(20), nullable=False)
    request_type = Column(String(20), nullable=False)
    status = Column(String(30), nullable=False, default="draft", index=True)

    # ── Business ─────────────────────────────
    legal_business_name = Column(String(255), nullable=True)
    dba_name = Column(String(255), nullable=True)
    legal_structure = Column(String(50), nullable=True)
    business_website = Column(String(255), nullable=True)
    industry = Column(String(255), nullable=True)
    industry_code = Column(String(20), nullable=True)
    business_description = Column(Text, nullable=True)
    fein = Column(String(20), nullable=True)
    year_started = Column(Integer, nullable=True)
    years_current_ownership = Column(Integer, nullable=True)
    has_subsidiaries = Column(Boolean, nullable=True)
    has_foreign_subsidiaries = Column(Boolean, nullable=True)
    multiple_entities = Column(Boolean, nullable=True)

    # ── Address ──────────────────────────────
    address_type = Column(String(20), nullable=True)
    street_address = Column(String(255), nullable=True)
    address_unit = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True)

    # ── Contact ──────────────────────────────
    contact_first_name = Column(String(100), nullable=True)
    contact_last_name = Column(String(100), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(15), nullable=True)

    # ── Financials ───────────────────────────
    revenue_current_year = Column(Numeric(15, 2), nullable=True)
    expenses_current_year = Column(Numeric(15, 2), nullable=True)
    revenue_next_year_estimate = Column(Numeric(15, 2), nullable=True)
    expenses_next_year_estimate = Column(Numeric(15, 2), nullable=True)
    full_time_employees = Column(Integer, nullable=True)
    part_time_employees = Column(Integer, nullable=True)
    total_payroll = Column(Numeric(15, 2), nullable=True)
    contractor_percentage = Column(Numeric(5, 2), nullable=True)

    # ── Final details ────────────────────────
    additional_comments = Column(Text, nullable=True)
    consent_marketing = Column(Boolean, nullable=False, default=False)
    consent_privacy_policy = Column(Boolean, nullable=False, default=False)
    uploaded_document_id = Column(Uuid, nullable=True)

    # ── Lifecycle timing ─────────────────────
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    quotes_ready_at = Column(DateTime(timezone=True), nullable=True)
    estimated_completion_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    coverages = relationship(
        "QuoteRequestCoverage",
        back_populates="quote_request",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<QuoteRequest {self.id} session={self.session_id} status={self.status}>"
