"""
Policy — a bound contract derived from exactly one accepted CarrierQuote.

Coverage and premium columns are a frozen snapshot taken at bind time.
`carrier_quote_id` is unique so a quote can be bound at most once.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from clarence.db.models.base import Base, JSONType, generate_uuid, utcnow


class Policy(Base):
    __tablename__ = "policies"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    quote_request_id = Column(Uuid, ForeignKey("quote_requests.id"), nullable=False)
    carrier_quote_id = Column(Uuid, ForeignKey("carrier_quotes.id"), nullable=False, unique=True)
    carrier_id = Column(Uuid, ForeignKey("carriers.id"), nullable=False)

    # ── Identifiers ──────────────────────────
    policy_number = Column(String(100), nullable=False, unique=True)
    carrier_policy_id = Column(String(100), nullable=False)
    carrier_bind_id = Column(String(100), nullable=True)

    # ── Details ──────────────────────────────
    insurance_type = Column(String(20), nullable=False)
    coverage_type = Column(String(50), nullable=False)
    status = Column(String(30), nullable=False, default="bound", index=True)

    # ── Coverage & premium snapshot ──────────
    coverage_limits = Column(JSONType, nullable=True)
    deductible = Column(Numeric(15, 2), nullable=True)
    annual_premium = Column(Numeric(15, 2), nullable=True)
    payment_plan = Column(String(20), nullable=False)
    monthly_amount = Column(Numeric(15, 2), nullable=True)

    # ── Dates ────────────────────────────────
    effective_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True, index=True)
    bound_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # ── Insured ──────────────────────────────
    insured_name = Column(String(255), nullable=False)
    insured_address = Column(Text, nullable=False)

    # ── Payment schedule ─────────────────────
    first_payment_due = Column(Date, nullable=True)
    next_payment_date = Column(Date, nullable=True)
    payments_remaining = Column(Integer, nullable=True)
    auto_renewal = Column(Boolean, nullable=False, default=True)

    # ── Documents ────────────────────────────
    policy_document_url = Column(String(500), nullable=True)
    declarations_url = Column(String(500), nullable=True)
    certificate_url = Column(String(500), nullable=True)

    carrier_contact_info = Column(JSONType, nullable=True)
    carrier_policy_data = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    carrier = relationship("Carrier", lazy="joined")

    def __repr__(self) -> str:
        return f"<Policy {self.policy_number} status={self.status} plan={self.payment_plan}>"
