"""
CarrierQuote — one normalized answer for a (quote request, carrier, coverage).

Append-only.  `carrier_response` keeps the carrier's raw JSON verbatim for
audit; the typed columns are extracted alongside it.
"""

from __future__ import annotations

from datetime import datetime, timezone

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
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from clarence.db.models.base import Base, JSONType, generate_uuid, utcnow


class CarrierQuote(Base):
    __tablename__ = "carrier_quotes"
    __table_args__ = (
        UniqueConstraint(
            "quote_request_id", "carrier_id", "coverage_type",
            name="uq_carrier_quotes_request_carrier_coverage",
        ),
    )

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    quote_request_id = Column(
        Uuid, ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    carrier_id = Column(Uuid, ForeignKey("carriers.id"), nullable=False, index=True)

    # ── Carrier response ─────────────────────
    carrier_quote_id = Column(String(100), nullable=False)
    carrier_response = Column(JSONType, nullable=False)

    # ── Summary ──────────────────────────────
    status = Column(String(20), nullable=False)
    coverage_type = Column(String(50), nullable=False)
    insurance_type = Column(String(20), nullable=True)

    # ── Premium ──────────────────────────────
    annual_premium = Column(Numeric(15, 2), nullable=True)
    monthly_premium = Column(Numeric(15, 2), nullable=True)
    quarterly_premium = Column(Numeric(15, 2), nullable=True)
    payment_in_full_discount = Column(Numeric(15, 2), nullable=True)

    # ── Coverage details ─────────────────────
    coverage_limits = Column(JSONType, nullable=True)
    deductible = Column(Numeric(15, 2), nullable=True)
    effective_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True)
    policy_form = Column(String(100), nullable=True)
    highlights = Column(JSONType, nullable=True)
    exclusions = Column(JSONType, nullable=True)
    optional_coverages = Column(JSONType, nullable=True)
    underwriting_notes = Column(JSONType, nullable=True)

    # ── Decline ──────────────────────────────
    decline_reason = Column(Text, nullable=True)
    decline_code = Column(String(50), nullable=True)

    # ── Package discount ─────────────────────
    package_discount_percentage = Column(Numeric(5, 2), nullable=True)
    package_discount_amount = Column(Numeric(15, 2), nullable=True)

    # ── Validity / metadata ──────────────────
    valid_until = Column(DateTime(timezone=True), nullable=False)
    cached = Column(Boolean, nullable=False, default=False)
    response_time_ms = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    carrier = relationship("Carrier", lazy="joined")

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        valid_until = self.valid_until
        # SQLite hands back naive datetimes
        if valid_until.tzinfo is None:
            valid_until = valid_until.replace(tzinfo=timezone.utc)
        return now > valid_until

    def __repr__(self) -> str:
        return (
            f"<CarrierQuote {self.id} carrier={self.carrier_id} "
            f"coverage={self.coverage_type} status={self.status}>"
        )
