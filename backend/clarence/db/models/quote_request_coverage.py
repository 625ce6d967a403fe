"""QuoteRequestCoverage — one coverage line selected or recommended for a request."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from clarence.db.models.base import Base, generate_uuid, utcnow


class QuoteRequestCoverage(Base):
    __tablename__ = "quote_request_coverages"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    quote_request_id = Column(
        Uuid, ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    coverage_type = Column(String(50), nullable=False)
    is_selected = Column(Boolean, nullable=False, default=False)
    is_recommended = Column(Boolean, nullable=False, default=False)
    recommendation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    quote_request = relationship("QuoteRequest", back_populates="coverages")

    def __repr__(self) -> str:
        return f"<QuoteRequestCoverage {self.coverage_type} selected={self.is_selected}>"
