"""
Carrier — one third-party insurer integration profile.

Only active carriers are eligible for new quote requests.  Health status
is informational unless the registry is asked to skip carriers that are
down.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid

from clarence.db.models.base import Base, JSONType, generate_uuid, utcnow


class Carrier(Base):
    __tablename__ = "carriers"

    id = Column(Uuid, primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # ── API ──────────────────────────────────
    api_base_url = Column(String(500), nullable=True)
    api_key = Column(Text, nullable=True)

    # ── Capabilities ─────────────────────────
    supports_personal = Column(Boolean, nullable=False, default=True)
    supports_commercial = Column(Boolean, nullable=False, default=True)
    supported_coverages = Column(JSONType, nullable=False, default=list)

    # ── Health ───────────────────────────────
    health_status = Column(String(20), nullable=True)
    last_health_check = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def supports(self, coverage_type: str) -> bool:
        return coverage_type in (self.supported_coverages or [])

    def __repr__(self) -> str:
        return f"<Carrier {self.code} active={self.is_active} health={self.health_status}>"
