"""Carrier listing and health probe schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CarrierResponse(BaseModel):
    """Public carrier profile; API credentials are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    name: str
    specialization: str | None
    supports_personal: bool
    supports_commercial: bool
    supported_coverages: list[str]
    health_status: str | None
    last_health_check: datetime | None


class ProbeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    carrier_id: uuid.UUID
    carrier_code: str
    status: str
    checked_at: datetime
    response_time_ms: int | None
    timed_out: bool
    error: str | None
