"""Carrier listing and on-demand health probes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from clarence.api.deps import get_container, get_current_user
from clarence.api.schemas.carriers import CarrierResponse, ProbeResponse
from clarence.container import ServiceContainer
from clarence.db.models.user import User

router = APIRouter(prefix="/carriers", tags=["Carriers"])


@router.get("", response_model=list[CarrierResponse])
async def list_carriers(container: ServiceContainer = Depends(get_container)) -> list[CarrierResponse]:
    """Active carriers ordered by name."""
    return [CarrierResponse.model_validate(c) for c in await container.registry.list_active()]


@router.post("/{carrier_id}/health-check", response_model=ProbeResponse)
async def check_carrier_health(
    carrier_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> ProbeResponse:
    return ProbeResponse.model_validate(await container.health.probe(carrier_id))
