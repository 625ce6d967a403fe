"""Carrier registry and eligibility filter."""

from __future__ import annotations

import uuid
from typing import Iterable

from clarence.core.constants import CarrierHealthStatus, InsuranceType
from clarence.core.errors import NotFoundError
from clarence.db.models.carrier import Carrier
from clarence.db.session import SessionFactory
from clarence.repositories import carriers as carrier_repository


def supports_insurance_type(carrier: Carrier, insurance_type: str) -> bool:
    if insurance_type == InsuranceType.COMMERCIAL:
        return bool(carrier.supports_commercial)
    return bool(carrier.supports_personal)


def filter_eligible(
    carriers: Iterable[Carrier],
    insurance_type: str,
    coverages: Iterable[str],
    *,
    exclude_down: bool = False,
) -> list[Carrier]:
    """
    Carriers matching the insurance type whose supported coverages share
    at least one element with `coverages`.
    """
    requested = set(coverages)
    eligible = []
    for carrier in carriers:
        if not carrier.is_active:
            continue
        if not supports_insurance_type(carrier, insurance_type):
            continue
        if not requested.intersection(carrier.supported_coverages or []):
            continue
        if exclude_down and carrier.health_status == CarrierHealthStatus.DOWN:
            continue
        eligible.append(carrier)
    return eligible


class CarrierRegistry:
    def __init__(self, *, session_factory: SessionFactory, skip_down: bool = False) -> None:
        self._session_factory = session_factory
        self._skip_down = skip_down

    async def list_active(self) -> list[Carrier]:
        async with self._session_factory() as db:
            return await carrier_repository.list_active_carriers(db)

    async def get(self, carrier_id: uuid.UUID) -> Carrier:
        async with self._session_factory() as db:
            carrier = await carrier_repository.get_carrier(db, carrier_id)
        if carrier is None:
            raise NotFoundError("Carrier not found", details={"carrier_id": str(carrier_id)})
        return carrier

    async def find_eligible(
        self,
        insurance_type: str,
        coverages: Iterable[str],
        *,
        exclude_down: bool | None = None,
    ) -> list[Carrier]:
        if exclude_down is None:
            exclude_down = self._skip_down
        return filter_eligible(
            await self.list_active(),
            insurance_type,
            coverages,
            exclude_down=exclude_down,
        )
