"""
CarrierHealthMonitor — on-demand and periodic carrier health probes.

A probe never raises for carrier-side problems: it records `operational`
or `down` plus the check time and reports what happened.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from clarence.carriers.client import CarrierClient
from clarence.core.constants import CarrierHealthStatus
from clarence.core.errors import CarrierRequestError, NotFoundError
from clarence.core.logging import get_logger
from clarence.db.models.carrier import Carrier
from clarence.db.session import SessionFactory
from clarence.repositories import carriers as carrier_repository

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    carrier_id: uuid.UUID
    carrier_code: str
    status: CarrierHealthStatus
    checked_at: datetime
    response_time_ms: int | None = None
    timed_out: bool = False
    error: str | None = None

    @property
    def healthy(self) -> bool:
        return self.status == CarrierHealthStatus.OPERATIONAL


class CarrierHealthMonitor:
    def __init__(self, *, session_factory: SessionFactory, client: CarrierClient) -> None:
        self._session_factory = session_factory
        self._client = client

    async def probe(self, carrier_id: uuid.UUID) -> ProbeResult:
        async with self._session_factory() as db:
            carrier = await carrier_repository.get_carrier(db, carrier_id)
        if carrier is None:
            raise NotFoundError("Carrier not found", details={"carrier_id": str(carrier_id)})
        return await self._probe_carrier(carrier)

    async def probe_all(self) -> list[ProbeResult]:
        async with self._session_factory() as db:
            carriers = await carrier_repository.list_active_carriers(db)

        results = await asyncio.gather(
            *(self._probe_carrier(carrier) for carrier in carriers),
            return_exceptions=True,
        )

        probed: list[ProbeResult] = []
        for carrier, result in zip(carriers, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Health probe crashed",
                    carrier_code=carrier.code,
                    error=str(result),
                )
                continue
            probed.append(result)

        logger.info(
            "Carrier health sweep finished",
            probed=len(probed),
            down=sum(1 for r in probed if not r.healthy),
        )
        return probed

    async def _probe_carrier(self, carrier: Carrier) -> ProbeResult:
        log = logger.bind(carrier_code=carrier.code)
        elapsed_ms = None
        timed_out = False
        error = None

        try:
            response = await self._client.health(carrier)
        except CarrierRequestError as exc:
            status = CarrierHealthStatus.DOWN
            timed_out = exc.timed_out
            error = exc.message
            log.warning("Carrier health check failed", error=error, timed_out=timed_out)
        else:
            status = CarrierHealthStatus.OPERATIONAL
            elapsed_ms = response.elapsed_ms
            log.info("Carrier is healthy", duration_ms=elapsed_ms)

        checked_at = datetime.now(timezone.utc)
        async with self._session_factory() as db, db.begin():
            await carrier_repository.record_health(db, carrier.id, status, checked_at)

        return ProbeResult(
            carrier_id=carrier.id,
            carrier_code=carrier.code,
            status=status,
            checked_at=checked_at,
            response_time_ms=elapsed_ms,
            timed_out=timed_out,
            error=error,
        )
