"""
HTTP client for carrier APIs.

One shared `httpx.AsyncClient` for every carrier; the base URL and API key
come from each Carrier row.  All transport failures (timeout, refused
connection, non-2xx, non-JSON body) surface as CarrierRequestError.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from clarence.core.errors import CarrierRequestError
from clarence.core.logging import get_logger
from clarence.db.models.carrier import Carrier

logger = get_logger(__name__)


@dataclass(frozen=True)
class CarrierResponse:
    """Decoded JSON body plus measured round-trip latency."""

    data: dict[str, Any]
    status_code: int
    elapsed_ms: int


class CarrierClient:
    """Handles authenticated HTTP calls to carrier quote/bind/health endpoints."""

    def __init__(
        self,
        *,
        quote_timeout: float = 10.0,
        bind_timeout: float = 30.0,
        health_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.quote_timeout = quote_timeout
        self.bind_timeout = bind_timeout
        self.health_timeout = health_timeout
        self._client = httpx.AsyncClient(
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @staticmethod
    def url_for(carrier: Carrier, action: str) -> str:
        base_url = (carrier.api_base_url or "").rstrip("/")
        return f"{base_url}/carriers/{carrier.code}/{action}"

    async def request_quote(self, carrier: Carrier, payload: dict[str, Any]) -> CarrierResponse:
        return await self._send(carrier, "POST", "quote", payload, self.quote_timeout)

    async def bind(self, carrier: Carrier, payload: dict[str, Any]) -> CarrierResponse:
        return await self._send(carrier, "POST", "bind", payload, self.bind_timeout)

    async def health(self, carrier: Carrier) -> CarrierResponse:
        return await self._send(carrier, "GET", "health", None, self.health_timeout)

    async def _send(
        self,
        carrier: Carrier,
        method: str,
        action: str,
        payload: dict[str, Any] | None,
        timeout: float,
    ) -> CarrierResponse:
        url = self.url_for(carrier, action)
        headers = {"X-API-Key": carrier.api_key or ""}

        logger.debug("Calling carrier API", carrier_code=carrier.code, method=method, url=url)

        started = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise CarrierRequestError(
                f"Carrier {carrier.code} timed out after {timeout}s",
                carrier_code=carrier.code,
                timed_out=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise CarrierRequestError(
                f"Carrier {carrier.code} request failed: {exc}",
                carrier_code=carrier.code,
            ) from exc
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        if not response.is_success:
            raise CarrierRequestError(
                f"Carrier {carrier.code} returned {response.status_code}",
                carrier_code=carrier.code,
                http_status=response.status_code,
                response_body=response.text[:2000],
            )

        if not response.content:
            data: Any = {}
        else:
            try:
                data = response.json()
            except ValueError as exc:
                raise CarrierRequestError(
                    f"Carrier {carrier.code} returned a non-JSON body",
                    carrier_code=carrier.code,
                    http_status=response.status_code,
                    response_body=response.text[:2000],
                ) from exc

        if not isinstance(data, dict):
            data = {"data": data}

        return CarrierResponse(data=data, status_code=response.status_code, elapsed_ms=elapsed_ms)

    async def aclose(self) -> None:
        await self._client.aclose()
