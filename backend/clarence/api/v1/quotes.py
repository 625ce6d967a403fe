"""
Quote request endpoints.

The wizard is anonymous (keyed by a browser session id); carrier quotes
are gathered in the background after submit, so clients poll GET.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from clarence.api.deps import get_quote_orchestrator
from clarence.api.schemas.quotes import (
    CarrierQuoteResponse,
    CoverageResponse,
    CreateQuoteRequest,
    QuoteRequestDetailResponse,
    QuoteRequestResponse,
    SelectCoveragesRequest,
    UpdateQuoteRequest,
)
from clarence.quotes.orchestrator import QuoteOrchestrator

router = APIRouter(prefix="/quotes", tags=["Quotes"])


@router.post("/requests", response_model=QuoteRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_quote_request(
    payload: CreateQuoteRequest,
    quotes: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> QuoteRequestResponse:
    fields = payload.model_dump(exclude_none=True)
    quote_request = await quotes.create(
        session_id=fields.pop("session_id"),
        insurance_type=fields.pop("insurance_type"),
        request_type=fields.pop("request_type"),
        **fields,
    )
    return QuoteRequestResponse.model_validate(quote_request)


@router.get("/requests/session/{session_id}", response_model=QuoteRequestResponse)
async def get_quote_request_by_session(
    session_id: str,
    quotes: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> QuoteRequestResponse:
    return QuoteRequestResponse.model_validate(await quotes.get_by_session(session_id))


@router.patch("/requests/{quote_request_id}", response_model=QuoteRequestResponse)
async def update_quote_request(
    quote_request_id: uuid.UUID,
    payload: UpdateQuoteRequest,
    quotes: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> QuoteRequestResponse:
    """Save one wizard step; only allowed while the request is a draft."""
    quote_request = await quotes.update(quote_request_id, **payload.model_dump(exclude_none=True))
    return QuoteRequestResponse.model_validate(quote_request)


@router.post("/requests/{quote_request_id}/coverages", response_model=list[CoverageResponse])
async def select_coverages(
    quote_request_id: uuid.UUID,
    payload: SelectCoveragesRequest,
    quotes: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> list[CoverageResponse]:
    rows = await quotes.select_coverages(
        quote_request_id,
        payload.selected_coverages,
        recommended=payload.recommended,
    )
    return [CoverageResponse.model_validate(row) for row in rows]


@router.post(
    "/requests/{quote_request_id}/submit",
    response_model=QuoteRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_quote_request(
    quote_request_id: uuid.UUID,
    quotes: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> QuoteRequestResponse:
    """Validate and queue carrier quoting; returns before any carrier answers."""
    return QuoteRequestResponse.model_validate(await quotes.submit(quote_request_id))


@router.get("/requests/{quote_request_id}", response_model=QuoteRequestDetailResponse)
async def get_quote_request(
    quote_request_id: uuid.UUID,
    quotes: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> QuoteRequestDetailResponse:
    view = await quotes.get_with_quotes(quote_request_id)
    return QuoteRequestDetailResponse(
        quote_request=QuoteRequestResponse.model_validate(view.quote_request),
        coverages=[CoverageResponse.model_validate(c) for c in view.coverages],
        quotes=[CarrierQuoteResponse.model_validate(q) for q in view.quotes],
    )
