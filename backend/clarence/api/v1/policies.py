"""Policy endpoints: bind a quote, list, read and cancel the caller's policies."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Request, status

from clarence.api.deps import get_current_user, get_policy_service
from clarence.api.schemas.policies import BindPolicyRequest, CancelPolicyRequest, PolicyResponse
from clarence.db.models.user import User
from clarence.policies.service import PolicyService

router = APIRouter(prefix="/policies", tags=["Policies"])


@router.post("/bind", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def bind_policy(
    payload: BindPolicyRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> PolicyResponse:
    policy = await policies.bind(
        payload.carrier_quote_id,
        current_user.id,
        payload.payment_plan,
        auto_renewal=payload.auto_renewal,
        payment_method_ref=payload.payment_method_id,
        signer_ip=request.client.host if request.client else None,
    )
    return PolicyResponse.model_validate(policy)


@router.get("", response_model=list[PolicyResponse])
async def list_policies(
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> list[PolicyResponse]:
    return [PolicyResponse.model_validate(p) for p in await policies.list_for_user(current_user.id)]


@router.get("/active", response_model=list[PolicyResponse])
async def list_active_policies(
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> list[PolicyResponse]:
    return [PolicyResponse.model_validate(p) for p in await policies.list_active(current_user.id)]


@router.get("/expiring-soon", response_model=list[PolicyResponse])
async def list_expiring_policies(
    days: int = Query(60, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> list[PolicyResponse]:
    rows = await policies.list_expiring_soon(current_user.id, days=days)
    return [PolicyResponse.model_validate(p) for p in rows]


@router.get("/number/{policy_number}", response_model=PolicyResponse)
async def get_policy_by_number(
    policy_number: str,
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> PolicyResponse:
    policy = await policies.get_by_number(policy_number, user_id=current_user.id)
    return PolicyResponse.model_validate(policy)


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> PolicyResponse:
    return PolicyResponse.model_validate(await policies.get(policy_id, user_id=current_user.id))


@router.post("/{policy_id}/cancel", response_model=PolicyResponse)
async def cancel_policy(
    policy_id: uuid.UUID,
    payload: CancelPolicyRequest,
    current_user: User = Depends(get_current_user),
    policies: PolicyService = Depends(get_policy_service),
) -> PolicyResponse:
    policy = await policies.cancel(policy_id, payload.reason, user_id=current_user.id)
    return PolicyResponse.model_validate(policy)
