"""Shared dependencies for API routes."""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clarence.auth.service import AuthService
from clarence.container import ServiceContainer
from clarence.core.errors import UnauthorizedError
from clarence.db.models.user import User
from clarence.policies.service import PolicyService
from clarence.quotes.orchestrator import QuoteOrchestrator

security_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """The container built by the application lifespan."""
    return request.app.state.container


def get_auth_service(container: ServiceContainer = Depends(get_container)) -> AuthService:
    return container.auth


def get_quote_orchestrator(container: ServiceContainer = Depends(get_container)) -> QuoteOrchestrator:
    return container.quotes


def get_policy_service(container: ServiceContainer = Depends(get_container)) -> PolicyService:
    return container.policies


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve an active user from the bearer access token."""
    if credentials is None:
        raise UnauthorizedError("Authentication credentials were not provided")
    return await auth.authenticate(credentials.credentials)
