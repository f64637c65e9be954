"""
API Dependencies

FastAPI dependency injection for the acting principal and services.

Identity is supplied by the gateway in front of this service: the bearer
token is the caller's user id and ``X-User-Role`` carries their role.
Token verification is not performed here.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.domain.models import Actor, UserRole
from app.domain.services import SubscriptionService, WalletService
from app.infrastructure.db.dependencies import (
    SessionDep,
    SubscriptionRepoDep,
    WalletRepoDep,
)


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    """
    Extract the caller's user id from ``Authorization: Bearer <user_id>``.

    Raises:
        HTTPException 401: header missing or not a UUID
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return UUID(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization token",
        )


async def get_current_actor(
    user_id: UUID = Depends(get_current_user_id),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    """Build the acting principal; a missing role header means a plain user."""
    if x_user_role is None:
        return Actor(user_id=user_id)

    try:
        role = UserRole(x_user_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        )
    # The scheduler role is never granted over HTTP
    if role == UserRole.SYSTEM:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="System role is not available to API callers",
        )
    return Actor(user_id=user_id, role=role)


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """
    Raises:
        HTTPException 403: caller is not an admin
    """
    if actor.role != UserRole.ADMIN:
        logger.warning(f"Non-admin {actor.user_id} attempted an admin operation")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


# =============================================================================
# Service Providers
# =============================================================================

def get_subscription_service(
    subscriptions: SubscriptionRepoDep,
    wallets: WalletRepoDep,
) -> SubscriptionService:
    return SubscriptionService(subscriptions, wallets)


def get_wallet_service(wallets: WalletRepoDep) -> WalletService:
    return WalletService(wallets)


CurrentUserIdDep = Annotated[UUID, Depends(get_current_user_id)]
ActorDep = Annotated[Actor, Depends(get_current_actor)]
AdminDep = Annotated[Actor, Depends(require_admin)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
WalletServiceDep = Annotated[WalletService, Depends(get_wallet_service)]


__all__ = [
    "SessionDep",
    "get_current_user_id",
    "get_current_actor",
    "require_admin",
    "get_subscription_service",
    "get_wallet_service",
    "CurrentUserIdDep",
    "ActorDep",
    "AdminDep",
    "SubscriptionServiceDep",
    "WalletServiceDep",
]
