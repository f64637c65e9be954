"""
Dependency Injection Providers for Drop Commerce

Provides FastAPI dependencies for database sessions, repositories and
services. One request gets one session, shared by every repository the
request touches.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.database import get_session
from app.infrastructure.db.repositories import (
    SubscriptionRepository,
    WalletRepository,
)


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_subscription_repository(
    session: SessionDep,
) -> AsyncGenerator[SubscriptionRepository, None]:
    """
    Dependency provider for SubscriptionRepository.

    Usage:
        @router.get("/subscriptions/{id}")
        async def get_subscription(
            repo: SubscriptionRepository = Depends(get_subscription_repository)
        ):
            ...
    """
    yield SubscriptionRepository(session)


async def get_wallet_repository(
    session: SessionDep,
) -> AsyncGenerator[WalletRepository, None]:
    """
    Dependency provider for WalletRepository.
    """
    yield WalletRepository(session)


# Type aliases for repository dependencies
SubscriptionRepoDep = Annotated[
    SubscriptionRepository,
    Depends(get_subscription_repository)
]
WalletRepoDep = Annotated[
    WalletRepository,
    Depends(get_wallet_repository)
]
