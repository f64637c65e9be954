"""
Wallet Repository

Data access layer for wallet balances.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.wallet import Wallet, WalletStatus
from app.infrastructure.db.models.wallet import WalletModel
from app.infrastructure.db.repositories.base_repository import BaseRepository


logger = logging.getLogger(__name__)


class WalletRepository(BaseRepository[WalletModel]):
    """Repository for wallet lookups and versioned balance writes."""

    def __init__(self, session: AsyncSession):
        super().__init__(WalletModel, session)

    async def get_by_user_id(self, user_id: UUID) -> Optional[Wallet]:
        model = await self.find_one(WalletModel.user_id == user_id)
        return self._to_domain(model) if model else None

    async def create(self, wallet: Wallet) -> Wallet:
        """
        Insert a new wallet.

        Raises:
            DuplicateError: if the user already has a wallet
        """
        model = await self.add(WalletModel(**self._to_values(wallet)))
        logger.info(f"Created wallet {model.id} for user {model.user_id}")
        return self._to_domain(model)

    async def save(self, wallet: Wallet) -> Wallet:
        """
        Persist balance changes.

        Raises:
            ConcurrentModificationError: if another writer saved first
        """
        model = await self.update_versioned(wallet.id, wallet.version, self._to_values(wallet))
        return self._to_domain(model)

    def _to_domain(self, model: WalletModel) -> Wallet:
        return Wallet(
            id=model.id,
            user_id=model.user_id,
            food_money=model.food_money,
            food_points=model.food_points,
            food_safe=model.food_safe,
            status=WalletStatus(model.status),
            last_transaction_at=model.last_transaction_at,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_values(self, domain: Wallet) -> Dict[str, Any]:
        return {
            "user_id": domain.user_id,
            "food_money": domain.food_money,
            "food_points": domain.food_points,
            "food_safe": domain.food_safe,
            "status": domain.status.value,
            "last_transaction_at": domain.last_transaction_at,
        }
