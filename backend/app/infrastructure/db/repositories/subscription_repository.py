"""
Subscription Repository

Data access layer for subscription persistence.
Maps between the SubscriptionModel table and the Subscription domain entity.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.subscription import (
    DropScheduleItem,
    PaymentFrequency,
    PaymentPlan,
    Subscription,
    SubscriptionFilter,
    SubscriptionStatus,
)
from app.infrastructure.db.models.subscription import SubscriptionModel
from app.infrastructure.db.repositories.base_repository import BaseRepository


logger = logging.getLogger(__name__)


class SubscriptionRepository(BaseRepository[SubscriptionModel]):
    """
    Repository for subscription data access.

    Query methods return domain entities; command methods accept them.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(SubscriptionModel, session)

    # =========================================================================
    # Query Methods
    # =========================================================================

    async def get(self, subscription_id: UUID) -> Optional[Subscription]:
        model = await self.get_by_id(subscription_id)
        return self._to_domain(model) if model else None

    async def get_by_order_id(self, order_id: UUID) -> Optional[Subscription]:
        model = await self.find_one(SubscriptionModel.order_id == order_id)
        return self._to_domain(model) if model else None

    async def search(
        self,
        filters: SubscriptionFilter,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Subscription]:
        """
        List subscriptions matching a filter, newest first.

        Args:
            filters: Optional field filters; unset fields are ignored
            skip: Number of records to skip
            limit: Maximum records to return
        """
        criteria = []
        if filters.user_id is not None:
            criteria.append(SubscriptionModel.user_id == filters.user_id)
        if filters.order_id is not None:
            criteria.append(SubscriptionModel.order_id == filters.order_id)
        if filters.status is not None:
            criteria.append(SubscriptionModel.status == filters.status.value)
        if filters.payment_plan is not None:
            criteria.append(SubscriptionModel.payment_plan == filters.payment_plan.value)
        if filters.is_completed is not None:
            criteria.append(SubscriptionModel.is_completed == filters.is_completed)

        models = await self.find_all(
            *criteria,
            order_by=SubscriptionModel.created_at.desc(),
            skip=skip,
            limit=limit,
        )
        return [self._to_domain(m) for m in models]

    async def list_due(
        self,
        window_start: datetime,
        window_end: datetime,
        limit: int = 500,
    ) -> List[Subscription]:
        """
        Active, incomplete subscriptions whose next drop falls in
        [window_start, window_end).
        """
        models = await self.find_all(
            SubscriptionModel.status == SubscriptionStatus.ACTIVE.value,
            SubscriptionModel.is_completed.is_(False),
            SubscriptionModel.next_drop_date >= window_start,
            SubscriptionModel.next_drop_date < window_end,
            order_by=SubscriptionModel.next_drop_date,
            limit=limit,
        )
        return [self._to_domain(m) for m in models]

    # =========================================================================
    # Command Methods
    # =========================================================================

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Raises:
            DuplicateError: if the order already has a subscription
        """
        model = await self.add(self._to_model(subscription))
        logger.info(f"Created subscription {model.id} for order {model.order_id}")
        return self._to_domain(model)

    async def save(self, subscription: Subscription) -> Subscription:
        """
        Persist a mutated subscription.

        Raises:
            ConcurrentModificationError: if another writer saved first
        """
        model = await self.update_versioned(
            subscription.id,
            subscription.version,
            self._to_values(subscription),
        )
        return self._to_domain(model)

    # =========================================================================
    # Mapping Methods
    # =========================================================================

    def _to_domain(self, model: SubscriptionModel) -> Subscription:
        """Convert database model to domain entity."""
        return Subscription(
            id=model.id,
            name=model.name,
            user_id=model.user_id,
            order_id=model.order_id,
            payment_plan=PaymentPlan(model.payment_plan),
            total_amount=model.total_amount,
            drop_amount=model.drop_amount,
            frequency=PaymentFrequency(model.frequency),
            total_drops=model.total_drops,
            drops_paid=model.drops_paid or 0,
            amount_paid=model.amount_paid,
            drop_schedule=[DropScheduleItem.model_validate(item) for item in model.drop_schedule or []],
            next_drop_date=model.next_drop_date,
            status=SubscriptionStatus(model.status),
            is_completed=model.is_completed,
            start_date=model.start_date,
            end_date=model.end_date,
            notes=model.notes,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_values(self, domain: Subscription) -> Dict[str, Any]:
        """Column values for a domain entity, excluding identity and bookkeeping."""
        return {
            "name": domain.name,
            "user_id": domain.user_id,
            "order_id": domain.order_id,
            "payment_plan": domain.payment_plan.value,
            "frequency": domain.frequency.value,
            "total_amount": domain.total_amount,
            "drop_amount": domain.drop_amount,
            "total_drops": domain.total_drops,
            "drops_paid": domain.drops_paid,
            "amount_paid": domain.amount_paid,
            "drop_schedule": [item.model_dump(mode="json") for item in domain.drop_schedule],
            "next_drop_date": domain.next_drop_date,
            "status": domain.status.value,
            "is_completed": domain.is_completed,
            "start_date": domain.start_date,
            "end_date": domain.end_date,
            "notes": domain.notes,
        }

    def _to_model(self, domain: Subscription) -> SubscriptionModel:
        """Convert domain entity to a new database row."""
        model = SubscriptionModel(**self._to_values(domain))
        if domain.id is not None:
            model.id = domain.id
        return model
