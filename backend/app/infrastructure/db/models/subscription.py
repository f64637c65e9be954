"""
Subscription Database Model

SQLModel table for installment subscription persistence.
The drop schedule is stored inline as a JSON array, in chronological order.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field

from app.infrastructure.db.models.base import TimestampMixin, UUIDMixin, VersionMixin


class SubscriptionModel(UUIDMixin, TimestampMixin, VersionMixin, table=True):
    """
    Subscription table for storing installment plans.

    Maps to the 'subscriptions' table.
    """

    __tablename__ = "subscriptions"

    name: Optional[str] = Field(default=None, max_length=100)
    user_id: UUID = Field(index=True, nullable=False)
    order_id: UUID = Field(unique=True, index=True, nullable=False)

    # Plan terms
    payment_plan: str = Field(max_length=20, index=True)
    frequency: str = Field(max_length=20)
    total_amount: Decimal = Field(max_digits=14, decimal_places=2)
    drop_amount: Decimal = Field(max_digits=14, decimal_places=2)
    total_drops: int = Field(ge=1)

    # Payment facts
    drops_paid: int = Field(default=0, ge=0)
    amount_paid: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    drop_schedule: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # Derived state
    next_drop_date: Optional[datetime] = Field(
        default=None, index=True, sa_type=DateTime(timezone=True)
    )
    status: str = Field(default="active", max_length=20, index=True)
    is_completed: bool = Field(default=False, index=True)

    start_date: datetime = Field(sa_type=DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    notes: Optional[str] = Field(default=None, max_length=500)
