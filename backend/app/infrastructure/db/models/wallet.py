"""
Wallet Database Model

SQLModel table for user wallet balances.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime
from sqlmodel import Field

from app.infrastructure.db.models.base import TimestampMixin, UUIDMixin, VersionMixin


class WalletModel(UUIDMixin, TimestampMixin, VersionMixin, table=True):
    """Wallet table; one row per user."""

    __tablename__ = "wallets"

    user_id: UUID = Field(unique=True, index=True, nullable=False)

    food_money: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    food_points: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    food_safe: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)

    status: str = Field(default="active", max_length=20, index=True)
    last_transaction_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)
    )
