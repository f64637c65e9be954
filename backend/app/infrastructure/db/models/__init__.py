"""
SQLModel ORM Models for Drop Commerce

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from app.infrastructure.db.models.base import (
    TimestampMixin,
    UUIDMixin,
    VersionMixin,
)
from app.infrastructure.db.models.subscription import SubscriptionModel
from app.infrastructure.db.models.wallet import WalletModel


__all__ = [
    # Base
    "TimestampMixin",
    "UUIDMixin",
    "VersionMixin",
    # Tables
    "SubscriptionModel",
    "WalletModel",
]
