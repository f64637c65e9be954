"""
Wallet Domain Models

Balances a user holds on the platform:
- food_money: spendable funds, debited when drops are paid
- food_safe: funds locked away from spending
- food_points: loyalty points, never spent by drops

Operations mutate the entity in place and are persisted by the caller.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.infrastructure.exceptions import (
    InsufficientFundsError,
    ValidationError,
    WalletInactiveError,
)


class WalletStatus(str, Enum):
    """Wallet availability."""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    FROZEN = "frozen"


class BalanceType(str, Enum):
    """Balances an admin may adjust directly."""
    FOOD_MONEY = "food_money"
    FOOD_POINTS = "food_points"
    FOOD_SAFE = "food_safe"


class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class Wallet(BaseModel):
    """Core wallet domain entity."""
    id: Optional[UUID] = None
    user_id: UUID
    food_money: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    food_points: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    food_safe: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    status: WalletStatus = WalletStatus.ACTIVE
    last_transaction_at: Optional[datetime] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    @property
    def total_balance(self) -> Decimal:
        return self.food_money + self.food_safe

    # =========================================================================
    # Balance Operations
    # =========================================================================

    def credit(self, amount: Decimal, balance: BalanceType = BalanceType.FOOD_MONEY) -> None:
        self._ensure_usable(amount)
        setattr(self, balance.value, getattr(self, balance.value) + amount)
        self._touch()

    def debit(self, amount: Decimal, balance: BalanceType = BalanceType.FOOD_MONEY) -> None:
        self._ensure_usable(amount)
        available = getattr(self, balance.value)
        if available < amount:
            raise InsufficientFundsError(balance.value, available, amount)
        setattr(self, balance.value, available - amount)
        self._touch()

    def lock_funds(self, amount: Decimal) -> None:
        """Move funds from food_money into food_safe."""
        self._ensure_usable(amount)
        if self.food_money < amount:
            raise InsufficientFundsError(BalanceType.FOOD_MONEY.value, self.food_money, amount)
        self.food_money -= amount
        self.food_safe += amount
        self._touch()

    def unlock_funds(self, amount: Decimal) -> None:
        """Move funds from food_safe back into food_money."""
        self._ensure_usable(amount)
        if self.food_safe < amount:
            raise InsufficientFundsError(BalanceType.FOOD_SAFE.value, self.food_safe, amount)
        self.food_safe -= amount
        self.food_money += amount
        self._touch()

    def _ensure_usable(self, amount: Decimal) -> None:
        if self.status != WalletStatus.ACTIVE:
            raise WalletInactiveError(
                "Wallet is not active",
                details={"status": self.status.value},
            )
        if amount <= 0:
            raise ValidationError(
                "Amount must be greater than zero",
                details={"amount": str(amount)},
            )

    def _touch(self) -> None:
        self.last_transaction_at = datetime.now(timezone.utc)


# =============================================================================
# Request/Response DTOs
# =============================================================================

class FundsRequest(BaseModel):
    """Request DTO for lock/unlock."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    reason: Optional[str] = Field(default=None, max_length=200)


class TransferFundsRequest(BaseModel):
    """Request DTO for moving food money to another user."""
    to_user_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=200)


class AdjustBalanceRequest(BaseModel):
    """Request DTO for an admin balance adjustment."""
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    balance: BalanceType = BalanceType.FOOD_MONEY
    transaction_type: TransactionType


class UpdateWalletStatusRequest(BaseModel):
    """Request DTO for an admin status change."""
    status: WalletStatus
    reason: Optional[str] = Field(default=None, max_length=200)


class WalletResponse(BaseModel):
    """Response DTO for wallet balances."""
    user_id: UUID
    food_money: Decimal
    food_points: Decimal
    food_safe: Decimal
    total_balance: Decimal
    status: WalletStatus
    currency: str
    last_transaction_at: Optional[datetime] = None

    @classmethod
    def from_wallet(cls, wallet: Wallet, currency: str) -> "WalletResponse":
        return cls(
            user_id=wallet.user_id,
            food_money=wallet.food_money,
            food_points=wallet.food_points,
            food_safe=wallet.food_safe,
            total_balance=wallet.total_balance,
            status=wallet.status,
            currency=currency,
            last_transaction_at=wallet.last_transaction_at,
        )


class TransferResponse(BaseModel):
    """Response DTO for a completed transfer."""
    transaction_id: str
    amount: Decimal
    wallet: WalletResponse
