"""
Subscription Domain Models

Domain models for installment ("drop") subscriptions.
Enums, DTOs, and domain entities for the subscription bounded context.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle status."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentPlan(str, Enum):
    """Installment plans an order can be enrolled in."""
    PAY_SMALL_SMALL = "pay_small_small"
    PRICE_LOCK = "price_lock"


class PaymentFrequency(str, Enum):
    """Cadence of drops."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


# =============================================================================
# Domain Entities
# =============================================================================

class DropScheduleItem(BaseModel):
    """One scheduled installment within a subscription."""
    scheduled_date: datetime
    next_drop_date: Optional[datetime] = None
    products: list[UUID] = Field(default_factory=list)
    amount: Decimal = Field(ge=0, decimal_places=2)
    is_paid: bool = False
    paid_date: Optional[datetime] = None
    transaction_ref: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)


class Subscription(BaseModel):
    """Core subscription domain entity."""
    id: Optional[UUID] = None
    name: Optional[str] = None
    user_id: UUID
    order_id: UUID
    payment_plan: PaymentPlan
    total_amount: Decimal = Field(ge=0, decimal_places=2)
    drop_amount: Decimal = Field(ge=0, decimal_places=2)
    frequency: PaymentFrequency
    total_drops: int = Field(ge=1)
    drops_paid: int = Field(default=0, ge=0)
    amount_paid: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    drop_schedule: list[DropScheduleItem] = Field(default_factory=list)
    next_drop_date: Optional[datetime] = None
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    is_completed: bool = False
    start_date: datetime
    end_date: Optional[datetime] = None
    notes: Optional[str] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    @property
    def remaining_drops(self) -> int:
        return max(0, self.total_drops - self.drops_paid)

    def next_unpaid_index(self) -> Optional[int]:
        """Index of the chronologically first unpaid drop, if any."""
        for index, drop in enumerate(self.drop_schedule):
            if not drop.is_paid:
                return index
        return None


# =============================================================================
# Plan Configuration (Business Logic)
# =============================================================================

# (total drops, days between drops) per plan and frequency
PLAN_SCHEDULES: dict[PaymentPlan, dict[PaymentFrequency, tuple[int, int]]] = {
    PaymentPlan.PAY_SMALL_SMALL: {
        PaymentFrequency.WEEKLY: (8, 7),
        PaymentFrequency.BIWEEKLY: (4, 14),
        PaymentFrequency.MONTHLY: (2, 30),
    },
    # Price lock is half now, half at delivery regardless of cadence
    PaymentPlan.PRICE_LOCK: {
        PaymentFrequency.WEEKLY: (2, 30),
        PaymentFrequency.BIWEEKLY: (2, 30),
        PaymentFrequency.MONTHLY: (2, 30),
    },
}

NOTES_MAX_LENGTH = 500


# =============================================================================
# Request/Response DTOs
# =============================================================================

class CreateSubscriptionRequest(BaseModel):
    """Request DTO for enrolling an order in an installment plan."""
    order_id: UUID = Field(..., description="Order to create the subscription for")
    payment_plan: PaymentPlan = Field(..., description="Installment plan of the order")
    total_amount: Decimal = Field(
        ..., gt=0, decimal_places=2, description="Order total to spread across drops"
    )
    frequency: PaymentFrequency = Field(
        default=PaymentFrequency.WEEKLY,
        description="Payment frequency for drops"
    )
    amount_already_paid: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        decimal_places=2,
        description="Amount settled on the order before enrollment"
    )
    name: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @model_validator(mode="after")
    def validate_prepaid_amount(self) -> "CreateSubscriptionRequest":
        if self.amount_already_paid >= self.total_amount:
            raise ValueError("amount_already_paid must be less than total_amount")
        return self


class UpdateSubscriptionRequest(BaseModel):
    """Request DTO for explicit status changes and note edits."""
    status: Optional[SubscriptionStatus] = Field(
        default=None, description="Requested status (pause, resume, cancel)"
    )
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)


class ProcessDropRequest(BaseModel):
    """Request DTO for settling the next drop."""
    mark_as_paid: bool = Field(
        default=False,
        description="Record the drop as paid without debiting the wallet"
    )
    transaction_ref: Optional[str] = Field(default=None, max_length=100)
    amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        decimal_places=2,
        description="Overrides the scheduled amount for this drop"
    )


class SubscriptionFilter(BaseModel):
    """Query filter for listing subscriptions."""
    user_id: Optional[UUID] = None
    order_id: Optional[UUID] = None
    status: Optional[SubscriptionStatus] = None
    payment_plan: Optional[PaymentPlan] = None
    is_completed: Optional[bool] = None


class DropProcessingResult(BaseModel):
    """Response DTO for a processed drop."""
    message: str
    subscription: Subscription
    processed_drop: DropScheduleItem
    next_drop_date: Optional[datetime] = None
    remaining_drops: int


class TransitionsResponse(BaseModel):
    """Response DTO listing the statuses reachable from the current one."""
    status: SubscriptionStatus
    allowed: list[SubscriptionStatus]


class DueDropsSummary(BaseModel):
    """Outcome of one automatic drop run."""
    due: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
