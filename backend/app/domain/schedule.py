"""
Drop Schedule

Schedule generation and payment recording for installment subscriptions.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_DOWN
from typing import Optional
from uuid import uuid4

from app.domain.models import CENT
from app.domain.subscription import (
    DropScheduleItem,
    PaymentFrequency,
    PaymentPlan,
    PLAN_SCHEDULES,
    Subscription,
)
from app.infrastructure.exceptions import PreconditionViolation, ValidationError


INITIAL_PAYMENT_REF = "initial_payment"


def plan_terms(plan: PaymentPlan, frequency: PaymentFrequency) -> tuple[int, int]:
    """Return (total drops, interval days) for a plan and cadence."""
    try:
        return PLAN_SCHEDULES[plan][frequency]
    except KeyError:
        raise ValidationError(
            f"Unsupported payment plan for subscription: {plan}/{frequency}",
            details={"payment_plan": str(plan), "frequency": str(frequency)},
        )


def split_amount(total: Decimal, parts: int) -> list[Decimal]:
    """
    Split an amount into equal cent-rounded parts.

    Every part but the last is rounded down, so the last one absorbs the
    remainder and is never smaller than the others.
    """
    if parts < 1:
        raise ValidationError("Cannot split an amount into fewer than one part")

    share = (total / parts).quantize(CENT, rounding=ROUND_DOWN)
    return [share] * (parts - 1) + [total - share * (parts - 1)]


def build_drop_schedule(
    total_amount: Decimal,
    payment_plan: PaymentPlan,
    frequency: PaymentFrequency,
    start_date: datetime,
    amount_already_paid: Decimal = Decimal("0.00"),
) -> tuple[Decimal, int, list[DropScheduleItem]]:
    """
    Generate the drop schedule for a new subscription.

    An amount settled before enrollment becomes the first, already-paid
    drop; the rest of the total is spread over the remaining drops.

    Args:
        total_amount: Order total
        payment_plan: Installment plan
        frequency: Drop cadence
        start_date: Due date of the first drop
        amount_already_paid: Amount paid on the order up front

    Returns:
        (drop amount, total drops, schedule)
    """
    if amount_already_paid >= total_amount:
        raise ValidationError(
            "Amount already paid must be less than the subscription total",
            details={
                "total_amount": str(total_amount),
                "amount_already_paid": str(amount_already_paid),
            },
        )

    total_drops, interval_days = plan_terms(payment_plan, frequency)
    interval = timedelta(days=interval_days)
    remaining = total_amount - amount_already_paid

    schedule: list[DropScheduleItem] = []
    due = start_date

    if amount_already_paid > 0:
        schedule.append(
            DropScheduleItem(
                scheduled_date=due,
                amount=amount_already_paid,
                is_paid=True,
                paid_date=start_date,
                transaction_ref=INITIAL_PAYMENT_REF,
            )
        )
        due = due + interval

    amounts = split_amount(remaining, total_drops - len(schedule))
    for amount in amounts:
        schedule.append(DropScheduleItem(scheduled_date=due, amount=amount))
        due = due + interval

    return amounts[0], total_drops, schedule


def record_drop_payment(
    subscription: Subscription,
    index: int,
    amount: Optional[Decimal] = None,
    transaction_ref: Optional[str] = None,
    paid_at: Optional[datetime] = None,
) -> DropScheduleItem:
    """
    Flip one drop to paid and bump the running totals.

    Only payment facts change here; derived fields are left for reconcile.
    Without a transaction_ref a "drop_<hex>" reference is generated.

    Raises:
        PreconditionViolation: if the drop does not exist or is already paid
    """
    if index < 0 or index >= len(subscription.drop_schedule):
        raise PreconditionViolation(f"No drop at position {index}", field="drop_schedule")

    drop = subscription.drop_schedule[index]
    if drop.is_paid:
        raise PreconditionViolation(
            f"Payment has already been processed for drop {index}",
            field="drop_schedule",
        )

    if amount is not None:
        drop.amount = amount
    drop.paid_date = paid_at or datetime.now(timezone.utc)
    drop.transaction_ref = transaction_ref or f"drop_{uuid4().hex[:16]}"
    drop.is_paid = True

    subscription.drops_paid += 1
    subscription.amount_paid += drop.amount
    return drop
