"""
Subscription Lifecycle

Derived-state rules for installment subscriptions:
- reconcile: recompute is_completed, status, end_date and next_drop_date
  from the payment facts (drop_schedule, drops_paid, total_drops)
- request_status_change: apply an explicit status request against the
  transition table
- check_preconditions: reject records that break an invariant

Everything here is synchronous and performs no I/O. Callers run reconcile
after mutating payment facts and before persisting, in the same unit of work.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from app.domain.subscription import Subscription, SubscriptionStatus
from app.infrastructure.exceptions import InvalidTransitionError, PreconditionViolation


# Explicit transitions only. active -> completed happens in reconcile alone.
ALLOWED_TRANSITIONS: dict[SubscriptionStatus, frozenset[SubscriptionStatus]] = {
    SubscriptionStatus.ACTIVE: frozenset(
        {SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED}
    ),
    SubscriptionStatus.PAUSED: frozenset(
        {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED}
    ),
    SubscriptionStatus.COMPLETED: frozenset(),
    SubscriptionStatus.CANCELLED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def allowed_transitions(status: SubscriptionStatus) -> list[SubscriptionStatus]:
    """Statuses an explicit request may move a subscription to, in enum order."""
    targets = ALLOWED_TRANSITIONS[status]
    return [s for s in SubscriptionStatus if s in targets]


def can_transition(current: SubscriptionStatus, target: SubscriptionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_preconditions(subscription: Subscription) -> None:
    """
    Validate the cross-field invariants of a subscription.

    Raises:
        PreconditionViolation: on the first broken invariant
    """
    if subscription.drops_paid > subscription.total_drops:
        raise PreconditionViolation(
            f"drops_paid ({subscription.drops_paid}) exceeds "
            f"total_drops ({subscription.total_drops})",
            field="drops_paid",
        )

    paid = [drop for drop in subscription.drop_schedule if drop.is_paid]

    if len(paid) != subscription.drops_paid:
        raise PreconditionViolation(
            f"drops_paid ({subscription.drops_paid}) does not match "
            f"{len(paid)} paid drops in schedule",
            field="drops_paid",
        )

    paid_total = sum((drop.amount for drop in paid), Decimal("0"))
    if paid_total != subscription.amount_paid:
        raise PreconditionViolation(
            f"amount_paid ({subscription.amount_paid}) does not match "
            f"sum of paid drops ({paid_total})",
            field="amount_paid",
        )

    for amount_field in ("total_amount", "drop_amount", "amount_paid"):
        if getattr(subscription, amount_field) < 0:
            raise PreconditionViolation(f"{amount_field} is negative", field=amount_field)

    previous: Optional[datetime] = None
    for index, drop in enumerate(subscription.drop_schedule):
        if drop.amount < 0:
            raise PreconditionViolation(
                f"drop {index} has a negative amount", field="drop_schedule"
            )
        if drop.is_paid and (drop.paid_date is None or not drop.transaction_ref):
            raise PreconditionViolation(
                f"drop {index} is paid without paid_date and transaction_ref",
                field="drop_schedule",
            )
        if previous is not None and drop.scheduled_date < previous:
            raise PreconditionViolation(
                "drop_schedule is not in chronological order", field="drop_schedule"
            )
        previous = drop.scheduled_date


def reconcile(subscription: Subscription, now: Optional[datetime] = None) -> Subscription:
    """
    Recompute the derived fields of a subscription in place.

    Payment facts are never touched. Running it twice without an
    intervening mutation is a no-op.

    Args:
        subscription: Record with payment flips already applied
        now: Completion timestamp; defaults to the current UTC time

    Returns:
        The same subscription instance

    Raises:
        PreconditionViolation: if the record breaks an invariant
    """
    check_preconditions(subscription)

    is_completed = subscription.drops_paid >= subscription.total_drops
    subscription.is_completed = is_completed

    if is_completed:
        if subscription.status == SubscriptionStatus.ACTIVE:
            subscription.status = SubscriptionStatus.COMPLETED
        # A paused or cancelled record keeps its status but still gets
        # an end date once every drop is paid.
        if subscription.end_date is None:
            subscription.end_date = now or _utcnow()
        subscription.next_drop_date = None
    else:
        index = subscription.next_unpaid_index()
        subscription.next_drop_date = (
            subscription.drop_schedule[index].scheduled_date if index is not None else None
        )

    return subscription


def request_status_change(
    subscription: Subscription,
    target: SubscriptionStatus,
    now: Optional[datetime] = None,
) -> Subscription:
    """
    Apply an explicit status change.

    Args:
        subscription: Record to transition
        target: Requested status
        now: Timestamp used when cancelling

    Returns:
        The same subscription instance with its new status

    Raises:
        InvalidTransitionError: if (status, target) is not allowed; the
            record is left untouched
    """
    current = subscription.status
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)

    subscription.status = target
    if target == SubscriptionStatus.CANCELLED and subscription.end_date is None:
        subscription.end_date = now or _utcnow()

    return subscription
