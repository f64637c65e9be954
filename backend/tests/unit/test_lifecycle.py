"""
Unit tests for the subscription lifecycle.

Covers derived-state recomputation (reconcile), the explicit transition
table, and invariant checks on malformed records.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from itertools import product

import pytest

from app.domain.lifecycle import (
    ALLOWED_TRANSITIONS,
    allowed_transitions,
    can_transition,
    check_preconditions,
    reconcile,
    request_status_change,
)
from app.domain.subscription import DropScheduleItem, SubscriptionStatus
from app.infrastructure.exceptions import InvalidTransitionError, PreconditionViolation


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Reconcile
# ============================================================================

class TestReconcile:
    """Derived fields follow the payment facts."""

    def test_fully_paid_active_subscription_completes(self, subscription_factory):
        """All drops paid on an active record completes it."""
        sub = subscription_factory(total_drops=4, drops_paid=4)

        reconcile(sub, now=NOW)

        assert sub.is_completed is True
        assert sub.status == SubscriptionStatus.COMPLETED
        assert sub.end_date == NOW
        assert sub.next_drop_date is None

    def test_partially_paid_points_at_first_unpaid_drop(self, subscription_factory):
        """Next drop date is the scheduled date of the first unpaid drop."""
        sub = subscription_factory(total_drops=4, drops_paid=2)
        third = sub.drop_schedule[2].scheduled_date

        reconcile(sub, now=NOW)

        assert sub.next_drop_date == third
        assert sub.status == SubscriptionStatus.ACTIVE
        assert sub.is_completed is False
        assert sub.end_date is None

    def test_existing_end_date_is_kept(self, subscription_factory, t0):
        """A completed record is not re-stamped."""
        sub = subscription_factory(
            total_drops=4,
            drops_paid=4,
            status=SubscriptionStatus.COMPLETED,
            is_completed=True,
            end_date=t0,
        )

        reconcile(sub, now=NOW)

        assert sub.end_date == t0
        assert sub.status == SubscriptionStatus.COMPLETED

    def test_reconcile_is_idempotent(self, subscription_factory):
        sub = subscription_factory(total_drops=4, drops_paid=4)
        reconcile(sub, now=NOW)
        first = sub.model_dump()

        reconcile(sub, now=NOW + timedelta(days=3))

        assert sub.model_dump() == first

    def test_returns_same_instance(self, sample_subscription):
        assert reconcile(sample_subscription) is sample_subscription

    def test_unpaid_subscription_points_at_first_drop(self, subscription_factory, t0):
        sub = subscription_factory(total_drops=8, drops_paid=0)

        reconcile(sub)

        assert sub.next_drop_date == t0
        assert sub.is_completed is False

    @pytest.mark.parametrize("total,paid", [(1, 0), (1, 1), (2, 1), (4, 3), (8, 8)])
    def test_completion_flag_matches_counts(self, subscription_factory, total, paid):
        sub = subscription_factory(total_drops=total, drops_paid=paid)

        reconcile(sub, now=NOW)

        assert sub.is_completed == (sub.drops_paid >= sub.total_drops)
        if sub.is_completed:
            assert sub.next_drop_date is None
            assert sub.end_date is not None
        else:
            assert sub.next_drop_date == sub.drop_schedule[paid].scheduled_date


class TestPausedCompletion:
    """A paused record that becomes fully paid stays paused."""

    def test_paused_fully_paid_keeps_status(self, subscription_factory):
        sub = subscription_factory(total_drops=2, drops_paid=2, status=SubscriptionStatus.PAUSED)

        reconcile(sub, now=NOW)

        assert sub.status == SubscriptionStatus.PAUSED
        assert sub.is_completed is True
        assert sub.end_date == NOW
        assert sub.next_drop_date is None

    def test_resume_then_reconcile_completes(self, subscription_factory):
        sub = subscription_factory(total_drops=2, drops_paid=2, status=SubscriptionStatus.PAUSED)
        reconcile(sub, now=NOW)

        request_status_change(sub, SubscriptionStatus.ACTIVE)
        reconcile(sub, now=NOW + timedelta(days=1))

        assert sub.status == SubscriptionStatus.COMPLETED
        assert sub.end_date == NOW

    def test_cancelled_fully_paid_stays_cancelled(self, subscription_factory, t0):
        sub = subscription_factory(
            total_drops=2, drops_paid=2, status=SubscriptionStatus.CANCELLED, end_date=t0
        )

        reconcile(sub, now=NOW)

        assert sub.status == SubscriptionStatus.CANCELLED
        assert sub.end_date == t0


# ============================================================================
# Transition Table
# ============================================================================

EXPECTED_ALLOWED = {
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED),
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED),
    (SubscriptionStatus.PAUSED, SubscriptionStatus.ACTIVE),
    (SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED),
}


class TestTransitions:
    """Every (current, target) pair is either allowed or rejected."""

    @pytest.mark.parametrize(
        "current,target", list(product(SubscriptionStatus, SubscriptionStatus))
    )
    def test_transition_table_is_enforced(self, subscription_factory, current, target):
        sub = subscription_factory(total_drops=4, drops_paid=1, status=current)
        before = sub.model_dump()

        if (current, target) in EXPECTED_ALLOWED:
            request_status_change(sub, target, now=NOW)
            assert sub.status == target
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                request_status_change(sub, target, now=NOW)
            assert exc_info.value.current == current.value
            assert exc_info.value.target == target.value
            assert sub.model_dump() == before

    def test_paused_to_completed_is_rejected(self, subscription_factory):
        """Completion is never an explicit request."""
        sub = subscription_factory(total_drops=4, drops_paid=2, status=SubscriptionStatus.PAUSED)
        before = sub.model_dump()

        with pytest.raises(InvalidTransitionError):
            request_status_change(sub, SubscriptionStatus.COMPLETED)

        assert sub.model_dump() == before

    def test_cancel_stamps_end_date(self, sample_subscription):
        request_status_change(sample_subscription, SubscriptionStatus.CANCELLED, now=NOW)

        assert sample_subscription.end_date == NOW

    def test_pause_leaves_end_date_unset(self, sample_subscription):
        request_status_change(sample_subscription, SubscriptionStatus.PAUSED, now=NOW)

        assert sample_subscription.end_date is None

    def test_allowed_transitions_listing(self):
        assert allowed_transitions(SubscriptionStatus.ACTIVE) == [
            SubscriptionStatus.PAUSED,
            SubscriptionStatus.CANCELLED,
        ]
        assert allowed_transitions(SubscriptionStatus.PAUSED) == [
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.CANCELLED,
        ]
        assert allowed_transitions(SubscriptionStatus.COMPLETED) == []
        assert allowed_transitions(SubscriptionStatus.CANCELLED) == []

    def test_table_covers_every_status(self):
        assert set(ALLOWED_TRANSITIONS) == set(SubscriptionStatus)
        assert not can_transition(SubscriptionStatus.ACTIVE, SubscriptionStatus.COMPLETED)


# ============================================================================
# Preconditions
# ============================================================================

class TestPreconditions:
    """Malformed records are rejected, never repaired."""

    def test_consistent_record_passes(self, sample_subscription):
        check_preconditions(sample_subscription)

    def test_drops_paid_above_total(self, subscription_factory):
        sub = subscription_factory(total_drops=2, drops_paid=2)
        sub.drops_paid = 3

        with pytest.raises(PreconditionViolation) as exc_info:
            reconcile(sub)
        assert exc_info.value.details["field"] == "drops_paid"

    def test_drops_paid_mismatch_with_schedule(self, subscription_factory):
        sub = subscription_factory(total_drops=4, drops_paid=2)
        sub.drops_paid = 1

        with pytest.raises(PreconditionViolation):
            check_preconditions(sub)

    def test_amount_paid_mismatch(self, subscription_factory):
        sub = subscription_factory(total_drops=4, drops_paid=2)
        sub.amount_paid = Decimal("100.00")

        with pytest.raises(PreconditionViolation) as exc_info:
            check_preconditions(sub)
        assert exc_info.value.details["field"] == "amount_paid"

    def test_paid_drop_without_reference(self, subscription_factory):
        sub = subscription_factory(total_drops=4, drops_paid=1)
        sub.drop_schedule[0].transaction_ref = None

        with pytest.raises(PreconditionViolation):
            check_preconditions(sub)

    def test_out_of_order_schedule(self, subscription_factory, t0):
        sub = subscription_factory(total_drops=4, drops_paid=0)
        sub.drop_schedule[2].scheduled_date = t0 - timedelta(days=1)

        with pytest.raises(PreconditionViolation):
            check_preconditions(sub)

    @pytest.mark.parametrize("field", ["total_amount", "drop_amount"])
    def test_negative_amount(self, subscription_factory, field):
        """Records built without validation still have their amounts checked."""
        sub = subscription_factory(total_drops=4, drops_paid=0)
        broken = sub.model_copy(update={field: Decimal("-1.00")})

        with pytest.raises(PreconditionViolation) as exc_info:
            check_preconditions(broken)
        assert exc_info.value.details["field"] == field

    def test_negative_drop_amount(self, subscription_factory):
        sub = subscription_factory(total_drops=4, drops_paid=1)
        schedule = list(sub.drop_schedule)
        schedule[2] = DropScheduleItem.model_construct(
            scheduled_date=schedule[2].scheduled_date,
            amount=Decimal("-1.00"),
            is_paid=False,
            paid_date=None,
            transaction_ref=None,
        )
        broken = sub.model_copy(update={"drop_schedule": schedule})

        with pytest.raises(PreconditionViolation) as exc_info:
            check_preconditions(broken)
        assert exc_info.value.details["field"] == "drop_schedule"
        assert "negative" in exc_info.value.message

    def test_failed_reconcile_leaves_record_unchanged(self, subscription_factory):
        sub = subscription_factory(total_drops=4, drops_paid=4)
        sub.amount_paid = Decimal("1.00")
        before = sub.model_dump()

        with pytest.raises(PreconditionViolation):
            reconcile(sub, now=NOW)

        assert sub.model_dump() == before
