"""
Test configuration and fixtures for Drop Commerce.

Provides shared fixtures for unit and router tests.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.domain.subscription import (
    DropScheduleItem,
    PaymentFrequency,
    PaymentPlan,
    Subscription,
    SubscriptionStatus,
)
from app.domain.wallet import Wallet


T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application with overrides cleared after each test."""
    from app.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def subscription_repo():
    """Mock for SubscriptionRepository; save echoes back a version bump."""
    repo = AsyncMock()
    repo.session = MagicMock()
    repo.session.commit = AsyncMock()
    repo.session.rollback = AsyncMock()

    async def _save(subscription):
        return subscription.model_copy(update={"version": subscription.version + 1})

    async def _create(subscription):
        return subscription.model_copy(update={"id": subscription.id or uuid4()})

    repo.save.side_effect = _save
    repo.create.side_effect = _create
    repo.get_by_order_id.return_value = None
    return repo


@pytest.fixture
def wallet_repo():
    """Mock for WalletRepository."""
    repo = AsyncMock()

    async def _save(wallet):
        return wallet.model_copy(update={"version": wallet.version + 1})

    async def _create(wallet):
        return wallet.model_copy(update={"id": uuid4()})

    repo.save.side_effect = _save
    repo.create.side_effect = _create
    return repo


# =============================================================================
# Sample Data Fixtures
# =============================================================================

def make_subscription(
    total_drops: int = 4,
    drops_paid: int = 0,
    drop_amount: Decimal = Decimal("2500.00"),
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    interval_days: int = 7,
    **overrides,
) -> Subscription:
    """
    Build a consistent subscription whose first `drops_paid` drops are paid.
    """
    schedule = []
    for i in range(total_drops):
        paid = i < drops_paid
        schedule.append(
            DropScheduleItem(
                scheduled_date=T0 + timedelta(days=interval_days * i),
                amount=drop_amount,
                is_paid=paid,
                paid_date=T0 + timedelta(days=interval_days * i) if paid else None,
                transaction_ref=f"ref_{i}" if paid else None,
            )
        )

    fields = dict(
        id=uuid4(),
        user_id=uuid4(),
        order_id=uuid4(),
        payment_plan=PaymentPlan.PAY_SMALL_SMALL,
        total_amount=drop_amount * total_drops,
        drop_amount=drop_amount,
        frequency=PaymentFrequency.WEEKLY,
        total_drops=total_drops,
        drops_paid=drops_paid,
        amount_paid=drop_amount * drops_paid,
        drop_schedule=schedule,
        status=status,
        start_date=T0,
    )
    fields.update(overrides)
    return Subscription(**fields)


@pytest.fixture
def subscription_factory():
    """Factory for subscriptions with a given number of paid drops."""
    return make_subscription


@pytest.fixture
def t0():
    """Start date of factory-built subscriptions."""
    return T0


@pytest.fixture
def sample_subscription():
    """Active four-drop subscription with two drops paid."""
    return make_subscription(total_drops=4, drops_paid=2)


@pytest.fixture
def sample_wallet(sample_subscription):
    """Wallet belonging to the sample subscription's owner."""
    return Wallet(
        id=uuid4(),
        user_id=sample_subscription.user_id,
        food_money=Decimal("10000.00"),
    )
