"""
Unit tests for wallet balance operations.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.domain.wallet import BalanceType, Wallet, WalletResponse, WalletStatus
from app.infrastructure.exceptions import (
    InsufficientFundsError,
    ValidationError,
    WalletInactiveError,
)


@pytest.fixture
def wallet():
    return Wallet(
        user_id=uuid4(),
        food_money=Decimal("1000.00"),
        food_safe=Decimal("200.00"),
        food_points=Decimal("15.00"),
    )


class TestWalletBalances:

    def test_total_balance_excludes_points(self, wallet):
        assert wallet.total_balance == Decimal("1200.00")

    def test_credit_food_money(self, wallet):
        wallet.credit(Decimal("50.00"))

        assert wallet.food_money == Decimal("1050.00")
        assert wallet.last_transaction_at is not None

    def test_credit_points(self, wallet):
        wallet.credit(Decimal("5.00"), BalanceType.FOOD_POINTS)

        assert wallet.food_points == Decimal("20.00")
        assert wallet.food_money == Decimal("1000.00")

    def test_debit_food_money(self, wallet):
        wallet.debit(Decimal("400.00"))

        assert wallet.food_money == Decimal("600.00")

    def test_debit_more_than_available(self, wallet):
        with pytest.raises(InsufficientFundsError) as exc_info:
            wallet.debit(Decimal("1000.01"))

        assert exc_info.value.details["balance"] == "food_money"
        assert wallet.food_money == Decimal("1000.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
    def test_rejects_non_positive_amounts(self, wallet, amount):
        with pytest.raises(ValidationError):
            wallet.credit(amount)


class TestFoodSafe:
    """Locking moves funds between food money and the food safe."""

    def test_lock_funds(self, wallet):
        wallet.lock_funds(Decimal("300.00"))

        assert wallet.food_money == Decimal("700.00")
        assert wallet.food_safe == Decimal("500.00")
        assert wallet.total_balance == Decimal("1200.00")

    def test_unlock_funds(self, wallet):
        wallet.unlock_funds(Decimal("200.00"))

        assert wallet.food_safe == Decimal("0.00")
        assert wallet.food_money == Decimal("1200.00")

    def test_unlock_more_than_locked(self, wallet):
        with pytest.raises(InsufficientFundsError):
            wallet.unlock_funds(Decimal("250.00"))


class TestWalletStatus:

    @pytest.mark.parametrize("status", [WalletStatus.SUSPENDED, WalletStatus.FROZEN])
    def test_inactive_wallet_rejects_operations(self, wallet, status):
        wallet.status = status

        with pytest.raises(WalletInactiveError):
            wallet.debit(Decimal("10.00"))
        with pytest.raises(WalletInactiveError):
            wallet.lock_funds(Decimal("10.00"))

    def test_response_includes_total(self, wallet):
        response = WalletResponse.from_wallet(wallet, "NGN")

        assert response.total_balance == Decimal("1200.00")
        assert response.user_id == wallet.user_id
        assert response.currency == "NGN"
