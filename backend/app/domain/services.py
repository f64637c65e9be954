"""
Subscription and Wallet Services

Orchestrates one unit of work per call: load records through the
repositories, apply payment facts or status requests, reconcile the
subscription, then persist. Both repositories share the caller's session,
so a drop payment and its wallet debit commit or roll back together.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.domain.lifecycle import allowed_transitions, reconcile, request_status_change
from app.domain.models import Actor, UserRole
from app.domain.schedule import build_drop_schedule, record_drop_payment
from app.domain.subscription import (
    CreateSubscriptionRequest,
    DropProcessingResult,
    DueDropsSummary,
    ProcessDropRequest,
    Subscription,
    SubscriptionFilter,
    SubscriptionStatus,
    TransitionsResponse,
    UpdateSubscriptionRequest,
)
from app.domain.wallet import (
    AdjustBalanceRequest,
    FundsRequest,
    TransactionType,
    TransferFundsRequest,
    UpdateWalletStatusRequest,
    Wallet,
)
from app.infrastructure.db.repositories.subscription_repository import SubscriptionRepository
from app.infrastructure.db.repositories.wallet_repository import WalletRepository
from app.infrastructure.exceptions import (
    DropCommerceError,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_transaction_ref(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:16]}"


class SubscriptionService:
    """
    Service for installment subscriptions.

    Handles:
    - Enrollment of an order into a drop schedule
    - Explicit status changes (pause, resume, cancel)
    - Settling drops against the owner's wallet
    - The daily automatic drop run
    """

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        wallets: WalletRepository,
    ):
        self._subscriptions = subscriptions
        self._wallets = wallets

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_subscription(self, subscription_id: UUID) -> Subscription:
        """
        Raises:
            NotFoundError: if no subscription has this id
        """
        subscription = await self._subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFoundError(
                "Subscription not found",
                operation="get",
                table="subscriptions",
            )
        return subscription

    async def list_subscriptions(
        self,
        filters: SubscriptionFilter,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Subscription]:
        return await self._subscriptions.search(filters, skip=skip, limit=limit)

    async def list_user_subscriptions(self, user_id: UUID) -> List[Subscription]:
        return await self._subscriptions.search(SubscriptionFilter(user_id=user_id))

    async def get_transitions(self, subscription_id: UUID, actor: Actor) -> TransitionsResponse:
        """
        Raises:
            PermissionDeniedError: if the actor is neither owner nor admin
        """
        subscription = await self.get_subscription(subscription_id)
        self._ensure_can_act(actor, subscription, "view")
        return TransitionsResponse(
            status=subscription.status,
            allowed=allowed_transitions(subscription.status),
        )

    # =========================================================================
    # Commands
    # =========================================================================

    async def create_subscription(
        self,
        user_id: UUID,
        request: CreateSubscriptionRequest,
    ) -> Subscription:
        """
        Enroll an order in an installment plan.

        Args:
            user_id: Owner of the order
            request: Plan terms for the order

        Returns:
            The persisted subscription

        Raises:
            DuplicateError: if the order already has a subscription
        """
        existing = await self._subscriptions.get_by_order_id(request.order_id)
        if existing is not None:
            raise DuplicateError(
                "A subscription already exists for this order",
                operation="create",
                table="subscriptions",
            )

        start_date = _utcnow()
        drop_amount, total_drops, schedule = build_drop_schedule(
            total_amount=request.total_amount,
            payment_plan=request.payment_plan,
            frequency=request.frequency,
            start_date=start_date,
            amount_already_paid=request.amount_already_paid,
        )
        paid = [drop for drop in schedule if drop.is_paid]

        subscription = Subscription(
            name=request.name,
            user_id=user_id,
            order_id=request.order_id,
            payment_plan=request.payment_plan,
            total_amount=request.total_amount,
            drop_amount=drop_amount,
            frequency=request.frequency,
            total_drops=total_drops,
            drops_paid=len(paid),
            amount_paid=sum((drop.amount for drop in paid), Decimal("0.00")),
            drop_schedule=schedule,
            status=SubscriptionStatus.ACTIVE,
            start_date=start_date,
            notes=request.notes,
        )
        reconcile(subscription)

        created = await self._subscriptions.create(subscription)
        logger.info(
            f"Subscription {created.id} enrolled order {created.order_id} "
            f"in {created.payment_plan.value} ({created.total_drops} drops)"
        )
        return created

    async def update_subscription(
        self,
        subscription_id: UUID,
        actor: Actor,
        request: UpdateSubscriptionRequest,
    ) -> Subscription:
        """
        Apply a status request and/or note edit.

        Raises:
            NotFoundError: if the subscription does not exist
            PermissionDeniedError: if the actor is neither owner nor admin
            InvalidTransitionError: if the status change is not allowed
        """
        subscription = await self.get_subscription(subscription_id)
        self._ensure_can_act(actor, subscription, "update")

        if request.status is not None:
            previous = subscription.status
            request_status_change(subscription, request.status)
            logger.info(
                f"Subscription {subscription.id} status {previous.value} -> "
                f"{subscription.status.value} by {actor.role.value} {actor.user_id}"
            )
        if request.notes is not None:
            subscription.notes = request.notes

        reconcile(subscription)
        return await self._subscriptions.save(subscription)

    async def process_next_drop(
        self,
        subscription_id: UUID,
        actor: Actor,
        request: Optional[ProcessDropRequest] = None,
    ) -> DropProcessingResult:
        """
        Settle the chronologically first unpaid drop.

        Unless the drop is marked as paid by an admin, its amount is debited
        from the owner's food money.

        Raises:
            NotFoundError: if the subscription or the owner's wallet is missing
            PermissionDeniedError: if the actor may not act on the subscription
            ValidationError: if the subscription is not active or has no pending drop
            InsufficientFundsError: if the wallet cannot cover the drop
            WalletInactiveError: if the owner's wallet is suspended or frozen
        """
        request = request or ProcessDropRequest()
        subscription = await self.get_subscription(subscription_id)
        self._ensure_can_act(actor, subscription, "process drops for")

        if request.mark_as_paid and not actor.is_privileged:
            raise PermissionDeniedError(
                "Only admins can mark a drop as paid without payment",
                details={"subscription_id": str(subscription_id)},
            )
        if subscription.status != SubscriptionStatus.ACTIVE:
            raise ValidationError(
                f"Cannot process drop for {subscription.status.value} subscription",
                details={"status": subscription.status.value},
            )
        if subscription.is_completed:
            raise ValidationError("Subscription is already completed")

        index = subscription.next_unpaid_index()
        if index is None:
            raise ValidationError("No pending drops found")

        amount = request.amount if request.amount is not None else subscription.drop_schedule[index].amount

        wallet: Optional[Wallet] = None
        if not request.mark_as_paid:
            wallet = await self._wallets.get_by_user_id(subscription.user_id)
            if wallet is None:
                raise NotFoundError("User wallet not found", operation="get", table="wallets")
            wallet.debit(amount)

        drop = record_drop_payment(
            subscription,
            index,
            amount=amount,
            transaction_ref=request.transaction_ref,
        )
        reconcile(subscription)

        saved = await self._subscriptions.save(subscription)
        if wallet is not None:
            await self._wallets.save(wallet)

        logger.info(
            f"Processed drop {saved.drops_paid}/{saved.total_drops} of subscription "
            f"{saved.id} ({amount}) ref={drop.transaction_ref}"
        )

        message = (
            "Final drop processed successfully. Subscription completed."
            if saved.is_completed
            else "Drop processed successfully"
        )
        return DropProcessingResult(
            message=message,
            subscription=saved,
            processed_drop=saved.drop_schedule[index],
            next_drop_date=saved.next_drop_date,
            remaining_drops=saved.remaining_drops,
        )

    async def process_due_drops(
        self,
        on_date: Optional[datetime] = None,
        limit: int = 500,
    ) -> DueDropsSummary:
        """
        Settle every active subscription whose next drop falls on a day.

        Each subscription is settled inside its own savepoint and committed
        on success; a failure is logged, rolled back and the run moves on.

        Args:
            on_date: Day to process (UTC); defaults to today
            limit: Maximum subscriptions to attempt

        Returns:
            Counts of due, processed, skipped and failed subscriptions
        """
        day = (on_date or _utcnow()).astimezone(timezone.utc).date()
        window_start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        window_end = window_start + timedelta(days=1)

        due = await self._subscriptions.list_due(window_start, window_end, limit=limit)
        summary = DueDropsSummary(due=len(due))
        logger.info(f"Found {len(due)} subscriptions with drops due on {day.isoformat()}")

        session = self._subscriptions.session
        for subscription in due:
            try:
                # Savepoint per subscription so a failed drop leaves no partial writes
                async with session.begin_nested():
                    processed = await self._settle_due_drop(subscription)
                if not processed:
                    summary.skipped += 1
                    continue
                # Commit each settlement so a later failure cannot undo it
                await session.commit()
                summary.processed += 1
            except DropCommerceError as e:
                logger.error(f"Error processing drop for subscription {subscription.id}: {e.message}")
                summary.failed += 1
            except (SQLAlchemyError, SchemaValidationError):
                logger.exception(f"Unexpected error processing drop for subscription {subscription.id}")
                await session.rollback()
                summary.failed += 1

        logger.info(
            f"Completed automatic drops: {summary.processed} processed, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary

    async def _settle_due_drop(self, subscription: Subscription) -> bool:
        """
        Pay the next drop of one due subscription as the system actor.

        Returns:
            False if the subscription was skipped (nothing pending, no
            wallet, or not enough food money)
        """
        index = subscription.next_unpaid_index()
        if index is None:
            logger.warning(f"No pending drops found for subscription {subscription.id}")
            return False

        wallet = await self._wallets.get_by_user_id(subscription.user_id)
        if wallet is None:
            logger.error(f"Wallet not found for user {subscription.user_id}")
            return False

        amount = subscription.drop_schedule[index].amount
        if wallet.food_money < amount:
            logger.warning(
                f"Insufficient balance for subscription {subscription.id}. "
                f"Required: {amount}, Available: {wallet.food_money}"
            )
            return False

        system = Actor(user_id=subscription.user_id, role=UserRole.SYSTEM)
        await self.process_next_drop(
            subscription.id,
            system,
            ProcessDropRequest(transaction_ref=_new_transaction_ref("auto_drop")),
        )
        return True

    def _ensure_can_act(self, actor: Actor, subscription: Subscription, action: str) -> None:
        if not actor.can_act_on(subscription.user_id):
            raise PermissionDeniedError(
                f"You do not have permission to {action} this subscription",
                details={"subscription_id": str(subscription.id)},
            )


class WalletService:
    """
    Service for wallet balances.

    Handles wallet creation, admin adjustments, locking funds into the
    food safe, and transfers between users.
    """

    def __init__(self, wallets: WalletRepository):
        self._wallets = wallets

    async def create_wallet(self, user_id: UUID) -> Wallet:
        """
        Raises:
            DuplicateError: if the user already has a wallet
        """
        if await self._wallets.get_by_user_id(user_id) is not None:
            raise DuplicateError(
                "Wallet already exists for this user",
                operation="create",
                table="wallets",
            )
        return await self._wallets.create(Wallet(user_id=user_id))

    async def get_wallet(self, user_id: UUID) -> Wallet:
        """
        Raises:
            NotFoundError: if the user has no wallet
        """
        wallet = await self._wallets.get_by_user_id(user_id)
        if wallet is None:
            raise NotFoundError(
                "Wallet not found for this user",
                operation="get",
                table="wallets",
            )
        return wallet

    async def adjust_balance(self, user_id: UUID, request: AdjustBalanceRequest) -> Wallet:
        wallet = await self.get_wallet(user_id)
        if request.transaction_type == TransactionType.CREDIT:
            wallet.credit(request.amount, request.balance)
        else:
            wallet.debit(request.amount, request.balance)

        logger.info(
            f"Adjusted {request.balance.value} of user {user_id}: "
            f"{request.transaction_type.value} {request.amount}"
        )
        return await self._wallets.save(wallet)

    async def update_wallet_status(
        self, user_id: UUID, request: UpdateWalletStatusRequest, actor: Actor
    ) -> Wallet:
        """
        Set a wallet's status. Suspended and frozen wallets reject every
        balance operation, including drop payments, until reactivated.

        Raises:
            NotFoundError: if the user has no wallet
        """
        wallet = await self.get_wallet(user_id)
        previous = wallet.status
        wallet.status = request.status

        logger.info(
            f"Wallet of user {user_id} changed {previous.value} -> {request.status.value} "
            f"by {actor.user_id} ({request.reason or 'no reason'})"
        )
        return await self._wallets.save(wallet)

    async def lock_funds(self, user_id: UUID, request: FundsRequest) -> Wallet:
        wallet = await self.get_wallet(user_id)
        wallet.lock_funds(request.amount)
        logger.info(f"Locked {request.amount} for user {user_id} ({request.reason or 'no reason'})")
        return await self._wallets.save(wallet)

    async def unlock_funds(self, user_id: UUID, request: FundsRequest) -> Wallet:
        wallet = await self.get_wallet(user_id)
        wallet.unlock_funds(request.amount)
        logger.info(f"Unlocked {request.amount} for user {user_id} ({request.reason or 'no reason'})")
        return await self._wallets.save(wallet)

    async def transfer_funds(
        self,
        from_user_id: UUID,
        request: TransferFundsRequest,
    ) -> tuple[str, Wallet]:
        """
        Move food money from one user to another.

        Returns:
            (transaction id, sender wallet after the transfer)

        Raises:
            ValidationError: on a transfer to oneself
            WalletInactiveError: if either wallet is not active
            InsufficientFundsError: if the sender cannot cover the amount
        """
        if from_user_id == request.to_user_id:
            raise ValidationError("Cannot transfer funds to yourself")

        sender = await self.get_wallet(from_user_id)
        recipient = await self.get_wallet(request.to_user_id)

        sender.debit(request.amount)
        recipient.credit(request.amount)

        sender = await self._wallets.save(sender)
        await self._wallets.save(recipient)

        transaction_id = _new_transaction_ref("TXN")
        logger.info(
            f"Transferred {request.amount} from {from_user_id} to "
            f"{request.to_user_id} ({transaction_id})"
        )
        return transaction_id, sender
