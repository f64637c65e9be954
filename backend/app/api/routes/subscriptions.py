"""
Subscription API Routes

REST API endpoints for installment subscriptions.
Domain errors propagate to the exception handlers registered in app.main.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Query, status

from app.api.dependencies import (
    ActorDep,
    AdminDep,
    CurrentUserIdDep,
    SubscriptionServiceDep,
)
from app.domain.subscription import (
    CreateSubscriptionRequest,
    DropProcessingResult,
    PaymentPlan,
    ProcessDropRequest,
    Subscription,
    SubscriptionFilter,
    SubscriptionStatus,
    TransitionsResponse,
    UpdateSubscriptionRequest,
)
from app.infrastructure.exceptions import PermissionDeniedError


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Queries
# =============================================================================

@router.get("/subscriptions", response_model=List[Subscription])
async def list_subscriptions(
    _admin: AdminDep,
    service: SubscriptionServiceDep,
    user_id: Optional[UUID] = None,
    order_id: Optional[UUID] = None,
    subscription_status: Optional[SubscriptionStatus] = Query(default=None, alias="status"),
    payment_plan: Optional[PaymentPlan] = None,
    is_completed: Optional[bool] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
):
    """List subscriptions across all users (admin only)."""
    filters = SubscriptionFilter(
        user_id=user_id,
        order_id=order_id,
        status=subscription_status,
        payment_plan=payment_plan,
        is_completed=is_completed,
    )
    return await service.list_subscriptions(filters, skip=skip, limit=limit)


@router.get("/subscriptions/mine", response_model=List[Subscription])
async def list_my_subscriptions(
    user_id: CurrentUserIdDep,
    service: SubscriptionServiceDep,
):
    """List the current user's subscriptions, newest first."""
    return await service.list_user_subscriptions(user_id)


@router.get("/subscriptions/{subscription_id}", response_model=Subscription)
async def get_subscription(
    subscription_id: UUID,
    actor: ActorDep,
    service: SubscriptionServiceDep,
):
    """Get a subscription owned by the caller (admins may read any)."""
    subscription = await service.get_subscription(subscription_id)
    if not actor.can_act_on(subscription.user_id):
        raise PermissionDeniedError(
            "You do not have permission to view this subscription",
            details={"subscription_id": str(subscription_id)},
        )
    return subscription


@router.get(
    "/subscriptions/{subscription_id}/transitions",
    response_model=TransitionsResponse,
)
async def get_subscription_transitions(
    subscription_id: UUID,
    actor: ActorDep,
    service: SubscriptionServiceDep,
):
    """Statuses the subscription may be moved to by an explicit request."""
    return await service.get_transitions(subscription_id, actor)


# =============================================================================
# Commands
# =============================================================================

@router.post(
    "/subscriptions",
    response_model=Subscription,
    status_code=status.HTTP_201_CREATED,
)
async def create_subscription(
    request: CreateSubscriptionRequest,
    user_id: CurrentUserIdDep,
    service: SubscriptionServiceDep,
):
    """Enroll one of the caller's orders in an installment plan."""
    return await service.create_subscription(user_id, request)


@router.patch("/subscriptions/{subscription_id}", response_model=Subscription)
async def update_subscription(
    subscription_id: UUID,
    request: UpdateSubscriptionRequest,
    actor: ActorDep,
    service: SubscriptionServiceDep,
):
    """Pause, resume or cancel a subscription, and/or edit its notes."""
    return await service.update_subscription(subscription_id, actor, request)


@router.post(
    "/subscriptions/{subscription_id}/process-drop",
    response_model=DropProcessingResult,
)
async def process_drop(
    subscription_id: UUID,
    actor: ActorDep,
    service: SubscriptionServiceDep,
    request: Optional[ProcessDropRequest] = Body(default=None),
):
    """Pay the next drop from the owner's food money."""
    return await service.process_next_drop(subscription_id, actor, request)


@router.post(
    "/subscriptions/admin/{subscription_id}/process-drop",
    response_model=DropProcessingResult,
)
async def admin_process_drop(
    subscription_id: UUID,
    admin: AdminDep,
    service: SubscriptionServiceDep,
    request: Optional[ProcessDropRequest] = Body(default=None),
):
    """Process the next drop on behalf of any user; may mark it paid without a debit."""
    logger.info(f"Admin {admin.user_id} processing drop for subscription {subscription_id}")
    return await service.process_next_drop(subscription_id, admin, request)
