"""
Wallet API Routes

Balance endpoints for the current user, plus admin adjustments and
status changes. Amounts are reported in the configured currency.
"""

from uuid import UUID

from fastapi import APIRouter, status

from app.api.dependencies import AdminDep, CurrentUserIdDep, WalletServiceDep
from app.config.settings import settings
from app.domain.wallet import (
    AdjustBalanceRequest,
    FundsRequest,
    TransferFundsRequest,
    TransferResponse,
    UpdateWalletStatusRequest,
    WalletResponse,
)


router = APIRouter()


@router.post(
    "/wallets",
    response_model=WalletResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_wallet(user_id: CurrentUserIdDep, service: WalletServiceDep):
    """Open a wallet for the current user."""
    wallet = await service.create_wallet(user_id)
    return WalletResponse.from_wallet(wallet, settings.currency)


@router.get("/wallets/me", response_model=WalletResponse)
async def get_my_wallet(user_id: CurrentUserIdDep, service: WalletServiceDep):
    wallet = await service.get_wallet(user_id)
    return WalletResponse.from_wallet(wallet, settings.currency)


@router.post("/wallets/me/lock", response_model=WalletResponse)
async def lock_funds(
    request: FundsRequest,
    user_id: CurrentUserIdDep,
    service: WalletServiceDep,
):
    """Move food money into the food safe."""
    wallet = await service.lock_funds(user_id, request)
    return WalletResponse.from_wallet(wallet, settings.currency)


@router.post("/wallets/me/unlock", response_model=WalletResponse)
async def unlock_funds(
    request: FundsRequest,
    user_id: CurrentUserIdDep,
    service: WalletServiceDep,
):
    """Release funds from the food safe back to food money."""
    wallet = await service.unlock_funds(user_id, request)
    return WalletResponse.from_wallet(wallet, settings.currency)


@router.post("/wallets/me/transfer", response_model=TransferResponse)
async def transfer_funds(
    request: TransferFundsRequest,
    user_id: CurrentUserIdDep,
    service: WalletServiceDep,
):
    transaction_id, wallet = await service.transfer_funds(user_id, request)
    return TransferResponse(
        transaction_id=transaction_id,
        amount=request.amount,
        wallet=WalletResponse.from_wallet(wallet, settings.currency),
    )


@router.post("/wallets/{user_id}/balance", response_model=WalletResponse)
async def adjust_balance(
    user_id: UUID,
    request: AdjustBalanceRequest,
    _admin: AdminDep,
    service: WalletServiceDep,
):
    """Credit or debit one of a user's balances (admin only)."""
    wallet = await service.adjust_balance(user_id, request)
    return WalletResponse.from_wallet(wallet, settings.currency)


@router.patch("/wallets/{user_id}/status", response_model=WalletResponse)
async def update_wallet_status(
    user_id: UUID,
    request: UpdateWalletStatusRequest,
    admin: AdminDep,
    service: WalletServiceDep,
):
    """Suspend, freeze or reactivate a user's wallet (admin only)."""
    wallet = await service.update_wallet_status(user_id, request, admin)
    return WalletResponse.from_wallet(wallet, settings.currency)
