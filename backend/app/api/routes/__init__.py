# API Routes Module
from app.api.routes import (
    subscriptions,
    wallets,
)

__all__ = [
    "subscriptions",
    "wallets",
]
