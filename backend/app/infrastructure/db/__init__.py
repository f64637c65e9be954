"""
Database Infrastructure Package for Drop Commerce

Exports database utilities, models, and repositories.
"""

from app.infrastructure.db.database import (
    DatabaseManager,
    get_db_manager,
    get_session,
    get_session_context,
    init_db,
    close_db,
)

from app.infrastructure.db.dependencies import (
    SessionDep,
    get_subscription_repository,
    get_wallet_repository,
    SubscriptionRepoDep,
    WalletRepoDep,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "get_db_manager",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "get_subscription_repository",
    "get_wallet_repository",
    "SubscriptionRepoDep",
    "WalletRepoDep",
]
