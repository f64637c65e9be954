"""
Custom Exceptions for Drop Commerce

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any


class DropCommerceError(Exception):
    """Base exception for all Drop Commerce errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(DropCommerceError):
    """Raised when input validation fails."""
    pass


class PermissionDeniedError(DropCommerceError):
    """Raised when the acting user may not touch a resource."""
    pass


# =============================================================================
# Subscription Lifecycle
# =============================================================================

class InvalidTransitionError(DropCommerceError):
    """Raised when a requested status change is not in the transition table."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Invalid transition: cannot move subscription from {current} to {target}",
            details={"current_status": current, "target_status": target},
        )
        self.current = current
        self.target = target


class PreconditionViolation(DropCommerceError):
    """
    Raised when a subscription record breaks one of its invariants.

    Signals a caller bug: the record is rejected, never repaired.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {}
        if field:
            details["field"] = field
        super().__init__(message, details)


# =============================================================================
# Wallets
# =============================================================================

class WalletError(DropCommerceError):
    """Base class for wallet balance errors."""
    pass


class InsufficientFundsError(WalletError):
    """Raised when a balance cannot cover the requested amount."""

    def __init__(self, balance: str, available, requested):
        super().__init__(
            f"Insufficient {balance} balance. Available: {available}, Requested: {requested}",
            details={
                "balance": balance,
                "available": str(available),
                "requested": str(requested),
            },
        )


class WalletInactiveError(WalletError):
    """Raised when an operation targets a suspended or frozen wallet."""
    pass


# =============================================================================
# Persistence
# =============================================================================

class DatabaseError(DropCommerceError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    pass


class DuplicateError(DatabaseError):
    """Raised when attempting to create a duplicate resource."""
    pass


class ConcurrentModificationError(DatabaseError):
    """Raised when a versioned update loses the race to another writer."""
    pass


class ConfigurationError(DropCommerceError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
