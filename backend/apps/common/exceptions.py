from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

ErrorTuple = Tuple[str, str, Optional[Dict[str, Any]]]


class StorefrontError(Exception):
    """Base class for recoverable storefront failures.

    Every failure carries a machine readable ``code`` so the engines can hand
    it back as a ``(code, message, details)`` tuple instead of raising.
    """

    code = "STOREFRONT_ERROR"
    default_message = "Storefront operation failed"

    def __init__(
        self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_error(self) -> ErrorTuple:
        return (self.code, self.message, self.details)


class Unauthenticated(StorefrontError):
    """No shopper is signed in for a cart operation."""

    code = "UNAUTHENTICATED"
    default_message = "You need to be logged in to manage your cart"


class StoreReadFailure(StorefrontError):
    """Fetching catalog or cart rows from the store failed."""

    code = "STORE_READ_FAILURE"
    default_message = "Failed to read from the store"


class StoreWriteFailure(StorefrontError):
    """Upserting, updating or deleting a cart row failed."""

    code = "STORE_WRITE_FAILURE"
    default_message = "Failed to write to the store"


class StockLimitExceeded(StorefrontError):
    code = "STOCK_LIMIT_EXCEEDED"
    default_message = "Requested quantity exceeds available stock"


class InvalidQuantity(StorefrontError):
    code = "INVALID_QUANTITY"
    default_message = "Quantity must be zero or a positive integer"


__all__ = [
    "ErrorTuple",
    "InvalidQuantity",
    "StockLimitExceeded",
    "StoreReadFailure",
    "StoreWriteFailure",
    "StorefrontError",
    "Unauthenticated",
]
