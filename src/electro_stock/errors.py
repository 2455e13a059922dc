"""Error taxonomy shared by the ledger, the catalog and the HTTP layer."""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for failures the API reports with a specific status code."""

    code = "inventory_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Raised when a request is malformed, e.g. a non-positive quantity."""

    code = "validation_error"


class NotFoundError(InventoryError):
    """Raised when a referenced record does not exist."""

    code = "not_found"


class InsufficientStockError(InventoryError):
    """Raised when an outbound movement exceeds the current balance."""

    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class AuthorizationError(InventoryError):
    """Raised when the caller lacks the capability for an operation."""

    code = "forbidden"


class PersistenceError(InventoryError):
    """Raised when the store is unavailable or rejects a write."""

    code = "persistence_error"
