"""
Error taxonomy shared by services and routes.

Every error carries a human-readable message and an optional ``details``
dict that routes return verbatim next to the message. Services raise; routes
decide the HTTP status per endpoint.
"""


class PosError(Exception):
    """Base class for expected business failures."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(PosError):
    """400-level input problem."""


class AuthenticationError(PosError):
    """Bad credentials or inactive account."""


class ConflictError(PosError):
    """409-level uniqueness conflict (duplicate SKU, email, category name)."""


class NotFoundError(PosError):
    """Referenced record does not exist."""


class ProductNotFoundError(NotFoundError):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class InventoryNotFoundError(NotFoundError):
    pass


class CategoryNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class InsufficientStockError(PosError):
    """Requested quantity exceeds stock, or an adjustment would go negative."""


class StockConflictError(InsufficientStockError):
    """
    A conditional stock decrement matched zero rows after the availability
    check had passed: another checkout took the stock first.
    """


class InvalidStateError(PosError):
    """Operation not allowed in the record's current status."""
