"""
Order Engine Errors

Every failure the engine reports is one of these. They are terminal for the
request that triggered them; the HTTP layer maps ``status_code`` onto the
response and nothing is retried internally.

Author: Khalil Bannouri
Version: 4.0.0
"""

from typing import Optional


class OrderError(Exception):
    """Base class for all order engine errors."""

    status_code: int = 500
    error: str = "Order Error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Convert to the standard error body."""
        return {
            "success": False,
            "error": self.error,
            "detail": self.message if self.detail is None else f"{self.message}: {self.detail}",
        }


class ValidationError(OrderError):
    """Malformed or missing order input."""

    status_code = 400
    error = "Validation Error"


class NotFoundError(OrderError):
    """An operation referenced an order id that does not exist."""

    status_code = 404
    error = "Not Found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class ConflictError(OrderError):
    """The order was not in the state the operation required."""

    status_code = 409
    error = "Conflict"


class StorageError(OrderError):
    """The underlying key-value store failed."""

    status_code = 503
    error = "Storage Unavailable"
