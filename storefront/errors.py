# storefront/errors.py
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    """Base class for everything the data-access layer raises."""


class RemoteError(StorefrontError):
    """The BaaS (or the network in front of it) refused or failed a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NotFound(RemoteError):
    def __init__(self, message: str = "not found"):
        super().__init__(message, status=404)


class ValidationFailed(StorefrontError):
    """Field-scoped rejection raised before any network call."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class PartialOrderError(StorefrontError):
    """Order row was written but not all of its items were."""

    def __init__(
        self,
        order: Dict[str, Any],
        inserted_items: List[Dict[str, Any]],
        expected_items: int,
        cause: Exception,
        compensated: bool,
    ):
        super().__init__(
            f"order {order.get('order_number')}: {len(inserted_items)} of "
            f"{expected_items} items written ({describe_error(cause)})"
        )
        self.order = order
        self.inserted_items = inserted_items
        self.expected_items = expected_items
        self.cause = cause
        self.compensated = compensated


def describe_error(error: Any) -> str:
    if isinstance(error, RemoteError):
        return error.message
    if isinstance(error, Exception):
        return str(error) or error.__class__.__name__
    if isinstance(error, str):
        return error
    return "An unexpected error occurred"
