"""Domain-level exceptions.

All ledger failures are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Callers that need to tell business outcomes from bugs or transient
contention catch the narrower subclasses.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidQuantity(ValidationError):
    """The caller passed a quantity that is not a positive integer."""

    def __init__(self, quantity: object) -> None:
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}")
        self.quantity = quantity


class ProductNotFound(EntityNotFoundError):
    """No inventory record exists for the product."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"No inventory record for product '{product_id}'")
        self.product_id = product_id


class DuplicateProduct(DomainException):
    """An inventory record already exists for the product."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Inventory record for product '{product_id}' already exists")
        self.product_id = product_id


class InsufficientStock(DomainException):
    """Not enough unreserved stock to satisfy a reservation.

    This is an expected business outcome, not a bug.
    """

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product '{product_id}' "
            f"(need {requested}, have {available} available)"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class ReservationUnderflow(DomainException):
    """A commit or release asked for more units than are reserved.

    Signals a bug upstream, e.g. a double commit.
    """

    def __init__(self, product_id: str, requested: int, reserved: int) -> None:
        super().__init__(
            f"Cannot take {requested} reserved units of product '{product_id}' "
            f"— only {reserved} currently reserved"
        )
        self.product_id = product_id
        self.requested = requested
        self.reserved = reserved


class RetryableError(DomainException):
    """A transient failure; the caller may retry with backoff."""


class Busy(RetryableError):
    """The product's lock could not be acquired within the timeout."""

    def __init__(self, product_id: str, timeout: float) -> None:
        super().__init__(
            f"Inventory for product '{product_id}' is busy "
            f"(lock not acquired within {timeout:g}s), try again"
        )
        self.product_id = product_id
        self.timeout = timeout


class StoreContention(RetryableError):
    """Another writer changed or locked the stored record first."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Inventory for product '{product_id}' was changed concurrently, try again"
        )
        self.product_id = product_id
