"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.exceptions import InvalidQuantity, ValidationError


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot reserve, ship, release or
    restock zero or negative units.
    """

    value: int

    def __post_init__(self) -> None:
        # bool is a subclass of int; True is not a quantity.
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidQuantity(self.value)
        if self.value <= 0:
            raise InvalidQuantity(self.value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ReservationRequest:
    """A request to hold ``quantity`` units of a product for an order."""

    product_id: str
    quantity: Quantity
    order_id: str

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValidationError("Reservation request needs a product id")
        if not self.order_id:
            raise ValidationError("Reservation request needs an order id")

    @staticmethod
    def of(product_id: str, quantity: int, order_id: str) -> ReservationRequest:
        """Convenient factory that wraps a raw int quantity."""
        return ReservationRequest(product_id, Quantity(quantity), order_id)
