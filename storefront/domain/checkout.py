"""Checkout saga states and the totals computed from a cart snapshot."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class CheckoutState(str, Enum):
    PENDING = "pending"
    CHARGED = "charged"
    RECORDED = "recorded"
    CART_CLEARED = "cart_cleared"
    CHARGE_FAILED = "charge_failed"
    CHARGE_UNKNOWN = "charge_unknown"
    RECORD_FAILED = "record_failed"


_TRANSITIONS = {
    CheckoutState.PENDING: {CheckoutState.CHARGED, CheckoutState.CHARGE_FAILED, CheckoutState.CHARGE_UNKNOWN},
    CheckoutState.CHARGE_UNKNOWN: {CheckoutState.CHARGED, CheckoutState.CHARGE_FAILED},
    CheckoutState.CHARGED: {CheckoutState.RECORDED, CheckoutState.RECORD_FAILED},
    CheckoutState.RECORD_FAILED: {CheckoutState.RECORDED, CheckoutState.RECORD_FAILED},
    CheckoutState.RECORDED: {CheckoutState.CART_CLEARED},
    CheckoutState.CART_CLEARED: set(),
    CheckoutState.CHARGE_FAILED: set(),
}

# A payment was captured but no order exists yet.
NEEDS_RECONCILIATION = frozenset({CheckoutState.CHARGED, CheckoutState.RECORD_FAILED})


class IllegalTransitionError(Exception):
    pass


def advance(current: CheckoutState | str, target: CheckoutState) -> CheckoutState:
    current = CheckoutState(current)
    if target not in _TRANSITIONS[current]:
        raise IllegalTransitionError(f"Cannot move checkout from {current.value} to {target.value}")
    return target


@dataclass(frozen=True)
class LineSnapshot:
    """One cart line as read at charge time."""

    cart_item_id: int
    item_id: int
    title: str
    description: str
    image: Optional[str]
    large_image: Optional[str]
    price: int
    quantity: int

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "cart_item_id": self.cart_item_id,
            "item_id": self.item_id,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "large_image": self.large_image,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineSnapshot":
        return cls(
            cart_item_id=int(data["cart_item_id"]),
            item_id=int(data["item_id"]),
            title=data.get("title") or "",
            description=data.get("description") or "",
            image=data.get("image"),
            large_image=data.get("large_image"),
            price=int(data["price"]),
            quantity=int(data["quantity"]),
        )

    @classmethod
    def from_cart_item(cls, cart_item) -> "LineSnapshot":
        item = cart_item.item
        return cls(
            cart_item_id=cart_item.id,
            item_id=item.id,
            title=item.title,
            description=item.description or "",
            image=item.image,
            large_image=item.large_image,
            price=int(item.price),
            quantity=int(cart_item.quantity),
        )


def cart_total(lines: Iterable[LineSnapshot]) -> int:
    return sum(line.subtotal for line in lines)
