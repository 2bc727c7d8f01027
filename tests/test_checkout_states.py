from __future__ import annotations

import pytest

from storefront.domain.checkout import (
    CheckoutState,
    IllegalTransitionError,
    LineSnapshot,
    advance,
    cart_total,
)


def _line(price, quantity, cart_item_id=1):
    return LineSnapshot(
        cart_item_id=cart_item_id,
        item_id=cart_item_id,
        title="t",
        description="",
        image=None,
        large_image=None,
        price=price,
        quantity=quantity,
    )


def test_happy_path_transitions():
    state = advance(CheckoutState.PENDING, CheckoutState.CHARGED)
    state = advance(state, CheckoutState.RECORDED)
    assert advance(state, CheckoutState.CART_CLEARED) == CheckoutState.CART_CLEARED


def test_order_cannot_be_recorded_before_charge():
    with pytest.raises(IllegalTransitionError):
        advance(CheckoutState.PENDING, CheckoutState.RECORDED)
    with pytest.raises(IllegalTransitionError):
        advance("charge_failed", CheckoutState.CHARGED)


def test_cart_total_and_snapshot_round_trip():
    lines = [_line(500, 2, 1), _line(300, 1, 2)]
    assert cart_total(lines) == 1300
    assert LineSnapshot.from_dict(lines[0].to_dict()) == lines[0]
