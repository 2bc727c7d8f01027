from __future__ import annotations

import pytest

from storefront.core.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from storefront.services.cart_service import CartService
from storefront.services.context import CallerContext
from storefront.services.item_service import ItemService


def test_create_item_records_owner(repo, make_user):
    user = make_user()
    item = ItemService().create_item(CallerContext.for_user(user), title=" Boots ", price=1250)
    assert item.user_id == user.id
    assert item.title == "Boots"
    assert repo.get_item(item.id).price == 1250


def test_create_item_validation(repo, make_user):
    caller = CallerContext.for_user(make_user())
    svc = ItemService()
    with pytest.raises(AuthenticationError):
        svc.create_item(CallerContext.anonymous(), title="x", price=1)
    for bad_price in (0, -5, 9.5, True):
        with pytest.raises(ValidationError):
            svc.create_item(caller, title="x", price=bad_price)
    with pytest.raises(ValidationError):
        svc.create_item(caller, title="   ", price=100)


def test_update_requires_owner_or_capability(repo, make_user, make_item):
    owner = make_user()
    stranger = make_user()
    editor = make_user(permissions=("USER", "ITEMUPDATE"))
    item = make_item(owner)
    svc = ItemService()

    assert svc.update_item(CallerContext.for_user(owner), item.id, title="Owned").title == "Owned"
    assert svc.update_item(CallerContext.for_user(editor), item.id, price=700).price == 700
    with pytest.raises(AuthorizationError):
        svc.update_item(CallerContext.for_user(stranger), item.id, title="Mine now")
    assert repo.get_item(item.id).user_id == owner.id


def test_delete_by_capability_removes_cart_lines(repo, make_user, make_item):
    owner = make_user()
    shopper = make_user()
    deleter = make_user(permissions=("USER", "ITEMDELETE"))
    item = make_item(owner)
    CartService().add_to_cart(CallerContext.for_user(shopper), item.id)
    svc = ItemService()

    with pytest.raises(AuthorizationError):
        svc.delete_item(CallerContext.for_user(shopper), item.id)
    deleted = svc.delete_item(CallerContext.for_user(deleter), item.id)

    assert deleted.id == item.id
    assert repo.get_item(item.id) is None
    assert repo.get_cart(shopper.id) == []
    with pytest.raises(NotFoundError):
        svc.delete_item(CallerContext.for_user(owner), item.id)
