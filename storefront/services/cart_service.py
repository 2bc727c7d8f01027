"""Cart use cases for the signed-in caller."""

from __future__ import annotations

from typing import Optional

from storefront.core.errors import AuthorizationError, NotFoundError
from storefront.db.models import CartItem
from storefront.repositories.sql_repository import SQLRepository
from storefront.services.context import CallerContext


class CartService:
    """Adds and removes cart lines, one line per (user, item)."""

    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    def list_cart(self, caller: CallerContext) -> list[CartItem]:
        user = caller.require_user()
        return self.repository.get_cart(user.id)

    def add_to_cart(self, caller: CallerContext, item_id: int) -> CartItem:
        user = caller.require_user()
        if not self.repository.get_item(item_id):
            raise NotFoundError(f"No item found for id {item_id}")
        return self.repository.increment_or_insert_cart_item(user.id, item_id)

    def remove_from_cart(self, caller: CallerContext, cart_item_id: int) -> CartItem:
        user = caller.require_user()
        cart_item = self.repository.get_cart_item(cart_item_id)
        if not cart_item:
            raise NotFoundError("No cart item found")
        if cart_item.user_id != user.id:
            raise AuthorizationError("That cart item is not yours")
        self.repository.delete_cart_item(cart_item_id)
        return cart_item
