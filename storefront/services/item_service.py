"""Catalog item mutations (create, update, delete)."""

from __future__ import annotations

import logging
from typing import Optional

from storefront.core.errors import NotFoundError, ValidationError
from storefront.db.models import Item
from storefront.domain.permissions import ITEM_DELETERS, ITEM_UPDATERS, authorize_owner_or
from storefront.repositories.sql_repository import SQLRepository
from storefront.services.context import CallerContext

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "image", "large_image", "price")


def _validate_price(price) -> int:
    if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
        raise ValidationError("Price must be a positive whole number of cents")
    return price


def _validate_title(title: Optional[str]) -> str:
    value = (title or "").strip()
    if not value:
        raise ValidationError("Title is required")
    return value


class ItemService:
    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    def create_item(
        self,
        caller: CallerContext,
        *,
        title: str,
        price: int,
        description: str = "",
        image: Optional[str] = None,
        large_image: Optional[str] = None,
    ) -> Item:
        user = caller.require_user()
        item = self.repository.create_item(
            user.id,
            title=_validate_title(title),
            description=description or "",
            image=image,
            large_image=large_image,
            price=_validate_price(price),
        )
        logger.info("User %s created item %s", user.id, item.id)
        return item

    def update_item(self, caller: CallerContext, item_id: int, **fields) -> Item:
        user = caller.require_user()
        item = self.repository.get_item(item_id)
        if not item:
            raise NotFoundError(f"No item found for id {item_id}")
        authorize_owner_or(user, item.user_id, ITEM_UPDATERS)
        updates = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS and value is not None}
        if "title" in updates:
            updates["title"] = _validate_title(updates["title"])
        if "price" in updates:
            updates["price"] = _validate_price(updates["price"])
        if not updates:
            return item
        return self.repository.update_item(item_id, **updates)

    def delete_item(self, caller: CallerContext, item_id: int) -> Item:
        user = caller.require_user()
        item = self.repository.get_item(item_id)
        if not item:
            raise NotFoundError(f"No item found for id {item_id}")
        authorize_owner_or(user, item.user_id, ITEM_DELETERS)
        self.repository.delete_item(item_id)
        logger.info("User %s deleted item %s", user.id, item_id)
        return item
