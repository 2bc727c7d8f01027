"""Permission management on other users."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from storefront.core.errors import NotFoundError
from storefront.db.models import User
from storefront.domain.permissions import (
    PERMISSION_ADMINS,
    authorize,
    parse_permissions,
    serialize_permissions,
)
from storefront.repositories.sql_repository import SQLRepository
from storefront.services.context import CallerContext

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    def list_users(self, caller: CallerContext) -> list[User]:
        user = caller.require_user()
        authorize(user, PERMISSION_ADMINS)
        return self.repository.list_users()

    def update_permissions(self, caller: CallerContext, target_user_id: int, permissions: Iterable[str]) -> User:
        """Replace the target's whole permission set."""
        user = caller.require_user()
        authorize(user, PERMISSION_ADMINS)
        new_permissions = serialize_permissions(parse_permissions(permissions))
        updated = self.repository.replace_user_permissions(target_user_id, new_permissions)
        if not updated:
            raise NotFoundError(f"No user found for id {target_user_id}")
        logger.info("User %s set permissions of user %s to %s", user.id, target_user_id, new_permissions)
        return updated
