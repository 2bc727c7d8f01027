"""Per-request caller context."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from storefront.core.errors import AuthenticationError
from storefront.db.models import User
from storefront.repositories.sql_repository import SQLRepository
from storefront.services.session_service import read_session_token


@dataclass(frozen=True)
class CallerContext:
    """Who is calling: the verified user id and the user record fetched for this request."""

    user_id: Optional[int] = None
    user: Optional[User] = None

    @classmethod
    def anonymous(cls) -> "CallerContext":
        return cls()

    @classmethod
    def for_user(cls, user: User) -> "CallerContext":
        return cls(user_id=user.id, user=user)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user(self) -> User:
        if self.user is None:
            raise AuthenticationError("You must be signed in to do that")
        return self.user


def build_caller_context(token: Optional[str], repository: SQLRepository) -> CallerContext:
    user_id = read_session_token(token)
    if user_id is None:
        return CallerContext.anonymous()
    user = repository.get_user(user_id)
    if user is None:
        return CallerContext.anonymous()
    return CallerContext.for_user(user)
