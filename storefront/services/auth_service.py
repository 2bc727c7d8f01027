"""
Account sign-up, sign-in and sign-out use cases.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from storefront.core.errors import AuthenticationError, ConflictError, ValidationError
from storefront.core.security import hash_password, verify_password
from storefront.core.utils import normalize_email
from storefront.db.models import User
from storefront.domain.permissions import DEFAULT_PERMISSIONS, serialize_permissions
from storefront.repositories.sql_repository import DuplicateEmailError, SQLRepository
from storefront.services.context import CallerContext
from storefront.services.session_service import issue_session_token

logger = logging.getLogger(__name__)

SIGNOUT_MESSAGE = "Goodbye!"


@dataclass
class AuthResult:
    user: User
    session_token: str


@dataclass
class AuthService:
    """Handles signup, signin and signout."""

    repository: Optional[SQLRepository] = None

    def __post_init__(self):
        if self.repository is None:
            self.repository = SQLRepository()

    def signup(self, email: str, password: str, name: str = "") -> AuthResult:
        address = normalize_email(email)
        if not address:
            raise ValidationError("Email is required")
        if not password:
            raise ValidationError("Password is required")
        if self.repository.get_user_by_email(address):
            raise ConflictError("An account with that email already exists")
        try:
            user = self.repository.create_user(
                address,
                password_hash=hash_password(password),
                name=(name or "").strip(),
                permissions=serialize_permissions(DEFAULT_PERMISSIONS),
            )
        except DuplicateEmailError:
            raise ConflictError("An account with that email already exists")
        logger.info("User %s signed up", user.id)
        return AuthResult(user=user, session_token=issue_session_token(user.id))

    def signin(self, email: str, password: str) -> AuthResult:
        address = normalize_email(email)
        user = self.repository.get_user_by_email(address) if address else None
        if not user:
            raise AuthenticationError(f"No such user found for email {address}")
        if not verify_password(password or "", user.password_hash):
            logger.info("Failed sign-in for user %s", user.id)
            raise AuthenticationError("Invalid password")
        return AuthResult(user=user, session_token=issue_session_token(user.id))

    def signout(self) -> str:
        return SIGNOUT_MESSAGE

    def current_user(self, caller: CallerContext) -> Optional[User]:
        return caller.user
