"""
Password reset: single-use, time-limited tokens delivered by email.

A user is either without an active token or holds exactly one; requesting a
new token overwrites the previous one and a successful redemption clears it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Optional

from storefront.core import mailer
from storefront.core.config import get_settings
from storefront.core.errors import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from storefront.core.security import hash_password, new_reset_token
from storefront.core.utils import frontend_url, normalize_email
from storefront.repositories.sql_repository import SQLRepository
from storefront.services.auth_service import AuthResult
from storefront.services.session_service import issue_session_token

logger = logging.getLogger(__name__)

REQUEST_RESET_MESSAGE = "Thanks!"


@dataclass
class PasswordResetService:
    repository: Optional[SQLRepository] = None

    def __post_init__(self):
        self.settings = get_settings()
        if self.repository is None:
            self.repository = SQLRepository()

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def request_reset(self, email: str) -> str:
        address = normalize_email(email)
        user = self.repository.get_user_by_email(address) if address else None
        if not user:
            raise NotFoundError(f"No such user found for email {address}")
        token = new_reset_token()
        expiry = self._now() + timedelta(seconds=self.settings.password_reset_ttl)
        self.repository.set_reset_token(user.id, token, expiry)

        reset_url = frontend_url("/reset", {"resetToken": token})
        try:
            sent = mailer.send_email(
                "Your Password Reset Token",
                user.email,
                mailer.reset_email_html(reset_url),
                f"Reset your password here: {reset_url}",
            )
        except mailer.MailDeliveryError:
            # An undelivered token must not stay redeemable.
            self.repository.clear_reset_token_if_matches(user.id, token)
            logger.error("Reset email for user %s failed; token withdrawn", user.id)
            raise ExternalServiceError("We could not send the reset email. Please try again.")
        if not sent:
            logger.warning("Reset email for user %s was not sent (mail transport disabled)", user.id)
        return REQUEST_RESET_MESSAGE

    def reset_password(self, reset_token: str, password: str, confirm_password: str) -> AuthResult:
        if password != confirm_password:
            raise ValidationError("Your passwords don't match!")
        if not password:
            raise ValidationError("Password is required")
        token = (reset_token or "").strip()
        if not token:
            raise AuthenticationError("This token is either invalid or expired!")
        user = self.repository.redeem_reset_token(token, self._now(), hash_password(password))
        if not user:
            raise AuthenticationError("This token is either invalid or expired!")
        logger.info("Password reset for user %s", user.id)
        return AuthResult(user=user, session_token=issue_session_token(user.id))
