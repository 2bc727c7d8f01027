from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from storefront.core import mailer
from storefront.core.errors import AuthenticationError, ExternalServiceError, NotFoundError, ValidationError
from storefront.core.security import verify_password
from storefront.services.password_reset_service import PasswordResetService


@pytest.fixture()
def outbox(monkeypatch):
    sent = []

    def _send(subject, to_email, html_body, text_body=None):
        sent.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})
        return True

    monkeypatch.setattr(mailer, "send_email", _send)
    return sent


def test_request_reset_stores_token_and_mails_link(repo, make_user, outbox):
    user = make_user("reset@example.com")
    assert PasswordResetService().request_reset("Reset@Example.com") == "Thanks!"

    stored = repo.get_user(user.id)
    assert len(stored.reset_token) == 40
    int(stored.reset_token, 16)
    assert stored.reset_token_expiry is not None
    assert outbox[0]["to"] == "reset@example.com"
    assert f"http://shop.test/reset?resetToken={stored.reset_token}" in outbox[0]["text"]


def test_request_reset_unknown_email(repo, outbox):
    with pytest.raises(NotFoundError):
        PasswordResetService().request_reset("nobody@example.com")
    assert outbox == []


def test_failed_delivery_withdraws_token(repo, make_user, monkeypatch):
    user = make_user()

    def _boom(*args, **kwargs):
        raise mailer.MailDeliveryError("connection refused")

    monkeypatch.setattr(mailer, "send_email", _boom)
    with pytest.raises(ExternalServiceError):
        PasswordResetService().request_reset(user.email)
    assert repo.get_user(user.id).reset_token is None


def test_new_request_overwrites_previous_token(repo, make_user, outbox):
    user = make_user()
    svc = PasswordResetService()
    svc.request_reset(user.email)
    first = repo.get_user(user.id).reset_token
    svc.request_reset(user.email)
    second = repo.get_user(user.id).reset_token
    assert first != second
    with pytest.raises(AuthenticationError):
        svc.reset_password(first, "new-pass-1", "new-pass-1")


def test_reset_password_is_single_use(repo, make_user, outbox):
    user = make_user(password="old-pass")
    svc = PasswordResetService()
    svc.request_reset(user.email)
    token = repo.get_user(user.id).reset_token

    result = svc.reset_password(token, "new-pass-1", "new-pass-1")
    assert result.user.id == user.id
    assert result.session_token

    stored = repo.get_user(user.id)
    assert verify_password("new-pass-1", stored.password_hash)
    assert stored.reset_token is None
    assert stored.reset_token_expiry is None

    with pytest.raises(AuthenticationError):
        svc.reset_password(token, "another-pass", "another-pass")


def test_expired_token_leaves_password_unchanged(repo, make_user):
    user = make_user(password="old-pass")
    repo.set_reset_token(user.id, "ab" * 20, datetime.now(timezone.utc) - timedelta(seconds=1))

    with pytest.raises(AuthenticationError, match="invalid or expired"):
        PasswordResetService().reset_password("ab" * 20, "new-pass-1", "new-pass-1")
    assert verify_password("old-pass", repo.get_user(user.id).password_hash)


def test_mismatched_confirmation_is_rejected_first(repo, make_user):
    user = make_user(password="old-pass")
    repo.set_reset_token(user.id, "cd" * 20, datetime.now(timezone.utc) + timedelta(hours=1))

    with pytest.raises(ValidationError):
        PasswordResetService().reset_password("cd" * 20, "new-pass-1", "new-pass-2")
    stored = repo.get_user(user.id)
    assert stored.reset_token == "cd" * 20
    assert verify_password("old-pass", stored.password_hash)
