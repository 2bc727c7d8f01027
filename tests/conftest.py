from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the storefront package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront.core import config as core_config  # noqa: E402
from storefront.core.rate_limiter import reset_rate_limits  # noqa: E402
from storefront.core.security import hash_password  # noqa: E402
from storefront.db import models  # noqa: E402
from storefront.db import session as db_session  # noqa: E402
from storefront.payments import ChargeResult, PaymentDeclinedError, PaymentGateway, PaymentTimeoutError  # noqa: E402
from storefront.repositories.sql_repository import SQLRepository  # noqa: E402


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point the app at a temporary SQLite file and reset settings/engine caches."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("APP_SECRET", "test-secret")
    monkeypatch.setenv("FRONTEND_URL", "http://shop.test")
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM"):
        monkeypatch.delenv(name, raising=False)
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    reset_rate_limits()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    core_config.get_settings.cache_clear()


@pytest.fixture()
def repo(db_env) -> SQLRepository:
    return SQLRepository()


class FakeGateway(PaymentGateway):
    """Records charges; can be told to decline or time out."""

    def __init__(self, fail_with: Exception | None = None, capture_override: int | None = None):
        self.calls: list[dict] = []
        self.fail_with = fail_with
        self.capture_override = capture_override

    def charge(self, amount, currency, token, *, idempotency_key):
        self.calls.append({"amount": amount, "currency": currency, "token": token, "key": idempotency_key})
        if self.fail_with is not None:
            raise self.fail_with
        captured = self.capture_override if self.capture_override is not None else amount
        return ChargeResult(charge_id=f"ch_{len(self.calls)}_{idempotency_key[:8]}", captured_amount=captured)


@pytest.fixture()
def gateway_factory():
    return FakeGateway


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def declining_gateway() -> FakeGateway:
    return FakeGateway(fail_with=PaymentDeclinedError("Your card was declined."))


@pytest.fixture()
def timeout_gateway() -> FakeGateway:
    return FakeGateway(fail_with=PaymentTimeoutError("Payment gateway did not answer"))


@pytest.fixture()
def make_user(repo):
    counter = {"n": 0}

    def _make(email: str | None = None, password: str = "secret-pass", permissions=("USER",)):
        counter["n"] += 1
        address = email or f"user{counter['n']}@example.com"
        return repo.create_user(address, password_hash=hash_password(password), permissions=list(permissions))

    return _make


@pytest.fixture()
def make_item(repo):
    def _make(owner, price: int = 500, title: str = "Shoes"):
        return repo.create_item(owner.id, title=title, description=f"{title} description", price=price)

    return _make
