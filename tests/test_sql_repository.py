"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy import Update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.db import models
from storefront.db.session import get_session
from storefront.domain.checkout import CheckoutState
from storefront.repositories.sql_repository import DuplicateEmailError


def test_user_lookup_and_duplicate_email(repo):
    user = repo.create_user("alice@example.com", password_hash="hash")
    assert repo.get_user_by_email("alice@example.com").id == user.id
    assert user.permissions == ["USER"]
    with pytest.raises(DuplicateEmailError):
        repo.create_user("alice@example.com", password_hash="other")


def test_replace_permissions_unknown_user(repo):
    assert repo.replace_user_permissions(999, ["ADMIN"]) is None


def test_reset_token_lookup_respects_expiry(repo):
    user = repo.create_user("bob@example.com", password_hash="hash")
    now = datetime.now(timezone.utc)
    repo.set_reset_token(user.id, "tok", now + timedelta(minutes=5))
    assert repo.get_user_by_reset_token("tok", now).id == user.id
    assert repo.get_user_by_reset_token("tok", now + timedelta(minutes=10)) is None

    repo.clear_reset_token_if_matches(user.id, "other")
    assert repo.get_user(user.id).reset_token == "tok"
    repo.clear_reset_token_if_matches(user.id, "tok")
    assert repo.get_user(user.id).reset_token is None


def test_cart_line_is_unique_per_user_and_item(repo):
    user = repo.create_user("carol@example.com", password_hash="hash")
    item = repo.create_item(user.id, title="Lamp", description="", price=100)
    for _ in range(3):
        line = repo.increment_or_insert_cart_item(user.id, item.id)
    assert line.quantity == 3
    assert line.item.title == "Lamp"
    assert len(repo.get_cart(user.id)) == 1


def test_unique_constraint_backs_the_increment(repo):
    user = repo.create_user("dave@example.com", password_hash="hash")
    item = repo.create_item(user.id, title="Rug", description="", price=100)

    with get_session() as session:
        session.add(models.CartItem(user_id=user.id, item_id=item.id, quantity=1))
        session.commit()
    with get_session() as session:
        session.add(models.CartItem(user_id=user.id, item_id=item.id, quantity=1))
        with pytest.raises(IntegrityError):
            session.commit()

    line = repo.increment_or_insert_cart_item(user.id, item.id)
    assert line.quantity == 2


@pytest.fixture()
def rival_inserts_first(monkeypatch):
    """
    Make cart UPDATEs miss as if they ran just before another request
    committed the same (user, item) line.
    """
    original_execute = Session.execute
    state = {"misses": 0, "limit": 1}

    def _execute(self, statement, *args, **kwargs):
        is_cart_update = isinstance(statement, Update) and statement.table.name == models.CartItem.__tablename__
        if is_cart_update and state["misses"] < state["limit"]:
            if state["misses"] == 0:
                with get_session() as rival:
                    rival.add(models.CartItem(user_id=state["user_id"], item_id=state["item_id"], quantity=1))
                    rival.commit()
            state["misses"] += 1
            return SimpleNamespace(rowcount=0)
        return original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(Session, "execute", _execute)
    return state


def test_lost_insert_race_retries_as_increment(repo, rival_inserts_first):
    user = repo.create_user("erin@example.com", password_hash="hash")
    item = repo.create_item(user.id, title="Vase", description="", price=100)
    rival_inserts_first.update(user_id=user.id, item_id=item.id)

    line = repo.increment_or_insert_cart_item(user.id, item.id)

    assert rival_inserts_first["misses"] == 1
    assert line.quantity == 2
    assert [(row.item_id, row.quantity) for row in repo.get_cart(user.id)] == [(item.id, 2)]


def test_increment_gives_up_after_repeated_collisions(repo, rival_inserts_first):
    user = repo.create_user("frank@example.com", password_hash="hash")
    item = repo.create_item(user.id, title="Bowl", description="", price=100)
    rival_inserts_first.update(user_id=user.id, item_id=item.id, limit=10)

    with pytest.raises(IntegrityError):
        repo.increment_or_insert_cart_item(user.id, item.id, attempts=2)

    assert rival_inserts_first["misses"] == 2
    assert [row.quantity for row in repo.get_cart(user.id)] == [1]


def _charged_attempt(repo, user, state=CheckoutState.CHARGED):
    attempt = repo.create_checkout_attempt(
        user_id=user.id,
        idempotency_key="key-1",
        amount=100,
        currency="usd",
        lines=[],
        state=state.value,
    )
    repo.update_checkout_attempt(attempt.id, charge_id="ch_1", captured_amount=100)
    return attempt


def test_record_order_is_idempotent_per_attempt(repo):
    user = repo.create_user("gina@example.com", password_hash="hash")
    attempt = _charged_attempt(repo, user)
    recordable = [CheckoutState.CHARGED.value, CheckoutState.RECORD_FAILED.value]

    first = repo.record_order(attempt.id, CheckoutState.CART_CLEARED.value, recordable)
    second = repo.record_order(attempt.id, CheckoutState.CART_CLEARED.value, recordable)

    assert second.id == first.id
    assert len(repo.list_orders(user.id)) == 1
    stored = repo.get_checkout_attempt(attempt.id)
    assert (stored.state, stored.order_id) == (CheckoutState.CART_CLEARED.value, first.id)


def test_record_order_refuses_attempt_outside_recordable_states(repo):
    user = repo.create_user("hank@example.com", password_hash="hash")
    attempt = _charged_attempt(repo, user, state=CheckoutState.CHARGE_FAILED)

    assert repo.record_order(attempt.id, CheckoutState.CART_CLEARED.value, [CheckoutState.CHARGED.value]) is None
    assert repo.list_orders(user.id) == []
    assert repo.get_checkout_attempt(attempt.id).state == CheckoutState.CHARGE_FAILED.value


def test_conditional_attempt_update(repo):
    user = repo.create_user("ivy@example.com", password_hash="hash")
    attempt = _charged_attempt(repo, user)

    assert not repo.update_checkout_attempt(
        attempt.id, from_states=[CheckoutState.PENDING.value], state=CheckoutState.CHARGE_FAILED.value
    )
    assert repo.update_checkout_attempt(
        attempt.id, from_states=[CheckoutState.CHARGED.value], state=CheckoutState.RECORD_FAILED.value
    )
    assert repo.get_checkout_attempt(attempt.id).state == CheckoutState.RECORD_FAILED.value
