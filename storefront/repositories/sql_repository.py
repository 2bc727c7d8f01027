"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from storefront.db.models import (
    User,
    Item,
    CartItem,
    Order,
    OrderItem,
    CheckoutAttempt,
)
from storefront.db.session import get_session
from storefront.domain.checkout import LineSnapshot


class DuplicateEmailError(Exception):
    pass


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def list_users(self) -> list[User]:
        with get_session() as session:
            return list(session.execute(select(User).order_by(User.id)).scalars().all())

    def create_user(self, email: str, password_hash: str, name: str = "", permissions: Iterable[str] = ("USER",)) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            email=email,
            name=name or "",
            password_hash=password_hash,
            permissions=list(permissions),
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(email) from exc
            session.refresh(user)
            return user

    def replace_user_permissions(self, user_id: int, permissions: Iterable[str]) -> Optional[User]:
        """Overwrite the whole permission set in a single UPDATE."""
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(permissions=list(permissions), updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            if not result.rowcount:
                return None
            return session.get(User, user_id, populate_existing=True)

    def set_reset_token(self, user_id: int, token: Optional[str], expiry: Optional[datetime]) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(reset_token=token, reset_token_expiry=expiry, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def clear_reset_token_if_matches(self, user_id: int, token: str) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id, User.reset_token == token)
                .values(reset_token=None, reset_token_expiry=None)
            )
            session.execute(stmt)
            session.commit()

    def get_user_by_reset_token(self, token: str, now: datetime) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.reset_token == token, User.reset_token_expiry >= now)
            return session.execute(stmt).scalar_one_or_none()

    def redeem_reset_token(self, token: str, now: datetime, password_hash: str) -> Optional[User]:
        """
        Swap the password and clear the token in one conditional UPDATE.

        Returns None when the token no longer selects a user, so only one of
        two concurrent redemptions can win.
        """
        with get_session() as session:
            user = session.execute(
                select(User).where(User.reset_token == token, User.reset_token_expiry >= now)
            ).scalar_one_or_none()
            if not user:
                return None
            stmt = (
                update(User)
                .where(User.id == user.id, User.reset_token == token)
                .values(password_hash=password_hash, reset_token=None, reset_token_expiry=None, updated_at=now)
            )
            result = session.execute(stmt)
            session.commit()
            if not result.rowcount:
                return None
            return session.get(User, user.id, populate_existing=True)

    # -------------------------- items --------------------------
    def get_item(self, item_id: int) -> Optional[Item]:
        with get_session() as session:
            return session.get(Item, item_id)

    def create_item(self, user_id: int, **fields) -> Item:
        now = datetime.now(timezone.utc)
        item = Item(user_id=user_id, created_at=now, updated_at=now, **fields)
        with get_session() as session:
            session.add(item)
            session.commit()
            session.refresh(item)
            return item

    def update_item(self, item_id: int, **fields) -> Optional[Item]:
        with get_session() as session:
            stmt = (
                update(Item)
                .where(Item.id == item_id)
                .values(updated_at=datetime.now(timezone.utc), **fields)
            )
            session.execute(stmt)
            session.commit()
            return session.get(Item, item_id, populate_existing=True)

    def delete_item(self, item_id: int) -> None:
        with get_session() as session:
            session.execute(delete(CartItem).where(CartItem.item_id == item_id))
            session.execute(delete(Item).where(Item.id == item_id))
            session.commit()

    # -------------------------- cart --------------------------
    def get_cart_item(self, cart_item_id: int) -> Optional[CartItem]:
        with get_session() as session:
            stmt = select(CartItem).options(selectinload(CartItem.item)).where(CartItem.id == cart_item_id)
            return session.execute(stmt).scalar_one_or_none()

    def get_cart(self, user_id: int) -> list[CartItem]:
        with get_session() as session:
            stmt = (
                select(CartItem)
                .options(selectinload(CartItem.item))
                .where(CartItem.user_id == user_id)
                .order_by(CartItem.id)
            )
            return list(session.execute(stmt).scalars().all())

    def increment_or_insert_cart_item(self, user_id: int, item_id: int, *, attempts: int = 3) -> CartItem:
        """
        Bump the quantity of the (user, item) line or create it with quantity 1.

        The increment is a single UPDATE; a concurrent insert of the same line
        trips the unique constraint and the UPDATE is retried. The last
        IntegrityError propagates once ``attempts`` is exhausted.
        """
        for _ in range(max(1, attempts) - 1):
            try:
                return self._increment_or_insert_once(user_id, item_id)
            except IntegrityError:
                continue
        return self._increment_or_insert_once(user_id, item_id)

    def _increment_or_insert_once(self, user_id: int, item_id: int) -> CartItem:
        with get_session() as session:
            stmt = (
                update(CartItem)
                .where(CartItem.user_id == user_id, CartItem.item_id == item_id)
                .values(quantity=CartItem.quantity + 1)
            )
            result = session.execute(stmt)
            if not result.rowcount:
                session.add(CartItem(user_id=user_id, item_id=item_id, quantity=1, created_at=datetime.now(timezone.utc)))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise
            stmt = (
                select(CartItem)
                .options(selectinload(CartItem.item))
                .where(CartItem.user_id == user_id, CartItem.item_id == item_id)
                .execution_options(populate_existing=True)
            )
            return session.execute(stmt).scalar_one()

    def delete_cart_item(self, cart_item_id: int) -> None:
        with get_session() as session:
            session.execute(delete(CartItem).where(CartItem.id == cart_item_id))
            session.commit()

    # -------------------------- orders --------------------------
    def get_order(self, order_id: int) -> Optional[Order]:
        with get_session() as session:
            stmt = select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
            return session.execute(stmt).scalar_one_or_none()

    def list_orders(self, user_id: int) -> list[Order]:
        with get_session() as session:
            stmt = (
                select(Order)
                .options(selectinload(Order.items))
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.id.desc())
            )
            return list(session.execute(stmt).scalars().all())

    def record_order(self, attempt_id: int, final_state: str, from_states: Iterable[str]) -> Optional[Order]:
        """
        Materialize the order of a charged checkout attempt.

        Order, snapshots, cart deletion and the attempt's new state commit
        together or not at all. The attempt is claimed with a conditional
        UPDATE on ``from_states``; an attempt that already owns an order
        returns that order, and one in any other state returns None.
        """
        from_states = list(from_states)
        with get_session() as session:
            attempt = session.get(CheckoutAttempt, attempt_id)
            if attempt is None:
                raise LookupError(f"checkout attempt {attempt_id} not found")
            if attempt.order_id is not None:
                return self._load_order(session, attempt.order_id)
            claimed = session.execute(
                update(CheckoutAttempt)
                .where(
                    CheckoutAttempt.id == attempt_id,
                    CheckoutAttempt.state.in_(from_states),
                    CheckoutAttempt.order_id.is_(None),
                )
                .values(state=final_state, error=None, updated_at=datetime.now(timezone.utc))
            ).rowcount
            if not claimed:
                session.rollback()
                current = session.get(CheckoutAttempt, attempt_id, populate_existing=True)
                if current is not None and current.order_id is not None:
                    return self._load_order(session, current.order_id)
                return None
            lines = [LineSnapshot.from_dict(raw) for raw in attempt.lines or []]
            order = Order(
                total=attempt.captured_amount,
                charge=attempt.charge_id,
                user_id=attempt.user_id,
                created_at=datetime.now(timezone.utc),
            )
            for position, line in enumerate(lines):
                order.items.append(
                    OrderItem(
                        user_id=attempt.user_id,
                        position=position,
                        title=line.title,
                        description=line.description,
                        image=line.image,
                        large_image=line.large_image,
                        price=line.price,
                        quantity=line.quantity,
                    )
                )
            session.add(order)
            session.flush()
            for line in lines:
                self._consume_cart_line(session, attempt.user_id, line)
            session.execute(
                update(CheckoutAttempt).where(CheckoutAttempt.id == attempt_id).values(order_id=order.id)
            )
            session.commit()
            return self._load_order(session, order.id)

    def _load_order(self, session, order_id: int) -> Order:
        stmt = select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        return session.execute(stmt.execution_options(populate_existing=True)).scalar_one()

    def _consume_cart_line(self, session, user_id: int, line: LineSnapshot) -> None:
        # Units added after the cart was read stay in the cart.
        session.execute(
            delete(CartItem).where(
                CartItem.id == line.cart_item_id,
                CartItem.user_id == user_id,
                CartItem.quantity <= line.quantity,
            )
        )
        session.execute(
            update(CartItem)
            .where(
                CartItem.id == line.cart_item_id,
                CartItem.user_id == user_id,
                CartItem.quantity > line.quantity,
            )
            .values(quantity=CartItem.quantity - line.quantity)
        )

    # -------------------------- checkout attempts --------------------------
    def create_checkout_attempt(
        self,
        *,
        user_id: int,
        idempotency_key: str,
        amount: int,
        currency: str,
        lines: list[dict],
        state: str,
    ) -> CheckoutAttempt:
        now = datetime.now(timezone.utc)
        attempt = CheckoutAttempt(
            user_id=user_id,
            idempotency_key=idempotency_key,
            amount=amount,
            currency=currency,
            lines=lines,
            state=state,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(attempt)
            session.commit()
            session.refresh(attempt)
            return attempt

    def get_checkout_attempt(self, attempt_id: int) -> Optional[CheckoutAttempt]:
        with get_session() as session:
            return session.get(CheckoutAttempt, attempt_id)

    def update_checkout_attempt(
        self,
        attempt_id: int,
        *,
        from_states: Optional[Iterable[str]] = None,
        **values,
    ) -> bool:
        """
        Update an attempt, optionally only while it is still in one of ``from_states``.

        Returns False when no row matched.
        """
        with get_session() as session:
            stmt = update(CheckoutAttempt).where(CheckoutAttempt.id == attempt_id)
            if from_states is not None:
                stmt = stmt.where(
                    CheckoutAttempt.state.in_(list(from_states)),
                    CheckoutAttempt.order_id.is_(None),
                )
            result = session.execute(stmt.values(updated_at=datetime.now(timezone.utc), **values))
            session.commit()
            return bool(result.rowcount)

    def list_checkout_attempts(self, states: Iterable[str]) -> list[CheckoutAttempt]:
        with get_session() as session:
            stmt = (
                select(CheckoutAttempt)
                .where(CheckoutAttempt.state.in_(list(states)))
                .order_by(CheckoutAttempt.id)
            )
            return list(session.execute(stmt).scalars().all())
