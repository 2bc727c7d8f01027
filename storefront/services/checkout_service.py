"""
Checkout: turn the caller's cart into a paid, immutable order.

Each checkout is tracked by a CheckoutAttempt row that moves through
PENDING -> CHARGED -> RECORDED -> CART_CLEARED. The charge id is committed
before any order row is written, so a failure after capture leaves an attempt
in CHARGED or RECORD_FAILED that ``reconcile`` can finish from the stored
cart snapshot.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import get_settings
from storefront.core.errors import (
    AmbiguousOutcomeError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from storefront.db.models import CheckoutAttempt, Order
from storefront.domain.checkout import (
    NEEDS_RECONCILIATION,
    CheckoutState,
    LineSnapshot,
    advance,
    cart_total,
)
from storefront.domain.permissions import Permission, has_any
from storefront.payments import (
    PaymentError,
    PaymentGateway,
    PaymentTimeoutError,
    get_payment_gateway,
)
from storefront.repositories.sql_repository import SQLRepository
from storefront.services.context import CallerContext

logger = logging.getLogger(__name__)

UNRESOLVED_STATES = NEEDS_RECONCILIATION | {CheckoutState.CHARGE_UNKNOWN}
PAYMENT_FAILED_MESSAGE = "Your payment could not be completed. Please try another card."


class CheckoutService:
    def __init__(self, repository: Optional[SQLRepository] = None, gateway: Optional[PaymentGateway] = None) -> None:
        self.repository = repository or SQLRepository()
        self._gateway = gateway
        self.settings = get_settings()

    @property
    def gateway(self) -> PaymentGateway:
        if self._gateway is None:
            self._gateway = get_payment_gateway()
        return self._gateway

    # -------------------------------------- checkout --------------------------------------
    def create_order(self, caller: CallerContext, payment_token: str) -> Order:
        user = caller.require_user()
        token = (payment_token or "").strip()
        if not token:
            raise ValidationError("A payment token is required")

        # The amount always comes from the cart as stored, never from the client.
        lines = [LineSnapshot.from_cart_item(cart_item) for cart_item in self.repository.get_cart(user.id)]
        if not lines:
            raise ValidationError("Your cart is empty")
        amount = cart_total(lines)

        attempt = self.repository.create_checkout_attempt(
            user_id=user.id,
            idempotency_key=uuid.uuid4().hex,
            amount=amount,
            currency=self.settings.currency,
            lines=[line.to_dict() for line in lines],
            state=CheckoutState.PENDING.value,
        )
        logger.info("Checkout %s for user %s: charging %s %s", attempt.id, user.id, amount, attempt.currency)

        try:
            result = self.gateway.charge(amount, attempt.currency, token, idempotency_key=attempt.idempotency_key)
        except PaymentTimeoutError as exc:
            self._mark(attempt, CheckoutState.CHARGE_UNKNOWN, error=str(exc))
            raise AmbiguousOutcomeError(
                "We could not confirm your payment. Please check before trying again.",
                reference=attempt.id,
            )
        except PaymentError as exc:
            logger.warning("Checkout %s: charge failed: %s", attempt.id, exc)
            self._mark(attempt, CheckoutState.CHARGE_FAILED, error=str(exc))
            raise ExternalServiceError(PAYMENT_FAILED_MESSAGE)

        if result.captured_amount != amount:
            logger.warning(
                "Checkout %s captured %s but cart totalled %s", attempt.id, result.captured_amount, amount
            )
        try:
            self._mark(
                attempt,
                CheckoutState.CHARGED,
                charge_id=result.charge_id,
                captured_amount=result.captured_amount,
            )
        except SQLAlchemyError:
            logger.critical(
                "Checkout %s: charge %s captured but not recorded", attempt.id, result.charge_id, exc_info=True
            )
            raise AmbiguousOutcomeError(
                "Your payment was received but the order could not be saved. Please contact support.",
                reference=attempt.id,
            )
        return self._record(attempt.id, CheckoutState.CHARGED)

    def _mark(self, attempt: CheckoutAttempt, target: CheckoutState, **values) -> None:
        state = advance(attempt.state, target)
        moved = self.repository.update_checkout_attempt(
            attempt.id, from_states=[attempt.state], state=state.value, **values
        )
        if not moved:
            raise ConflictError(f"Checkout attempt {attempt.id} changed while it was being updated")
        attempt.state = state.value

    def _record(self, attempt_id: int, current: CheckoutState) -> Order:
        advance(current, CheckoutState.RECORDED)
        final = advance(CheckoutState.RECORDED, CheckoutState.CART_CLEARED)
        recordable = [state.value for state in NEEDS_RECONCILIATION]
        try:
            order = self.repository.record_order(attempt_id, final.value, recordable)
        except SQLAlchemyError as exc:
            logger.critical("Checkout %s: order write failed after capture", attempt_id, exc_info=True)
            try:
                # Only an attempt still waiting for its order is flagged.
                self.repository.update_checkout_attempt(
                    attempt_id,
                    from_states=recordable,
                    state=advance(current, CheckoutState.RECORD_FAILED).value,
                    error=exc.__class__.__name__,
                )
            except SQLAlchemyError:
                logger.critical("Checkout %s: could not flag attempt for reconciliation", attempt_id, exc_info=True)
            raise AmbiguousOutcomeError(
                "Your payment was received but the order could not be saved. Please contact support.",
                reference=attempt_id,
            )
        if order is None:
            raise ConflictError(f"Checkout attempt {attempt_id} can no longer be recorded")
        logger.info("Checkout %s recorded order %s", attempt_id, order.id)
        return order

    # -------------------------------------- reconciliation --------------------------------------
    def pending_reconciliation(self) -> list[CheckoutAttempt]:
        return self.repository.list_checkout_attempts(state.value for state in UNRESOLVED_STATES)

    def reconcile(self, attempt_id: int) -> Optional[Order]:
        """Finish a captured checkout whose order was never written."""
        attempt = self.repository.get_checkout_attempt(attempt_id)
        if not attempt:
            raise NotFoundError(f"No checkout attempt {attempt_id}")
        state = CheckoutState(attempt.state)
        if state == CheckoutState.CART_CLEARED:
            return self.repository.get_order(attempt.order_id)
        if state not in NEEDS_RECONCILIATION:
            return None
        return self._record(attempt.id, state)

    def resolve_unknown(
        self,
        attempt_id: int,
        *,
        charge_id: Optional[str] = None,
        captured_amount: Optional[int] = None,
    ) -> Optional[Order]:
        """
        Settle an attempt whose charge outcome was unknown, once checked with the gateway.

        With a charge id the order is recorded; without one the attempt is marked failed.
        """
        attempt = self.repository.get_checkout_attempt(attempt_id)
        if not attempt:
            raise NotFoundError(f"No checkout attempt {attempt_id}")
        if CheckoutState(attempt.state) != CheckoutState.CHARGE_UNKNOWN:
            raise ValidationError(f"Checkout attempt {attempt_id} is {attempt.state}, not charge_unknown")
        if not charge_id:
            self._mark(attempt, CheckoutState.CHARGE_FAILED, error="resolved as not charged")
            return None
        self._mark(
            attempt,
            CheckoutState.CHARGED,
            charge_id=charge_id,
            captured_amount=captured_amount if captured_amount is not None else attempt.amount,
        )
        return self._record(attempt.id, CheckoutState.CHARGED)

    # -------------------------------------- orders --------------------------------------
    def list_orders(self, caller: CallerContext) -> list[Order]:
        user = caller.require_user()
        return self.repository.list_orders(user.id)

    def get_order(self, caller: CallerContext, order_id: int) -> Order:
        user = caller.require_user()
        order = self.repository.get_order(order_id)
        if not order:
            raise NotFoundError(f"No order found for id {order_id}")
        if order.user_id != user.id and not has_any(user, {Permission.ADMIN}):
            raise AuthorizationError("You can't see this order")
        return order
