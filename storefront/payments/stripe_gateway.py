"""
Stripe Payment Gateway
======================

Concrete implementation of PaymentGateway using Stripe charges.
"""

import logging

import stripe

from storefront.core.config import get_settings

from .interface import (
    ChargeResult,
    PaymentDeclinedError,
    PaymentGateway,
    PaymentTimeoutError,
    PaymentUnavailableError,
)

logger = logging.getLogger(__name__)


class StripeGateway(PaymentGateway):
    """
    Stripe gateway.

    Configuration (environment):
        STRIPE_SECRET_KEY: Stripe secret API key
    """

    def __init__(self, api_key: str | None = None, max_network_retries: int = 2):
        self.api_key = api_key if api_key is not None else get_settings().stripe_secret_key
        # Stripe only retries requests that carry an idempotency key.
        stripe.max_network_retries = max_network_retries
        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")

    def charge(self, amount: int, currency: str, token: str, *, idempotency_key: str) -> ChargeResult:
        try:
            charge = stripe.Charge.create(
                amount=amount,
                currency=currency,
                source=token,
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as exc:
            logger.info("Stripe declined charge %s: %s", idempotency_key, exc.code)
            raise PaymentDeclinedError(exc.user_message or "Card declined") from exc
        except stripe.InvalidRequestError as exc:
            logger.warning("Stripe rejected charge %s: %s", idempotency_key, exc)
            raise PaymentDeclinedError("Payment could not be processed") from exc
        except stripe.APIConnectionError as exc:
            logger.error("Stripe connection failed for charge %s: %s", idempotency_key, exc)
            raise PaymentTimeoutError("Payment gateway did not answer") from exc
        except stripe.StripeError as exc:
            logger.error("Stripe error for charge %s: %s", idempotency_key, exc)
            raise PaymentUnavailableError("Payment gateway error") from exc

        if getattr(charge, "status", None) == "failed" or not getattr(charge, "captured", True):
            raise PaymentDeclinedError("Payment was not captured")
        captured = getattr(charge, "amount_captured", None) or charge.amount
        logger.info("Stripe charge %s captured %s %s", charge.id, captured, currency)
        return ChargeResult(charge_id=charge.id, captured_amount=int(captured))
