"""
Payment gateway abstraction used by the checkout flow.
"""

from functools import lru_cache

from .interface import (
    ChargeResult,
    PaymentDeclinedError,
    PaymentError,
    PaymentGateway,
    PaymentTimeoutError,
    PaymentUnavailableError,
)
from .stripe_gateway import StripeGateway


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return StripeGateway()


__all__ = [
    "ChargeResult",
    "PaymentDeclinedError",
    "PaymentError",
    "PaymentGateway",
    "PaymentTimeoutError",
    "PaymentUnavailableError",
    "StripeGateway",
    "get_payment_gateway",
]
