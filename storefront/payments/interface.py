"""
Payment Gateway Interface
=========================

Abstract contract the checkout flow charges through.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    """
    Outcome of a captured charge.

    Attributes:
        charge_id: Gateway transaction identifier
        captured_amount: Amount actually captured, in the smallest currency unit
    """

    charge_id: str
    captured_amount: int


class PaymentError(Exception):
    """Base exception for gateway operations."""


class PaymentDeclinedError(PaymentError):
    """The gateway answered and refused the charge; nothing was captured."""


class PaymentUnavailableError(PaymentError):
    """The gateway rejected the request before processing it."""


class PaymentTimeoutError(PaymentError):
    """The request may or may not have reached the gateway."""


class PaymentGateway(ABC):
    """
    Concrete implementations:
        - StripeGateway: Stripe charges
    """

    @abstractmethod
    def charge(self, amount: int, currency: str, token: str, *, idempotency_key: str) -> ChargeResult:
        """
        Authorize and capture a charge.

        Args:
            amount: Amount in the smallest currency unit
            currency: ISO currency code
            token: Opaque payment token presented by the client
            idempotency_key: Key identifying this checkout attempt; replays must not charge twice

        Raises:
            PaymentDeclinedError, PaymentUnavailableError, PaymentTimeoutError
        """
