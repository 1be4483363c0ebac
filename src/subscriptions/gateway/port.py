"""Payment gateway port (abstract interface).

Subscription orders are paid with the customer's stored card. The checkout
only ever needs to charge that card for the order total, and to void the
charge again when the order is cancelled after a partial failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge attempt against a stored card."""

    success: bool
    gateway_transaction_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class VoidResult:
    success: bool
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method_type: str,
        last4: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge a stored payment source."""
        ...

    @abstractmethod
    def void_charge(self, gateway_transaction_id: str) -> VoidResult:
        """Void a previously captured charge."""
        ...
