"""Configurable fake payment gateway for development and testing.

Simulates card capture without external calls. Tests flip it between
approving and declining to exercise the payment-failure paths of checkout,
make it reject voids or raise like an unreachable gateway, and inspect
`calls` to assert what was charged or voided.
"""

from uuid import uuid4

from subscriptions.gateway.port import ChargeResult, PaymentGateway, VoidResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.void_should_succeed: bool = True
        self.void_failure_reason: str = "Void rejected"
        self.charge_error: Exception | None = None
        self.charge_error_after: int = 0
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def configure_voids(self, should_succeed: bool, failure_reason: str = "Void rejected") -> None:
        self.void_should_succeed = should_succeed
        self.void_failure_reason = failure_reason

    def fail_charges_with(self, error: Exception | None, after: int = 0) -> None:
        """Raise `error` from create_charge once `after` charges have been attempted."""
        self.charge_error = error
        self.charge_error_after = after

    @property
    def charges(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "create_charge"]

    @property
    def voids(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "void_charge"]

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method_type: str,
        last4: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        attempted = len(self.charges)
        self.calls.append(
            {
                "method": "create_charge",
                "amount": amount,
                "currency": currency,
                "payment_method_type": payment_method_type,
                "last4": last4,
                "idempotency_key": idempotency_key,
            }
        )

        if self.charge_error is not None and attempted >= self.charge_error_after:
            raise self.charge_error

        if self.should_succeed:
            return ChargeResult(
                success=True,
                gateway_transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(
            success=False,
            gateway_status="failed",
            failure_reason=self.failure_reason,
        )

    def void_charge(self, gateway_transaction_id: str) -> VoidResult:
        self.calls.append({"method": "void_charge", "gateway_transaction_id": gateway_transaction_id})
        if self.void_should_succeed:
            return VoidResult(success=True, gateway_status="voided")
        return VoidResult(success=False, gateway_status="failed", failure_reason=self.void_failure_reason)
