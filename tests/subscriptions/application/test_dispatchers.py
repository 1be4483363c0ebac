"""Application tests for the checkout outcome dispatchers."""

from unittest.mock import patch

import pytest
from protean import current_domain

from subscriptions.checkout.checkout import Checkout
from subscriptions.checkout.dispatchers import (
    Dispatcher,
    FailureDispatcher,
    OutOfStockDispatcher,
    PaymentFailedDispatcher,
    SuccessDispatcher,
)
from subscriptions.config import configure
from subscriptions.installment.installment import Installment, InstallmentResult
from subscriptions.order.order import Order, OrderStatus, PaymentSourceType


def _reload(installment):
    return current_domain.repository_for(Installment).get(installment.id)


def _order_with_captured_payment(source_type=PaymentSourceType.CREDIT_CARD.value):
    order = Order.create(customer_id="cust-001")
    order.add_line_item(variant_id="var-coffee", sku="SKU-1", name="Coffee", quantity=1, unit_price=20.0)
    order.recalculate()
    payment = order.add_payment(source_type=source_type, amount=20.0)
    order.capture_payment(payment.id, "txn-abc" if source_type == PaymentSourceType.CREDIT_CARD.value else None)
    return order


def _completed_order():
    order = _order_with_captured_payment()
    order.set_ship_address(
        {"full_name": "Jane Doe", "street": "1 Elm St", "city": "Springfield", "postal_code": "62701", "country": "US"}
    )
    for _ in range(4):
        order.next()
    assert order.complete()
    return order


class TestDispatcher:
    def test_dispatch_must_be_implemented(self):
        with pytest.raises(TypeError):
            Dispatcher([])


class TestSuccessDispatcher:
    def test_fulfills_installments(self, catalog, due_installment):
        installment = due_installment()
        order = Order.create(customer_id="cust-001")

        SuccessDispatcher([installment], order).dispatch()

        reloaded = _reload(installment)
        assert reloaded.fulfilled
        assert reloaded.details[-1].order_id == str(order.id)


class TestFailureDispatcher:
    def test_cancels_order_and_voids_captured_charge(self, catalog, gateway, due_installment):
        installment = due_installment()
        order = _order_with_captured_payment()

        FailureDispatcher([installment], order).dispatch()

        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Subscription checkout failed"
        assert gateway.voids == [{"method": "void_charge", "gateway_transaction_id": "txn-abc"}]
        assert _reload(installment).details[-1].result == InstallmentResult.FAILED.value

    def test_releases_captured_store_credit(self, catalog, gateway, due_installment):
        catalog.set_store_credit("cust-001", 5.0)
        installment = due_installment()
        order = _order_with_captured_payment(PaymentSourceType.STORE_CREDIT.value)

        FailureDispatcher([installment], order).dispatch()

        assert catalog.store_credit_balance("cust-001") == 25.0
        assert gateway.voids == []

    def test_without_order(self, catalog, due_installment):
        installment = due_installment()

        FailureDispatcher([installment]).dispatch()

        reloaded = _reload(installment)
        assert reloaded.details[-1].result == InstallmentResult.FAILED.value
        assert reloaded.details[-1].order_id is None

    def test_leaves_cancelled_order_alone(self, catalog, gateway, due_installment):
        installment = due_installment()
        order = Order.create(customer_id="cust-001")
        order.cancel("Earlier failure")

        FailureDispatcher([installment], order).dispatch()

        assert order.cancellation_reason == "Earlier failure"

    def test_failed_void_is_logged_and_order_still_cancelled(self, catalog, gateway, due_installment):
        gateway.configure_voids(should_succeed=False, failure_reason="Charge already settled")
        installment = due_installment()
        order = _order_with_captured_payment()

        with patch("subscriptions.checkout.dispatchers.logger") as mock_logger:
            FailureDispatcher([installment], order).dispatch()

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "Failed to void captured payment"
        assert mock_logger.error.call_args.kwargs["gateway_transaction_id"] == "txn-abc"
        assert mock_logger.error.call_args.kwargs["reason"] == "Charge already settled"
        assert order.status == OrderStatus.CANCELLED.value
        assert _reload(installment).details[-1].result == InstallmentResult.FAILED.value

    def test_completed_order_keeps_its_payments(self, catalog, gateway, due_installment):
        installment = due_installment()
        order = _completed_order()

        FailureDispatcher([installment], order).dispatch()

        assert order.status == OrderStatus.COMPLETE.value
        assert order.captured_total == 20.0
        assert gateway.voids == []
        assert _reload(installment).details[-1].result == InstallmentResult.FAILED.value


class TestPaymentFailedDispatcher:
    def test_cancels_order_and_reschedules(self, catalog, due_installment):
        installment = due_installment()
        order = Order.create(customer_id="cust-001")

        PaymentFailedDispatcher([installment], order).dispatch()

        assert order.cancellation_reason == "Subscription payment failed"
        assert current_domain.repository_for(Order).get(order.id).status == OrderStatus.CANCELLED.value
        assert _reload(installment).details[-1].result == InstallmentResult.PAYMENT_FAILED.value


class TestOutOfStockDispatcher:
    def test_reschedules(self, catalog, due_installment):
        first = due_installment()
        second = due_installment()

        OutOfStockDispatcher([first, second]).dispatch()

        assert _reload(first).details[-1].result == InstallmentResult.OUT_OF_STOCK.value
        assert _reload(second).details[-1].result == InstallmentResult.OUT_OF_STOCK.value


class RecordingSuccessDispatcher(SuccessDispatcher):
    dispatched = []

    def dispatch(self):
        RecordingSuccessDispatcher.dispatched.append(self.order_id)
        super().dispatch()


class TestConfiguredDispatchers:
    def test_checkout_uses_configured_dispatcher(self, customer, gateway, due_installment):
        RecordingSuccessDispatcher.dispatched.clear()
        configure(success_dispatcher_class=RecordingSuccessDispatcher)

        order = Checkout([due_installment()]).process()

        assert RecordingSuccessDispatcher.dispatched == [str(order.id)]
