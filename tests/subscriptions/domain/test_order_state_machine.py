"""Tests for the Order aggregate — checkout steps, completion and cancellation."""

import pytest
from protean.exceptions import ValidationError

from subscriptions.order.events import OrderCancelled, OrderCompleted, OrderTransitioned
from subscriptions.order.order import Order, OrderStatus, PaymentSourceType, PaymentStatus
from subscriptions.storefront.port import PromotionAdjustment

ADDRESS = {
    "full_name": "Jane Doe",
    "street": "1 Elm St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


def _make_order():
    order = Order.create(customer_id="cust-001", email="jane@example.com", store_id="store-1")
    order.add_line_item(variant_id="var-001", sku="SKU-001", name="Coffee", quantity=2, unit_price=10.0)
    order.recalculate()
    return order


def _order_at_state(target_status):
    """Create an order and advance it to the desired state."""
    order = _make_order()
    if target_status == OrderStatus.CART:
        return order

    order.next()
    if target_status == OrderStatus.ADDRESS:
        return order

    order.set_ship_address(ADDRESS)
    order.next()
    if target_status == OrderStatus.DELIVERY:
        return order

    order.next()
    if target_status == OrderStatus.PAYMENT:
        return order

    order.add_payment(source_type=PaymentSourceType.CREDIT_CARD.value, amount=order.total, last4="4242")
    order.next()
    return order


def _card_payment(order):
    return next(p for p in order.payments if p.source_type == PaymentSourceType.CREDIT_CARD.value)


class TestOrderContents:
    def test_create_starts_in_cart(self):
        order = Order.create(customer_id="cust-001")
        assert order.status == OrderStatus.CART.value
        assert order.subscription_order is True
        assert order.total == 0.0

    def test_line_items_drive_totals(self):
        order = _make_order()
        assert order.item_total == 20.0
        assert order.total == 20.0

    def test_increase_line_item_quantity(self):
        order = _make_order()
        item = order.line_item_for("var-001")

        order.increase_line_item_quantity(item.id, 3)
        order.recalculate()

        assert order.line_item_for("var-001").quantity == 5
        assert order.total == 50.0

    def test_line_items_locked_after_cart(self):
        order = _order_at_state(OrderStatus.ADDRESS)
        with pytest.raises(ValidationError):
            order.add_line_item(variant_id="var-002", sku="SKU-002", name="Tea", quantity=1, unit_price=5.0)

    def test_adjustments_reduce_total(self):
        order = _make_order()
        order.apply_adjustments([PromotionAdjustment(label="Welcome", amount=-5.0, source="promo-1")])
        assert order.promo_total == -5.0
        assert order.total == 15.0

    def test_total_never_negative(self):
        order = _make_order()
        order.apply_adjustments([PromotionAdjustment(label="Big", amount=-50.0)])
        assert order.total == 0.0

    def test_apply_adjustments_replaces_previous(self):
        order = _make_order()
        order.apply_adjustments([PromotionAdjustment(label="A", amount=-5.0)])
        order.apply_adjustments([PromotionAdjustment(label="B", amount=-2.0)])
        assert len(order.adjustments) == 1
        assert order.total == 18.0


class TestCheckoutSteps:
    def test_full_walk_to_confirm(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        assert order.status == OrderStatus.CONFIRM.value

    def test_next_raises_transition_event(self):
        order = _make_order()
        order._events.clear()

        order.next()

        event = order._events[0]
        assert isinstance(event, OrderTransitioned)
        assert event.from_status == "Cart"
        assert event.to_status == "Address"

    def test_empty_cart_cannot_advance(self):
        order = Order.create(customer_id="cust-001")
        with pytest.raises(ValidationError):
            order.next()
        assert order.status == OrderStatus.CART.value

    def test_address_required(self):
        order = _order_at_state(OrderStatus.ADDRESS)
        with pytest.raises(ValidationError) as exc:
            order.next()
        assert "ship_address" in exc.value.messages
        assert order.status == OrderStatus.ADDRESS.value

    def test_payment_step_requires_a_payment(self):
        order = _order_at_state(OrderStatus.PAYMENT)
        with pytest.raises(ValidationError) as exc:
            order.next()
        assert exc.value.messages["payments"] == ["No payment found"]

    def test_payment_step_requires_full_coverage(self):
        order = _order_at_state(OrderStatus.PAYMENT)
        order.add_payment(source_type=PaymentSourceType.STORE_CREDIT.value, amount=5.0)
        with pytest.raises(ValidationError):
            order.next()

    def test_free_order_needs_no_payment(self):
        order = _make_order()
        order.apply_adjustments([PromotionAdjustment(label="Free", amount=-20.0)])
        order.next()
        order.set_ship_address(ADDRESS)
        order.next()
        order.next()
        order.next()
        assert order.status == OrderStatus.CONFIRM.value
        assert order.complete() is True

    def test_cannot_advance_past_confirm(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        with pytest.raises(ValidationError):
            order.next()


class TestOrderCompletion:
    def test_complete_after_capture(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        order.capture_payment(_card_payment(order).id, "txn-001")
        order._events.clear()

        assert order.complete() is True
        assert order.status == OrderStatus.COMPLETE.value
        assert order.completed_at is not None
        assert isinstance(order._events[0], OrderCompleted)

    def test_complete_is_quiet_with_pending_payment(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        assert order.complete() is False
        assert order.status == OrderStatus.CONFIRM.value

    def test_complete_is_quiet_with_failed_payment(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        order.fail_payment(_card_payment(order).id, "Card declined")

        assert order.complete() is False
        assert order.has_failed_payments
        assert _card_payment(order).failure_reason == "Card declined"

    def test_complete_is_quiet_before_confirm(self):
        order = _order_at_state(OrderStatus.DELIVERY)
        assert order.complete() is False

    def test_cannot_capture_twice(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        payment = _card_payment(order)
        order.capture_payment(payment.id, "txn-001")
        with pytest.raises(ValidationError):
            order.capture_payment(payment.id, "txn-002")


class TestOrderCancellation:
    def test_cancel_voids_payments(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        order._events.clear()

        order.cancel("Subscription payment failed")

        assert order.is_cancelled
        assert order.cancellation_reason == "Subscription payment failed"
        assert order.cancelled_at is not None
        assert order.completed_at is not None
        assert _card_payment(order).status == PaymentStatus.VOID.value
        assert isinstance(order._events[0], OrderCancelled)

    def test_failed_payments_stay_failed(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        order.fail_payment(_card_payment(order).id, "Card declined")

        order.cancel()

        assert _card_payment(order).status == PaymentStatus.FAILED.value

    def test_cannot_cancel_completed_order(self):
        order = _order_at_state(OrderStatus.CONFIRM)
        order.capture_payment(_card_payment(order).id, "txn-001")
        order.complete()
        with pytest.raises(ValidationError):
            order.cancel()

    def test_cannot_cancel_twice(self):
        order = _make_order()
        order.cancel()
        with pytest.raises(ValidationError):
            order.cancel()
