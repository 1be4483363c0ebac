"""Order aggregate (CQRS) — the draft order a checkout consolidates installments into.

The order mirrors the slice of the storefront's checkout the subscription
flow needs: it is opened in CART, filled with line items, and walked one
step at a time through checkout with next(). Each step has a requirement;
next() raises ValidationError when it is not met so the caller decides
whether that is fatal. complete() is the quiet final step: it returns
False instead of raising.

State Machine (7 states):
    CART → ADDRESS → DELIVERY → PAYMENT → CONFIRM → COMPLETE
    CANCELLED (from any state except COMPLETE and CANCELLED)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from subscriptions.domain import subscriptions
from subscriptions.order.events import (
    LineItemAdded,
    LineItemQuantityIncreased,
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderTransitioned,
    PaymentAdded,
    PaymentCaptured,
    PaymentFailed,
)
from subscriptions.shared.address import Address


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    CART = "Cart"
    ADDRESS = "Address"
    DELIVERY = "Delivery"
    PAYMENT = "Payment"
    CONFIRM = "Confirm"
    COMPLETE = "Complete"
    CANCELLED = "Cancelled"


class PaymentStatus(Enum):
    CHECKOUT = "Checkout"
    COMPLETED = "Completed"
    FAILED = "Failed"
    VOID = "Void"


class PaymentSourceType(Enum):
    CREDIT_CARD = "Credit_Card"
    STORE_CREDIT = "Store_Credit"


# next() moves an order from each key to its value
_NEXT_STATUS = {
    OrderStatus.CART: OrderStatus.ADDRESS,
    OrderStatus.ADDRESS: OrderStatus.DELIVERY,
    OrderStatus.DELIVERY: OrderStatus.PAYMENT,
    OrderStatus.PAYMENT: OrderStatus.CONFIRM,
}

# Payments that count towards covering the order total
_VALID_PAYMENT_STATUSES = {PaymentStatus.CHECKOUT, PaymentStatus.COMPLETED}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@subscriptions.entity(part_of="Order")
class LineItem:
    variant_id = Identifier(required=True)
    sku = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


@subscriptions.entity(part_of="Order")
class Payment:
    """A payment against the order, from a stored card or from store credit."""

    source_type = String(choices=PaymentSourceType, required=True)
    source_id = String(max_length=255)
    payment_method_type = String(max_length=50)
    last4 = String(max_length=4)
    gateway_name = String(max_length=100)
    amount = Float(required=True, min_value=0.0)
    status = String(choices=PaymentStatus, default=PaymentStatus.CHECKOUT.value)
    gateway_transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)


@subscriptions.entity(part_of="Order")
class Adjustment:
    """A promotion applied to the order. Amounts are negative."""

    label = String(required=True, max_length=255)
    amount = Float(required=True)
    source = String(max_length=255)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@subscriptions.aggregate
class Order:
    customer_id = Identifier(required=True)
    email = String(max_length=254)
    store_id = String(max_length=100)
    subscription_order = Boolean(default=True)
    order_type = String(max_length=50)
    source = String(max_length=100)
    sales_rep_id = String(max_length=100)
    status = String(choices=OrderStatus, default=OrderStatus.CART.value)
    line_items = HasMany(LineItem)
    payments = HasMany(Payment)
    adjustments = HasMany(Adjustment)
    ship_address = ValueObject(Address)
    currency = String(max_length=3, default="USD")
    item_total = Float(default=0.0)
    promo_total = Float(default=0.0)
    total = Float(default=0.0)
    cancellation_reason = String(max_length=500)
    completed_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        email=None,
        store_id=None,
        order_type=None,
        source=None,
        sales_rep_id=None,
        currency="USD",
    ):
        """Open an empty subscription order in CART status."""
        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            email=email,
            store_id=store_id,
            subscription_order=True,
            order_type=order_type,
            source=source,
            sales_rep_id=sales_rep_id,
            status=OrderStatus.CART.value,
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                customer_id=str(customer_id),
                email=email,
                store_id=store_id,
                order_type=order_type,
                source=source,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Contents
    # -------------------------------------------------------------------
    def _assert_modifiable(self):
        if OrderStatus(self.status) != OrderStatus.CART:
            raise ValidationError({"status": ["Line items can only be changed while the order is in Cart"]})

    def line_item_for(self, variant_id):
        return next((li for li in self.line_items if str(li.variant_id) == str(variant_id)), None)

    def add_line_item(self, variant_id, sku, name, quantity, unit_price):
        self._assert_modifiable()

        item = LineItem(
            variant_id=variant_id,
            sku=sku,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
        )
        self.add_line_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            LineItemAdded(
                order_id=str(self.id),
                line_item_id=str(item.id),
                variant_id=str(variant_id),
                quantity=quantity,
                unit_price=unit_price,
            )
        )
        return item

    def increase_line_item_quantity(self, line_item_id, quantity):
        self._assert_modifiable()
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = next((li for li in self.line_items if str(li.id) == str(line_item_id)), None)
        if item is None:
            raise ValidationError({"line_item_id": ["Line item not found"]})

        previous_quantity = item.quantity
        item.quantity = previous_quantity + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            LineItemQuantityIncreased(
                order_id=str(self.id),
                line_item_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=item.quantity,
            )
        )
        return item

    def recalculate(self):
        """Recompute item, promotion and grand totals."""
        self.item_total = round(sum(li.unit_price * li.quantity for li in self.line_items), 2)
        self.promo_total = round(sum(adj.amount for adj in self.adjustments), 2)
        self.total = round(max(self.item_total + self.promo_total, 0.0), 2)
        self.updated_at = datetime.now(UTC)

    def apply_adjustments(self, adjustments):
        """Replace the order's promotion adjustments and recalculate totals.

        Args:
            adjustments: Iterable of objects with label, amount and source.
        """
        for existing in list(self.adjustments):
            self.remove_adjustments(existing)
        for adjustment in adjustments:
            self.add_adjustments(
                Adjustment(label=adjustment.label, amount=adjustment.amount, source=adjustment.source)
            )
        self.recalculate()

    def set_ship_address(self, address):
        if isinstance(address, dict):
            address = Address(**address)
        self.ship_address = address
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Checkout steps
    # -------------------------------------------------------------------
    def _check_step_requirements(self, current):
        if current == OrderStatus.CART and not self.line_items:
            raise ValidationError({"line_items": ["Order has no line items"]})
        if current in (OrderStatus.ADDRESS, OrderStatus.DELIVERY) and self.ship_address is None:
            raise ValidationError({"ship_address": ["Order has no ship address"]})
        if current == OrderStatus.PAYMENT:
            if self.total > 0 and not self.valid_payments:
                raise ValidationError({"payments": ["No payment found"]})
            if self.payment_total < self.total:
                raise ValidationError(
                    {"payments": [f"Payments of {self.payment_total:.2f} do not cover the total of {self.total:.2f}"]}
                )

    def next(self):
        """Advance exactly one checkout step."""
        current = OrderStatus(self.status)
        target = _NEXT_STATUS.get(current)
        if target is None:
            raise ValidationError({"status": [f"Cannot advance an order in {current.value} status"]})

        self._check_step_requirements(current)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderTransitioned(
                order_id=str(self.id),
                from_status=current.value,
                to_status=target.value,
                transitioned_at=now,
            )
        )

    def complete(self) -> bool:
        """Complete the order if it is confirmed and fully paid.

        Quiet transition: returns False instead of raising.
        """
        if OrderStatus(self.status) != OrderStatus.CONFIRM:
            return False
        if self.has_failed_payments or self.pending_payments:
            return False
        if self.captured_total < self.total:
            return False

        now = datetime.now(UTC)
        self.status = OrderStatus.COMPLETE.value
        self.completed_at = now
        self.updated_at = now

        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                total=self.total,
                completed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    def add_payment(self, source_type, amount, source_id=None, payment_method_type=None, last4=None, gateway_name=None):
        payment = Payment(
            source_type=source_type,
            source_id=source_id,
            payment_method_type=payment_method_type,
            last4=last4,
            gateway_name=gateway_name,
            amount=round(amount, 2),
            status=PaymentStatus.CHECKOUT.value,
        )
        self.add_payments(payment)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentAdded(
                order_id=str(self.id),
                payment_id=str(payment.id),
                source_type=source_type,
                amount=payment.amount,
            )
        )
        return payment

    def _payment(self, payment_id):
        payment = next((p for p in self.payments if str(p.id) == str(payment_id)), None)
        if payment is None:
            raise ValidationError({"payment_id": ["Payment not found"]})
        return payment

    def capture_payment(self, payment_id, gateway_transaction_id=None):
        payment = self._payment(payment_id)
        if PaymentStatus(payment.status) != PaymentStatus.CHECKOUT:
            raise ValidationError({"payment": [f"Cannot capture a payment in {payment.status} status"]})

        payment.status = PaymentStatus.COMPLETED.value
        payment.gateway_transaction_id = gateway_transaction_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentCaptured(
                order_id=str(self.id),
                payment_id=str(payment.id),
                amount=payment.amount,
                gateway_transaction_id=gateway_transaction_id,
            )
        )

    def fail_payment(self, payment_id, reason):
        payment = self._payment(payment_id)
        if PaymentStatus(payment.status) != PaymentStatus.CHECKOUT:
            raise ValidationError({"payment": [f"Cannot fail a payment in {payment.status} status"]})

        payment.status = PaymentStatus.FAILED.value
        payment.failure_reason = reason
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                payment_id=str(payment.id),
                reason=reason,
            )
        )

    @property
    def valid_payments(self):
        return [p for p in self.payments if PaymentStatus(p.status) in _VALID_PAYMENT_STATUSES]

    @property
    def pending_payments(self):
        return [p for p in self.payments if PaymentStatus(p.status) == PaymentStatus.CHECKOUT]

    @property
    def captured_payments(self):
        return [p for p in self.payments if PaymentStatus(p.status) == PaymentStatus.COMPLETED]

    @property
    def non_store_credit_payments(self):
        return [p for p in self.payments if PaymentSourceType(p.source_type) != PaymentSourceType.STORE_CREDIT]

    @property
    def has_failed_payments(self) -> bool:
        return any(PaymentStatus(p.status) == PaymentStatus.FAILED for p in self.payments)

    @property
    def payment_total(self) -> float:
        return round(sum(p.amount for p in self.valid_payments), 2)

    @property
    def captured_total(self) -> float:
        return round(sum(p.amount for p in self.captured_payments), 2)

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    @property
    def is_cancelled(self) -> bool:
        return OrderStatus(self.status) == OrderStatus.CANCELLED

    @property
    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) not in (OrderStatus.COMPLETE, OrderStatus.CANCELLED)

    def cancel(self, reason=None):
        """Cancel the order and void its outstanding and captured payments.

        Returning captured money to the customer is the caller's job; read
        captured_payments before cancelling.
        """
        if not self.can_be_cancelled:
            raise ValidationError({"status": [f"Cannot cancel an order in {self.status} status"]})

        for payment in self.valid_payments:
            payment.status = PaymentStatus.VOID.value

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        # Stamped so the storefront does not report it as an abandoned cart
        self.completed_at = self.completed_at or now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                reason=reason,
                cancelled_at=now,
            )
        )
