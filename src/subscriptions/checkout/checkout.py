"""Checkout — consolidates a customer's due installments into a single order.

The processor hands over every installment that fell due on the same day
for one customer. Checkout:

    1. Builds line items for each installment. Installments with nothing in
       stock are dropped from the batch and rescheduled.
    2. Merges what is left into one draft order, applies promotions and
       walks the order through address → delivery → payment → confirm.
       The walk is best effort: a failed step is logged and the next one
       is still attempted, except at the payment step when the customer
       has no stored card, where there is nothing further to try.
    3. Completes the order, charging the stored card or store credit.
    4. Dispatches the outcome: success, payment failure, or (for anything
       still unfulfilled, whatever happened) failure with a retry.
"""

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.utils.globals import current_domain

from subscriptions.checkout.line_item_builder import LineItemBuilder
from subscriptions.checkout.order_builder import OrderBuilder
from subscriptions.config import get_config
from subscriptions.exceptions import CustomerMismatchError
from subscriptions.gateway import get_gateway
from subscriptions.order.order import Order, OrderStatus, PaymentSourceType
from subscriptions.storefront import get_storefront
from subscriptions.subscription.subscription import Subscription

logger = structlog.get_logger(__name__)

# Statuses the order is advanced towards, one next() per step
_CHECKOUT_STEPS = (
    OrderStatus.ADDRESS,
    OrderStatus.DELIVERY,
    OrderStatus.PAYMENT,
    OrderStatus.CONFIRM,
)


class Checkout:
    def __init__(self, installments, storefront=None, gateway=None):
        self.installments = list(installments)
        if not self.installments:
            raise ValidationError({"installments": ["At least one installment is required"]})
        if self._different_owners():
            raise CustomerMismatchError(self.installments)

        self.storefront = storefront or get_storefront()
        self.gateway = gateway or get_gateway()
        self._order = None
        self._subscriptions = {}
        self._customer = None

    # -------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------
    def process(self):
        """Turn the installments into a completed order.

        Returns:
            The completed Order, or None when nothing could be ordered or
            the order could not be completed.
        """
        config = get_config()
        try:
            self._populate()

            # Out-of-stock installments were removed and rescheduled. If
            # nothing is left there is no order to place.
            if not self.installments:
                return None

            if self._checkout():
                config.success_dispatcher_class(self.installments, self.order, self.storefront, self.gateway).dispatch()
                return self.order

            order = self.order
            if not order.non_store_credit_payments or order.has_failed_payments:
                config.payment_failed_dispatcher_class(
                    self.installments, order, self.storefront, self.gateway
                ).dispatch()
                self.installments.clear()
            return None
        finally:
            # Whatever was not fulfilled above gets another go later
            unfulfilled = [installment for installment in self.installments if installment.unfulfilled]
            if unfulfilled:
                config.failure_dispatcher_class(unfulfilled, self._order, self.storefront, self.gateway).dispatch()
            if self._order is not None:
                current_domain.repository_for(Order).add(self._order)

    @property
    def order(self) -> Order:
        """The order fulfilling the consolidated installments, created on first use."""
        if self._order is None:
            config = get_config()
            subscription = self.subscription
            customer = self.customer
            origin = subscription.origin

            self._order = Order.create(
                customer_id=str(subscription.customer_id),
                email=customer.email if customer else None,
                store_id=subscription.store_id or (customer.store_id if customer else None) or config.default_store_id,
                order_type=origin.order_type if origin else None,
                source=origin.source if origin else None,
                sales_rep_id=origin.sales_rep_id if origin else None,
                currency=config.currency,
            )
            logger.info(
                "Opened subscription order",
                order_id=str(self._order.id),
                customer_id=str(subscription.customer_id),
                installment_count=len(self.installments),
            )
        return self._order

    def _populate(self):
        out_of_stock = []
        drafts = []
        for installment in self.installments:
            subscription = self._subscription_for(installment)
            line_items = LineItemBuilder(subscription.line_items, self.storefront).line_items()
            if not line_items:
                out_of_stock.append(installment)
            drafts.extend(line_items)

        if out_of_stock:
            out_of_stock_ids = {str(installment.id) for installment in out_of_stock}
            self.installments = [i for i in self.installments if str(i.id) not in out_of_stock_ids]
            get_config().out_of_stock_dispatcher_class(
                out_of_stock, None, self.storefront, self.gateway
            ).dispatch()

        if not self.installments:
            return
        OrderBuilder(self.order).add_line_items(drafts)

    def _checkout(self) -> bool:
        order = self.order
        order.recalculate()
        self._apply_promotions()

        active_card = self._active_card()

        for step in _CHECKOUT_STEPS:
            if order.status == OrderStatus.ADDRESS.value:
                ship_address = self._ship_address()
                if ship_address is not None:
                    order.set_ship_address(ship_address)

            if order.status == OrderStatus.PAYMENT.value:
                if active_card is not None:
                    self._create_payment(active_card)
                else:
                    self._apply_store_credit()

            try:
                order.next()
            except (ValidationError, InvalidOperationError) as exc:
                logger.warning(
                    "Order could not advance",
                    order_id=str(order.id),
                    status=order.status,
                    target=step.value,
                    error=str(exc),
                )
                # Without a stored card there is nothing left to pay with
                if order.status == OrderStatus.PAYMENT.value and active_card is None:
                    return False

        return self._complete()

    def _complete(self) -> bool:
        order = self.order
        if order.status == OrderStatus.CONFIRM.value:
            self._process_payments()

        completed = order.complete()
        if not completed:
            logger.info(
                "Order could not be completed",
                order_id=str(order.id),
                status=order.status,
                failed_payments=order.has_failed_payments,
            )
        return completed

    # -------------------------------------------------------------------
    # Payments & promotions
    # -------------------------------------------------------------------
    def _active_card(self):
        return self.storefront.default_payment_source(str(self.subscription.customer_id))

    def _create_payment(self, card):
        order = self.order
        if order.total <= 0:
            return
        order.add_payment(
            source_type=PaymentSourceType.CREDIT_CARD.value,
            amount=order.total,
            source_id=card.id,
            payment_method_type=card.payment_method_type,
            last4=card.last4,
            gateway_name=type(self.gateway).__name__,
        )

    def _apply_store_credit(self):
        order = self.order
        uncovered = round(order.total - order.payment_total, 2)
        if uncovered <= 0:
            return
        balance = self.storefront.store_credit_balance(str(order.customer_id))
        amount = min(balance, uncovered)
        if amount > 0:
            order.add_payment(source_type=PaymentSourceType.STORE_CREDIT.value, amount=amount)

    def _process_payments(self):
        order = self.order
        for payment in order.pending_payments:
            if PaymentSourceType(payment.source_type) == PaymentSourceType.STORE_CREDIT:
                if self.storefront.capture_store_credit(str(order.customer_id), payment.amount):
                    order.capture_payment(payment.id)
                else:
                    order.fail_payment(payment.id, "Insufficient store credit")
                continue

            result = self.gateway.create_charge(
                amount=payment.amount,
                currency=order.currency,
                payment_method_type=payment.payment_method_type,
                last4=payment.last4,
                idempotency_key=f"{order.id}:{payment.id}",
            )
            if result.success:
                order.capture_payment(payment.id, result.gateway_transaction_id)
            else:
                order.fail_payment(payment.id, result.failure_reason or "Payment declined")

    def _apply_promotions(self):
        self.order.apply_adjustments(self.storefront.promotion_adjustments(self.order))

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    @property
    def subscription(self) -> Subscription:
        return self._subscription_for(self.installments[0])

    @property
    def customer(self):
        if self._customer is None:
            self._customer = self.storefront.find_customer(str(self.subscription.customer_id))
        return self._customer

    def _subscription_for(self, installment) -> Subscription:
        subscription_id = str(installment.subscription_id)
        if subscription_id not in self._subscriptions:
            self._subscriptions[subscription_id] = current_domain.repository_for(Subscription).get(subscription_id)
        return self._subscriptions[subscription_id]

    def _ship_address(self):
        if self.subscription.shipping_address is not None:
            return self.subscription.shipping_address
        customer = self.customer
        return customer.ship_address if customer else None

    def _different_owners(self) -> bool:
        return len({str(installment.customer_id) for installment in self.installments}) > 1
