"""Checkout outcome dispatchers.

After a checkout attempt each installment is handed to exactly one
dispatcher, which records the outcome on the installment, tidies up the
order, persists both and logs what happened. The installment events raised
here are what downstream consumers (customer notifications, reporting)
subscribe to.

The classes used by the checkout come from configuration, so a host can
swap in subclasses that, for example, also page someone on payment failures.
"""

from abc import ABC, abstractmethod

import structlog
from protean.utils.globals import current_domain

from subscriptions.gateway import get_gateway
from subscriptions.installment.installment import Installment
from subscriptions.order.order import Order, PaymentSourceType
from subscriptions.storefront import get_storefront

logger = structlog.get_logger(__name__)


class Dispatcher(ABC):
    def __init__(self, installments, order=None, storefront=None, gateway=None):
        self.installments = list(installments)
        self.order = order
        self.storefront = storefront or get_storefront()
        self.gateway = gateway or get_gateway()

    @abstractmethod
    def dispatch(self):
        """Record the outcome on the installments and persist them."""
        ...

    @property
    def installment_ids(self) -> list[str]:
        return [str(installment.id) for installment in self.installments]

    @property
    def order_id(self) -> str | None:
        return str(self.order.id) if self.order is not None else None

    def _save_installments(self):
        repo = current_domain.repository_for(Installment)
        for installment in self.installments:
            repo.add(installment)

    def _cancel_order(self, reason):
        """Cancel the order, handing any captured money back first.

        A completed order is left as it is, payments included.
        """
        order = self.order
        if order is None or order.is_cancelled:
            return
        if not order.can_be_cancelled:
            logger.warning("Order is complete and was not cancelled", order_id=str(order.id), status=order.status)
            return

        for payment in order.captured_payments:
            if PaymentSourceType(payment.source_type) == PaymentSourceType.STORE_CREDIT:
                self.storefront.release_store_credit(str(order.customer_id), payment.amount)
                continue

            result = self.gateway.void_charge(payment.gateway_transaction_id)
            if not result.success:
                logger.error(
                    "Failed to void captured payment",
                    order_id=str(order.id),
                    payment_id=str(payment.id),
                    gateway_transaction_id=payment.gateway_transaction_id,
                    reason=result.failure_reason,
                )

        order.cancel(reason)
        current_domain.repository_for(Order).add(order)


class SuccessDispatcher(Dispatcher):
    """The order completed: every installment in it is fulfilled."""

    def dispatch(self):
        for installment in self.installments:
            installment.success(self.order.id)
        self._save_installments()

        logger.info(
            "Successfully processed installments",
            order_id=self.order_id,
            installment_ids=self.installment_ids,
        )


class FailureDispatcher(Dispatcher):
    """The checkout could not finish; cancel the order and retry later."""

    def dispatch(self):
        self._cancel_order("Subscription checkout failed")
        for installment in self.installments:
            installment.failed(self.order_id)
        self._save_installments()

        logger.warning(
            "Failed to process installments, rescheduled",
            order_id=self.order_id,
            installment_ids=self.installment_ids,
        )


class PaymentFailedDispatcher(Dispatcher):
    """The order could not be paid for; cancel it and retry later."""

    def dispatch(self):
        self._cancel_order("Subscription payment failed")
        for installment in self.installments:
            installment.payment_failed(self.order_id)
        self._save_installments()

        logger.warning(
            "Payment failed for installments, rescheduled",
            order_id=self.order_id,
            installment_ids=self.installment_ids,
        )


class OutOfStockDispatcher(Dispatcher):
    """Nothing in these installments could be supplied; retry later."""

    def dispatch(self):
        for installment in self.installments:
            installment.out_of_stock()
        self._save_installments()

        logger.info(
            "Installments out of stock, rescheduled",
            installment_ids=self.installment_ids,
        )
