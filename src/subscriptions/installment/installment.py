"""Installment aggregate (CQRS) — one due delivery of a subscription.

The processor creates an installment each time a subscription comes due.
Checkout attempts it; every attempt is recorded as an InstallmentDetail.
An installment is fulfilled once any attempt succeeded. Failed attempts
push the actionable date out by the reprocessing interval so the next
processor run picks the installment up again.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, HasMany, Identifier, String

from subscriptions.config import get_config
from subscriptions.domain import subscriptions
from subscriptions.installment.events import (
    InstallmentCreated,
    InstallmentFailed,
    InstallmentFulfilled,
    InstallmentOutOfStock,
    InstallmentPaymentFailed,
)


class InstallmentResult(Enum):
    FULFILLED = "Fulfilled"
    OUT_OF_STOCK = "Out_Of_Stock"
    FAILED = "Failed"
    PAYMENT_FAILED = "Payment_Failed"


_MESSAGES = {
    InstallmentResult.FULFILLED: "Installment fulfilled",
    InstallmentResult.OUT_OF_STOCK: "Installment is out of stock and will be retried",
    InstallmentResult.FAILED: "Installment could not be processed and will be retried",
    InstallmentResult.PAYMENT_FAILED: "Payment for the installment failed and will be retried",
}


@subscriptions.entity(part_of="Installment")
class InstallmentDetail:
    """The outcome of one attempt at an installment."""

    success = Boolean(default=False)
    result = String(choices=InstallmentResult, required=True)
    order_id = Identifier()
    message = String(max_length=500)
    created_at = DateTime()


@subscriptions.aggregate
class Installment:
    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    actionable_date = Date()
    details = HasMany(InstallmentDetail)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, subscription, as_of=None):
        """Create the installment for a subscription that has come due."""
        now = datetime.now(UTC)
        actionable_date = as_of or now.date()
        installment = cls(
            subscription_id=str(subscription.id),
            customer_id=str(subscription.customer_id),
            actionable_date=actionable_date,
            created_at=now,
            updated_at=now,
        )
        installment.raise_(
            InstallmentCreated(
                installment_id=str(installment.id),
                subscription_id=str(subscription.id),
                customer_id=str(subscription.customer_id),
                actionable_date=actionable_date,
                created_at=now,
            )
        )
        return installment

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def fulfilled(self) -> bool:
        return any(detail.success for detail in self.details)

    @property
    def unfulfilled(self) -> bool:
        return not self.fulfilled

    def is_actionable(self, as_of=None) -> bool:
        as_of = as_of or datetime.now(UTC).date()
        return self.unfulfilled and self.actionable_date is not None and self.actionable_date <= as_of

    def next_actionable_date(self):
        return datetime.now(UTC).date() + get_config().reprocessing_interval

    # -------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------
    def _record(self, result, order_id=None, message=None):
        now = datetime.now(UTC)
        self.add_details(
            InstallmentDetail(
                success=result == InstallmentResult.FULFILLED,
                result=result.value,
                order_id=str(order_id) if order_id else None,
                message=message or _MESSAGES[result],
                created_at=now,
            )
        )
        self.updated_at = now
        return now

    def _reschedule(self):
        if self.fulfilled:
            raise ValidationError({"installment": ["A fulfilled installment cannot be rescheduled"]})
        self.actionable_date = self.next_actionable_date()
        return self.actionable_date

    def success(self, order_id):
        """The installment shipped on `order_id`; it will not be processed again."""
        if self.fulfilled:
            raise ValidationError({"installment": ["Installment is already fulfilled"]})

        self.actionable_date = None
        now = self._record(InstallmentResult.FULFILLED, order_id)
        self.raise_(
            InstallmentFulfilled(
                installment_id=str(self.id),
                subscription_id=str(self.subscription_id),
                customer_id=str(self.customer_id),
                order_id=str(order_id),
                fulfilled_at=now,
            )
        )

    def out_of_stock(self):
        retry_on = self._reschedule()
        now = self._record(InstallmentResult.OUT_OF_STOCK)
        self.raise_(
            InstallmentOutOfStock(
                installment_id=str(self.id),
                subscription_id=str(self.subscription_id),
                customer_id=str(self.customer_id),
                retry_on=retry_on,
                occurred_at=now,
            )
        )

    def failed(self, order_id=None, reason=None):
        retry_on = self._reschedule()
        now = self._record(InstallmentResult.FAILED, order_id, reason)
        self.raise_(
            InstallmentFailed(
                installment_id=str(self.id),
                subscription_id=str(self.subscription_id),
                customer_id=str(self.customer_id),
                order_id=str(order_id) if order_id else None,
                retry_on=retry_on,
                reason=reason or _MESSAGES[InstallmentResult.FAILED],
                occurred_at=now,
            )
        )

    def payment_failed(self, order_id=None):
        retry_on = self._reschedule()
        now = self._record(InstallmentResult.PAYMENT_FAILED, order_id)
        self.raise_(
            InstallmentPaymentFailed(
                installment_id=str(self.id),
                subscription_id=str(self.subscription_id),
                customer_id=str(self.customer_id),
                order_id=str(order_id) if order_id else None,
                retry_on=retry_on,
                occurred_at=now,
            )
        )
