"""Domain events for the Installment aggregate.

These are the notifications the checkout dispatchers emit: one event per
installment per outcome, carrying the order (when one was placed) and the
date the installment will be retried.
"""

from protean.fields import Date, DateTime, Identifier, String

from subscriptions.domain import subscriptions


@subscriptions.event(part_of="Installment")
class InstallmentCreated:
    __version__ = 1

    installment_id = Identifier(required=True)
    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    actionable_date = Date()
    created_at = DateTime(required=True)


@subscriptions.event(part_of="Installment")
class InstallmentFulfilled:
    """The installment was shipped as part of a completed order."""

    __version__ = 1

    installment_id = Identifier(required=True)
    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    fulfilled_at = DateTime(required=True)


@subscriptions.event(part_of="Installment")
class InstallmentOutOfStock:
    """None of the installment's variants could be supplied; retried later."""

    __version__ = 1

    installment_id = Identifier(required=True)
    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    retry_on = Date()
    occurred_at = DateTime(required=True)


@subscriptions.event(part_of="Installment")
class InstallmentFailed:
    """Checkout could not complete the order; retried later."""

    __version__ = 1

    installment_id = Identifier(required=True)
    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier()
    retry_on = Date()
    reason = String(max_length=500)
    occurred_at = DateTime(required=True)


@subscriptions.event(part_of="Installment")
class InstallmentPaymentFailed:
    """The order could not be paid for; retried later."""

    __version__ = 1

    installment_id = Identifier(required=True)
    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier()
    retry_on = Date()
    occurred_at = DateTime(required=True)
