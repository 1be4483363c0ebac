"""Domain events for the Subscription aggregate."""

from protean.fields import Date, DateTime, Identifier, Integer, String, Text

from subscriptions.domain import subscriptions


@subscriptions.event(part_of="Subscription")
class SubscriptionCreated:
    """A customer subscribed to receive variants on a recurring interval."""

    __version__ = 1

    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON: list of {variant_id, quantity}
    interval_length = Integer(required=True)
    interval_units = String(required=True)
    actionable_date = Date(required=True)
    created_at = DateTime(required=True)


@subscriptions.event(part_of="Subscription")
class SubscriptionActionableDateAdvanced:
    """The subscription was moved on to its next delivery date."""

    __version__ = 1

    subscription_id = Identifier(required=True)
    previous_actionable_date = Date()
    actionable_date = Date(required=True)


@subscriptions.event(part_of="Subscription")
class SubscriptionCancellationRequested:
    """Cancellation came inside the notice window; one more installment ships."""

    __version__ = 1

    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    requested_at = DateTime(required=True)


@subscriptions.event(part_of="Subscription")
class SubscriptionCancelled:
    __version__ = 1

    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)


@subscriptions.event(part_of="Subscription")
class SubscriptionDeactivated:
    """The subscription ran past its end date."""

    __version__ = 1

    subscription_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    end_date = Date()
    deactivated_at = DateTime(required=True)
