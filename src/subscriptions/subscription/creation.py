"""Subscription creation — command and handler."""

import json

from protean import handle
from protean.fields import Date, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from subscriptions.domain import subscriptions
from subscriptions.subscription.subscription import IntervalUnit, Subscription


@subscriptions.command(part_of="Subscription")
class CreateSubscription:
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON: list of {variant_id, quantity}
    actionable_date = Date(required=True)
    interval_length = Integer(default=1)
    interval_units = String(max_length=10, default=IntervalUnit.MONTH.value)
    end_date = Date()
    shipping_address = Text()  # JSON: address dict
    store_id = String(max_length=100)
    origin = Text()  # JSON: {order_id, order_type, source, sales_rep_id}


def _loads(value):
    if value is None or not isinstance(value, str):
        return value
    return json.loads(value)


@subscriptions.command_handler(part_of=Subscription)
class CreateSubscriptionHandler:
    @handle(CreateSubscription)
    def create_subscription(self, command):
        subscription = Subscription.create(
            customer_id=command.customer_id,
            line_items_data=_loads(command.line_items),
            actionable_date=command.actionable_date,
            interval_length=command.interval_length or 1,
            interval_units=command.interval_units or IntervalUnit.MONTH.value,
            shipping_address=_loads(command.shipping_address),
            store_id=command.store_id,
            origin=_loads(command.origin),
            end_date=command.end_date,
        )
        current_domain.repository_for(Subscription).add(subscription)
        return str(subscription.id)
