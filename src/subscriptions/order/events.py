"""Domain events for the subscription Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from subscriptions.domain import subscriptions


@subscriptions.event(part_of="Order")
class OrderCreated:
    """A draft order was opened to consolidate a customer's due installments."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    email = String()
    store_id = String()
    order_type = String()
    source = String()
    created_at = DateTime(required=True)


@subscriptions.event(part_of="Order")
class LineItemAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    line_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)


@subscriptions.event(part_of="Order")
class LineItemQuantityIncreased:
    """A later installment asked for a variant already on the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    line_item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@subscriptions.event(part_of="Order")
class OrderTransitioned:
    """The order advanced one step through checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    transitioned_at = DateTime(required=True)


@subscriptions.event(part_of="Order")
class PaymentAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    source_type = String(required=True)
    amount = Float(required=True)


@subscriptions.event(part_of="Order")
class PaymentCaptured:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    gateway_transaction_id = String()


@subscriptions.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    reason = String(max_length=500)


@subscriptions.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = Float(required=True)
    completed_at = DateTime(required=True)


@subscriptions.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
