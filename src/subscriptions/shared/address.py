"""Address value object shared by subscriptions and the orders they place."""

from protean.fields import String

from subscriptions.domain import subscriptions


@subscriptions.value_object
class Address:
    """A delivery address.

    Captured on the subscription when it is set up, and copied onto every
    order the subscription places.
    """

    full_name = String(max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
