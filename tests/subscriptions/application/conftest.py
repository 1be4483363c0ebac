from datetime import UTC, datetime

import pytest
from protean import current_domain

from subscriptions.installment.installment import Installment
from subscriptions.subscription.subscription import Subscription

SHIP_ADDRESS = {
    "full_name": "Jane Doe",
    "street": "1 Elm St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


@pytest.fixture()
def today():
    return datetime.now(UTC).date()


@pytest.fixture()
def catalog(storefront):
    storefront.add_variant("var-coffee", price=20.0, name="Coffee 1kg")
    storefront.add_variant("var-filter", price=5.0, name="Paper filters")
    return storefront


@pytest.fixture()
def customer(catalog):
    """A customer with an address on file and a stored card."""
    catalog.add_customer("cust-001", email="jane@example.com", ship_address=SHIP_ADDRESS)
    catalog.set_payment_source("cust-001")
    return catalog.customers["cust-001"]


@pytest.fixture()
def subscribe(today):
    """Factory: persist a subscription due today and return it."""

    def _subscribe(customer_id="cust-001", line_items=None, actionable_date=None, **kwargs):
        subscription = Subscription.create(
            customer_id=customer_id,
            line_items_data=line_items or [{"variant_id": "var-coffee", "quantity": 1}],
            actionable_date=actionable_date or today,
            **kwargs,
        )
        current_domain.repository_for(Subscription).add(subscription)
        return subscription

    return _subscribe


@pytest.fixture()
def due_installment(subscribe, today):
    """Factory: persist a subscription and its installment for today."""

    def _due_installment(customer_id="cust-001", line_items=None, **kwargs):
        subscription = subscribe(customer_id=customer_id, line_items=line_items, **kwargs)
        installment = Installment.create(subscription, as_of=today)
        current_domain.repository_for(Installment).add(installment)
        return installment

    return _due_installment
