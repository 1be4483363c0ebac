import pytest
from protean.integrations.pytest import DomainFixture

from subscriptions.config import reset_config
from subscriptions.gateway import get_gateway, reset_gateway
from subscriptions.storefront import get_storefront, reset_storefront


@pytest.fixture(scope="session")
def subscriptions_bed():
    from subscriptions.domain import subscriptions

    bed = DomainFixture(subscriptions)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(subscriptions_bed):
    with subscriptions_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

    reset_storefront()
    reset_gateway()
    reset_config()


@pytest.fixture()
def storefront():
    """The in-memory storefront the checkout will use."""
    return get_storefront()


@pytest.fixture()
def gateway():
    """The fake payment gateway the checkout will use."""
    return get_gateway()
