"""Payment gateway factory.

Provides get_gateway() / set_gateway() / reset_gateway() so the checkout can
charge stored cards without knowing which processor the storefront uses.
FakeGateway is the default until the host installs its own adapter.
"""

from subscriptions.gateway.fake_adapter import FakeGateway
from subscriptions.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Install the gateway adapter used for subscription orders."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
