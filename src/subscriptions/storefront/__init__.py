"""Storefront adapter registry.

The host platform owns the catalog, stock levels, customer wallets and
promotions. get_storefront() returns the adapter the checkout talks to;
FakeStorefront is used until the host installs a real one.
"""

from subscriptions.storefront.fake_adapter import FakeStorefront
from subscriptions.storefront.port import Storefront

_current_storefront: Storefront | None = None


def get_storefront() -> Storefront:
    """Return the active storefront adapter. Defaults to FakeStorefront."""
    global _current_storefront
    if _current_storefront is None:
        _current_storefront = FakeStorefront()
    return _current_storefront


def set_storefront(storefront: Storefront) -> None:
    global _current_storefront
    _current_storefront = storefront


def reset_storefront() -> None:
    global _current_storefront
    _current_storefront = None
