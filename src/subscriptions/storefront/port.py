"""Storefront port — the narrow slice of the host platform the checkout needs.

Everything here is owned by the host: variants and their stock, customer
records and wallets, store credit, and promotion rules. The subscriptions
domain never writes to them except to capture or release store credit.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Variant:
    id: str
    sku: str
    name: str
    price: float
    subscribable: bool = True


@dataclass(frozen=True)
class Customer:
    id: str
    email: str
    ship_address: dict | None = None
    store_id: str | None = None


@dataclass(frozen=True)
class PaymentSource:
    """A customer's default stored card."""

    id: str
    payment_method_type: str = "credit_card"
    last4: str | None = None


class PromotionRule(Enum):
    """Subscription-aware eligibility rules a host promotion can carry."""

    SUBSCRIPTION = "subscription"  # orders carrying subscription line items (sign-ups)
    SUBSCRIPTION_ORDER = "subscription_order"  # only orders the processor places
    DISABLE_SUBSCRIPTION_ORDER = "disable_subscription_order"  # never orders the processor places


def promotion_eligible(rule: PromotionRule | None, order) -> bool:
    """Whether a promotion guarded by `rule` may apply to `order`.

    `order` is any host order. Subscription orders expose `subscription_order`;
    sign-up carts expose `subscription_line_items`.
    """
    if rule is None:
        return True
    if rule == PromotionRule.SUBSCRIPTION:
        return bool(getattr(order, "subscription_line_items", None))
    is_subscription_order = bool(getattr(order, "subscription_order", False))
    if rule == PromotionRule.SUBSCRIPTION_ORDER:
        return is_subscription_order
    return not is_subscription_order


@dataclass(frozen=True)
class PromotionAdjustment:
    """A discount produced by a host promotion rule. `amount` is negative."""

    label: str
    amount: float
    source: str | None = None


class Storefront(ABC):
    @abstractmethod
    def find_variant(self, variant_id: str) -> Variant | None: ...

    @abstractmethod
    def can_supply(self, variant_id: str, quantity: int) -> bool:
        """Whether stock can cover `quantity` units of the variant right now."""
        ...

    @abstractmethod
    def find_customer(self, customer_id: str) -> Customer | None: ...

    @abstractmethod
    def default_payment_source(self, customer_id: str) -> PaymentSource | None: ...

    @abstractmethod
    def store_credit_balance(self, customer_id: str) -> float: ...

    @abstractmethod
    def capture_store_credit(self, customer_id: str, amount: float) -> bool:
        """Debit store credit. Returns False when the balance cannot cover it."""
        ...

    @abstractmethod
    def release_store_credit(self, customer_id: str, amount: float) -> None: ...

    @abstractmethod
    def promotion_adjustments(self, order) -> list[PromotionAdjustment]:
        """Evaluate the host's promotion rules against a subscription order."""
        ...
