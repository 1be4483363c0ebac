"""Builds order line items from a subscription's line items."""

from dataclasses import dataclass

import structlog

from subscriptions.exceptions import UnsubscribableError
from subscriptions.storefront import get_storefront

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LineItemDraft:
    """A line item ready to be placed on an order, priced at today's variant price."""

    variant_id: str
    sku: str
    name: str
    quantity: int
    unit_price: float


class LineItemBuilder:
    def __init__(self, subscription_line_items, storefront=None):
        self.subscription_line_items = list(subscription_line_items)
        self.storefront = storefront or get_storefront()

    def line_items(self) -> list[LineItemDraft]:
        """Drafts for every subscribed variant that is currently in stock.

        Raises:
            UnsubscribableError: a variant is unknown to the storefront or
                no longer offered on subscription.
        """
        drafts = []
        for subscription_line_item in self.subscription_line_items:
            variant = self.storefront.find_variant(subscription_line_item.variant_id)
            if variant is None or not variant.subscribable:
                raise UnsubscribableError(subscription_line_item.variant_id)

            if not self.storefront.can_supply(variant.id, subscription_line_item.quantity):
                logger.info(
                    "Variant cannot be supplied, skipping line item",
                    variant_id=variant.id,
                    quantity=subscription_line_item.quantity,
                )
                continue

            drafts.append(
                LineItemDraft(
                    variant_id=variant.id,
                    sku=variant.sku,
                    name=variant.name,
                    quantity=subscription_line_item.quantity,
                    unit_price=variant.price,
                )
            )
        return drafts
