"""Tests for LineItemBuilder — pricing, stock checks and unsubscribable variants."""

import pytest

from subscriptions.checkout.line_item_builder import LineItemBuilder, LineItemDraft
from subscriptions.exceptions import UnsubscribableError
from subscriptions.storefront.fake_adapter import FakeStorefront
from subscriptions.subscription.subscription import SubscriptionLineItem


@pytest.fixture()
def catalog():
    storefront = FakeStorefront()
    storefront.add_variant("var-coffee", price=18.5, sku="COF-1KG", name="Coffee 1kg", stock=10)
    storefront.add_variant("var-filter", price=4.0, stock=0)
    storefront.add_variant("var-mug", price=12.0, subscribable=False)
    return storefront


def _items(*pairs):
    return [SubscriptionLineItem(variant_id=variant_id, quantity=quantity) for variant_id, quantity in pairs]


class TestLineItemBuilder:
    def test_builds_drafts_at_current_price(self, catalog):
        drafts = LineItemBuilder(_items(("var-coffee", 2)), catalog).line_items()

        assert drafts == [
            LineItemDraft(variant_id="var-coffee", sku="COF-1KG", name="Coffee 1kg", quantity=2, unit_price=18.5)
        ]

    def test_skips_items_that_cannot_be_supplied(self, catalog):
        drafts = LineItemBuilder(_items(("var-coffee", 1), ("var-filter", 1)), catalog).line_items()
        assert [d.variant_id for d in drafts] == ["var-coffee"]

    def test_quantity_above_stock_is_skipped(self, catalog):
        drafts = LineItemBuilder(_items(("var-coffee", 11)), catalog).line_items()
        assert drafts == []

    def test_nothing_in_stock_yields_no_drafts(self, catalog):
        assert LineItemBuilder(_items(("var-filter", 1)), catalog).line_items() == []

    def test_unknown_variant_is_unsubscribable(self, catalog):
        with pytest.raises(UnsubscribableError) as exc:
            LineItemBuilder(_items(("var-gone", 1)), catalog).line_items()
        assert exc.value.variant_id == "var-gone"

    def test_variant_not_offered_on_subscription(self, catalog):
        with pytest.raises(UnsubscribableError):
            LineItemBuilder(_items(("var-mug", 1)), catalog).line_items()

    def test_defaults_to_registered_storefront(self, storefront):
        storefront.add_variant("var-tea", price=6.0)
        drafts = LineItemBuilder(_items(("var-tea", 1))).line_items()
        assert drafts[0].unit_price == 6.0
