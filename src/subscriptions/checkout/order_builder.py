"""Merges line item drafts from several installments into one order."""


class OrderBuilder:
    def __init__(self, order):
        self.order = order

    def add_line_items(self, drafts):
        """Add drafts to the order, folding repeated variants into one line."""
        for draft in drafts:
            existing = self.order.line_item_for(draft.variant_id)
            if existing is not None:
                self.order.increase_line_item_quantity(existing.id, draft.quantity)
            else:
                self.order.add_line_item(
                    variant_id=draft.variant_id,
                    sku=draft.sku,
                    name=draft.name,
                    quantity=draft.quantity,
                    unit_price=draft.unit_price,
                )
        self.order.recalculate()
        return self.order
