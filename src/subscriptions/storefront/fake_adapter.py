"""In-memory storefront for development and testing.

Holds variants, stock counts, customers, stored cards, store credit and
flat-amount promotions in dictionaries. Promotions may carry a
subscription eligibility rule. Helpers populate it from tests.
"""

from subscriptions.storefront.port import (
    Customer,
    PaymentSource,
    PromotionAdjustment,
    PromotionRule,
    Storefront,
    Variant,
    promotion_eligible,
)


class FakeStorefront(Storefront):
    def __init__(self) -> None:
        self.variants: dict[str, Variant] = {}
        self.stock: dict[str, int] = {}
        self.customers: dict[str, Customer] = {}
        self.payment_sources: dict[str, PaymentSource] = {}
        self.store_credit: dict[str, float] = {}
        self.promotions: list[dict] = []

    # -------------------------------------------------------------------
    # Setup helpers
    # -------------------------------------------------------------------
    def add_variant(self, variant_id, price, sku=None, name=None, stock=100, subscribable=True) -> Variant:
        variant = Variant(
            id=str(variant_id),
            sku=sku or f"SKU-{variant_id}",
            name=name or f"Variant {variant_id}",
            price=price,
            subscribable=subscribable,
        )
        self.variants[variant.id] = variant
        self.stock[variant.id] = stock
        return variant

    def set_stock(self, variant_id, count: int) -> None:
        self.stock[str(variant_id)] = count

    def add_customer(self, customer_id, email=None, ship_address=None, store_id=None) -> Customer:
        customer = Customer(
            id=str(customer_id),
            email=email or f"{customer_id}@example.com",
            ship_address=ship_address,
            store_id=store_id,
        )
        self.customers[customer.id] = customer
        return customer

    def set_payment_source(self, customer_id, last4="4242", source_id=None) -> PaymentSource:
        source = PaymentSource(id=source_id or f"card-{customer_id}", last4=last4)
        self.payment_sources[str(customer_id)] = source
        return source

    def remove_payment_source(self, customer_id) -> None:
        self.payment_sources.pop(str(customer_id), None)

    def set_store_credit(self, customer_id, amount: float) -> None:
        self.store_credit[str(customer_id)] = amount

    def add_promotion(
        self, label: str, amount_off: float, source: str | None = None, rule: PromotionRule | None = None
    ) -> None:
        self.promotions.append({"label": label, "amount_off": amount_off, "source": source, "rule": rule})

    # -------------------------------------------------------------------
    # Storefront
    # -------------------------------------------------------------------
    def find_variant(self, variant_id):
        return self.variants.get(str(variant_id))

    def can_supply(self, variant_id, quantity):
        return self.stock.get(str(variant_id), 0) >= quantity

    def find_customer(self, customer_id):
        return self.customers.get(str(customer_id))

    def default_payment_source(self, customer_id):
        return self.payment_sources.get(str(customer_id))

    def store_credit_balance(self, customer_id):
        return self.store_credit.get(str(customer_id), 0.0)

    def capture_store_credit(self, customer_id, amount):
        balance = self.store_credit_balance(customer_id)
        if balance < amount:
            return False
        self.store_credit[str(customer_id)] = round(balance - amount, 2)
        return True

    def release_store_credit(self, customer_id, amount):
        self.store_credit[str(customer_id)] = round(self.store_credit_balance(customer_id) + amount, 2)

    def promotion_adjustments(self, order):
        remaining = order.item_total or 0.0
        adjustments = []
        for promotion in self.promotions:
            if not promotion_eligible(promotion["rule"], order):
                continue
            amount = min(promotion["amount_off"], remaining)
            if amount <= 0:
                continue
            remaining -= amount
            adjustments.append(
                PromotionAdjustment(label=promotion["label"], amount=-amount, source=promotion["source"])
            )
        return adjustments
