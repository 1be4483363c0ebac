"""Errors raised while turning installments into orders."""

from protean.exceptions import ValidationError


class CustomerMismatchError(ValidationError):
    """The installments handed to one checkout belong to more than one customer."""

    def __init__(self, installments):
        self.installments = list(installments)
        customer_ids = sorted({str(installment.customer_id) for installment in self.installments})
        super().__init__(
            {"installments": [f"Installments must belong to a single customer, got: {', '.join(customer_ids)}"]}
        )


class UnsubscribableError(ValidationError):
    """A subscription line item points at a variant that cannot be subscribed to."""

    def __init__(self, variant_id):
        self.variant_id = str(variant_id)
        super().__init__({"variant_id": [f"Variant {self.variant_id} is not available for subscription"]})
