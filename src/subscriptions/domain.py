"""Subscriptions bounded context — turns due subscription installments into orders.

Groups the installments that fall due on the same day for one customer into a
single order, drives that order through checkout, and reschedules whatever
could not be fulfilled. Catalog, stock, wallet, promotions and payment capture
belong to the host storefront and are reached through ports.
"""

import structlog
from protean.domain import Domain

subscriptions = Domain(name="subscriptions")

logger = structlog.get_logger(__name__)
