"""Repository for the Subscription aggregate."""

from subscriptions.domain import subscriptions
from subscriptions.shared.paging import fetch_all
from subscriptions.subscription.subscription import Subscription, SubscriptionStatus

_ACTIONABLE_STATUSES = [SubscriptionStatus.ACTIVE.value, SubscriptionStatus.PENDING_CANCELLATION.value]


@subscriptions.repository(part_of=Subscription)
class SubscriptionRepository:
    def actionable(self, as_of) -> list[Subscription]:
        """Active or pending-cancellation subscriptions due on or before `as_of`."""
        query = self._dao.query.filter(status__in=_ACTIONABLE_STATUSES, actionable_date__lte=as_of)
        return [subscription for subscription in fetch_all(query) if subscription.is_actionable(as_of)]

    def for_customer(self, customer_id) -> list[Subscription]:
        return fetch_all(self._dao.query.filter(customer_id=str(customer_id)))
