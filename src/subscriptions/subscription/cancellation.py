"""Subscription cancellation — command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from subscriptions.domain import subscriptions
from subscriptions.subscription.subscription import Subscription


@subscriptions.command(part_of="Subscription")
class CancelSubscription:
    subscription_id = Identifier(required=True)


@subscriptions.command_handler(part_of=Subscription)
class CancelSubscriptionHandler:
    @handle(CancelSubscription)
    def cancel_subscription(self, command):
        repo = current_domain.repository_for(Subscription)
        subscription = repo.get(command.subscription_id)
        subscription.cancel()
        repo.add(subscription)
        return subscription.status
