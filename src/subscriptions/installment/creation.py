"""Installment creation — command and handler.

Creates the installment for a subscription that has come due and moves the
subscription on to its next date. A subscription awaiting cancellation
ships this last installment and is then cancelled; one that has reached its
end date is deactivated.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier
from protean.utils.globals import current_domain

from subscriptions.domain import subscriptions
from subscriptions.installment.installment import Installment
from subscriptions.subscription.subscription import Subscription, SubscriptionStatus


@subscriptions.command(part_of="Installment")
class CreateInstallment:
    subscription_id = Identifier(required=True)
    as_of = Date(required=True)


@subscriptions.command_handler(part_of=Installment)
class CreateInstallmentHandler:
    @handle(CreateInstallment)
    def create_installment(self, command):
        subscription_repo = current_domain.repository_for(Subscription)
        subscription = subscription_repo.get(command.subscription_id)
        if not subscription.is_actionable(command.as_of):
            raise ValidationError(
                {"subscription": [f"Subscription is not due on {command.as_of.isoformat()}"]}
            )

        installment = Installment.create(subscription, as_of=command.as_of)

        subscription.advance_actionable_date()
        if SubscriptionStatus(subscription.status) == SubscriptionStatus.PENDING_CANCELLATION:
            subscription.complete_cancellation()
        elif subscription.can_be_deactivated:
            subscription.deactivate()

        subscription_repo.add(subscription)
        current_domain.repository_for(Installment).add(installment)
        return str(installment.id)
