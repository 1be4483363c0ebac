"""Installment processing — command and handler.

Runs one checkout for a batch of installment ids. This is the unit of work
the processor produces per customer, and what a host job queue would
enqueue when it wants checkouts to run on separate workers.

A checkout that fails with a domain error has already rescheduled its
installments by the time the error reaches the handler. The handler logs
the error and returns normally so that rescheduling is committed. Any
other error propagates and the job's transaction is rolled back; the
installments keep their date and the next run picks them up again.
"""

import json

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Text
from protean.utils.globals import current_domain

from subscriptions.checkout.checkout import Checkout
from subscriptions.domain import subscriptions
from subscriptions.installment.installment import Installment

logger = structlog.get_logger(__name__)


@subscriptions.command(part_of="Installment")
class ProcessInstallments:
    installment_ids = Text(required=True)  # JSON: list of installment ids


@subscriptions.command_handler(part_of=Installment)
class ProcessInstallmentsHandler:
    @handle(ProcessInstallments)
    def process_installments(self, command):
        ids = json.loads(command.installment_ids) if isinstance(command.installment_ids, str) else command.installment_ids

        repo = current_domain.repository_for(Installment)
        installments = [repo.get(installment_id) for installment_id in ids]

        # A retried job may carry installments an earlier run already fulfilled
        pending = [installment for installment in installments if installment.unfulfilled]
        if not pending:
            logger.info("No unfulfilled installments to process", installment_ids=ids)
            return None

        checkout = Checkout(pending)
        try:
            order = checkout.process()
        except (ValidationError, InvalidOperationError) as exc:
            logger.warning(
                "Checkout failed, installments rescheduled",
                customer_id=str(pending[0].customer_id),
                installment_ids=[str(installment.id) for installment in pending],
                error=str(exc),
            )
            return None
        return str(order.id) if order is not None else None
