"""Subscription processor — the scheduled processing run.

Designed to be triggered periodically by an external scheduler (cron, K8s
CronJob) via the maintenance API endpoint. For every customer with work due
it creates the day's installments from actionable subscriptions, collects
earlier installments whose retry date has arrived, and runs one checkout
per customer so all of a customer's deliveries ship on a single order.

Every installment creation and every customer's checkout is its own
command and commits in its own transaction. The run itself is therefore
not a command: it must be started outside any unit of work, because a
unit of work opened inside another one joins it, and a failure on one
customer would roll back the customers processed before it.
"""

import json
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.utils.globals import current_domain

from subscriptions.checkout.processing import ProcessInstallments
from subscriptions.installment.creation import CreateInstallment
from subscriptions.installment.installment import Installment
from subscriptions.subscription.subscription import Subscription
from subscriptions.utils.logging import bind_run_context, clear_run_context

logger = structlog.get_logger(__name__)


def process_subscriptions(as_of=None) -> int:
    """Create and check out everything due on or before `as_of` (default: today).

    Returns:
        The number of customers whose installments were checked out.

    A domain error while creating an installment or checking out a customer
    is logged and the run moves on. Any other error stops the run; customers
    already checked out stay committed.
    """
    as_of = as_of or datetime.now(UTC).date()
    bind_run_context(processing_run=uuid4().hex[:12])
    try:
        return _run(as_of)
    finally:
        clear_run_context()


def _run(as_of):
    due_subscriptions = current_domain.repository_for(Subscription).actionable(as_of)
    retry_installments = current_domain.repository_for(Installment).actionable(as_of)

    logger.info(
        "Starting subscription processing",
        as_of=as_of.isoformat(),
        due_subscriptions=len(due_subscriptions),
        retry_installments=len(retry_installments),
    )

    installment_ids_by_customer = {}
    for subscription in due_subscriptions:
        installment_id = _create_installment(subscription, as_of)
        if installment_id is not None:
            installment_ids_by_customer.setdefault(str(subscription.customer_id), []).append(installment_id)
    for installment in retry_installments:
        installment_ids_by_customer.setdefault(str(installment.customer_id), []).append(str(installment.id))

    if not installment_ids_by_customer:
        logger.info("Nothing due for processing")
        return 0

    processed = 0
    for customer_id, installment_ids in installment_ids_by_customer.items():
        try:
            order_id = current_domain.process(
                ProcessInstallments(installment_ids=json.dumps(installment_ids)),
                asynchronous=False,
            )
        except (ValidationError, InvalidOperationError) as exc:
            logger.warning(
                "Checkout failed for customer",
                customer_id=customer_id,
                installment_ids=installment_ids,
                error=str(exc),
            )
            continue

        processed += 1
        logger.info(
            "Processed customer installments",
            customer_id=customer_id,
            installment_count=len(installment_ids),
            order_id=order_id,
        )

    logger.info("Subscription processing complete", processed_customers=processed)
    return processed


def _create_installment(subscription, as_of):
    try:
        return current_domain.process(
            CreateInstallment(subscription_id=str(subscription.id), as_of=as_of),
            asynchronous=False,
        )
    except (ValidationError, InvalidOperationError) as exc:
        logger.warning(
            "Could not create installment",
            subscription_id=str(subscription.id),
            customer_id=str(subscription.customer_id),
            error=str(exc),
        )
        return None
