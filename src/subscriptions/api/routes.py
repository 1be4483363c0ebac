"""FastAPI routes for the Subscriptions domain — subscriptions and installments."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from subscriptions.api.schemas import (
    CheckoutInstallmentsRequest,
    CheckoutResponse,
    CreateSubscriptionRequest,
    ProcessSubscriptionsRequest,
    ProcessSubscriptionsResponse,
    SubscriptionIdResponse,
    SubscriptionStatusResponse,
)
from subscriptions.checkout import processor
from subscriptions.checkout.processing import ProcessInstallments
from subscriptions.subscription.cancellation import CancelSubscription
from subscriptions.subscription.creation import CreateSubscription

# ---------------------------------------------------------------------------
# Subscription Router
# ---------------------------------------------------------------------------
subscription_router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@subscription_router.post("", status_code=201, response_model=SubscriptionIdResponse)
async def create_subscription(body: CreateSubscriptionRequest) -> SubscriptionIdResponse:
    command = CreateSubscription(
        customer_id=body.customer_id,
        line_items=json.dumps([item.model_dump() for item in body.line_items]),
        actionable_date=body.actionable_date,
        interval_length=body.interval_length,
        interval_units=body.interval_units,
        end_date=body.end_date,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        store_id=body.store_id,
        origin=json.dumps(body.origin.model_dump()) if body.origin else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return SubscriptionIdResponse(subscription_id=result)


@subscription_router.put("/{subscription_id}/cancel", response_model=SubscriptionStatusResponse)
async def cancel_subscription(subscription_id: str) -> SubscriptionStatusResponse:
    """Cancel now, or after one last installment when inside the notice window."""
    command = CancelSubscription(subscription_id=subscription_id)
    status = current_domain.process(command, asynchronous=False)
    return SubscriptionStatusResponse(subscription_id=subscription_id, status=status)


@subscription_router.post("/process", response_model=ProcessSubscriptionsResponse)
async def process_subscriptions(body: ProcessSubscriptionsRequest | None = None) -> ProcessSubscriptionsResponse:
    """Run subscription processing. Called by an external scheduler."""
    processed = processor.process_subscriptions(as_of=body.as_of if body else None)
    return ProcessSubscriptionsResponse(processed_customers=processed)


# ---------------------------------------------------------------------------
# Installment Router
# ---------------------------------------------------------------------------
installment_router = APIRouter(prefix="/installments", tags=["installments"])


@installment_router.post("/checkout", response_model=CheckoutResponse)
async def checkout_installments(body: CheckoutInstallmentsRequest) -> CheckoutResponse:
    """Check out one customer's installments into a single order."""
    command = ProcessInstallments(installment_ids=json.dumps(body.installment_ids))
    order_id = current_domain.process(command, asynchronous=False)
    return CheckoutResponse(order_id=order_id, completed=order_id is not None)
