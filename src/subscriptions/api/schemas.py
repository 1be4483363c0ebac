"""Pydantic request/response schemas for the Subscriptions API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import date

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class SubscriptionLineItemSchema(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1, default=1)


class OrderOriginSchema(BaseModel):
    order_id: str | None = None
    order_type: str | None = None
    source: str | None = None
    sales_rep_id: str | None = None


# ---------------------------------------------------------------------------
# Subscription Request Schemas
# ---------------------------------------------------------------------------
class CreateSubscriptionRequest(BaseModel):
    customer_id: str
    line_items: list[SubscriptionLineItemSchema] = Field(min_length=1)
    actionable_date: date
    interval_length: int = Field(ge=1, default=1)
    interval_units: str = "Month"
    end_date: date | None = None
    shipping_address: AddressSchema | None = None
    store_id: str | None = None
    origin: OrderOriginSchema | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "line_items": [{"variant_id": "var-coffee-1kg", "quantity": 2}],
                    "actionable_date": "2026-11-01",
                    "interval_length": 1,
                    "interval_units": "Month",
                    "shipping_address": {
                        "full_name": "Jane Doe",
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                    },
                }
            ]
        }
    }


class ProcessSubscriptionsRequest(BaseModel):
    as_of: date | None = None


# ---------------------------------------------------------------------------
# Installment Request Schemas
# ---------------------------------------------------------------------------
class CheckoutInstallmentsRequest(BaseModel):
    installment_ids: list[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class SubscriptionIdResponse(BaseModel):
    subscription_id: str


class SubscriptionStatusResponse(BaseModel):
    subscription_id: str
    status: str


class ProcessSubscriptionsResponse(BaseModel):
    processed_customers: int


class CheckoutResponse(BaseModel):
    order_id: str | None = None
    completed: bool
