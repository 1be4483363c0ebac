"""Subscription aggregate (CQRS) — a customer's standing order for recurring deliveries.

A subscription holds what to send (line items), where to send it, and when:
the actionable date is the next day the processor should turn it into an
installment. After each installment the date moves forward by one interval.

State Machine (4 states):
    ACTIVE → PENDING_CANCELLATION → CANCELLED
    ACTIVE → CANCELLED
    ACTIVE → INACTIVE (ran past its end date)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from dateutil.relativedelta import relativedelta
from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from subscriptions.config import get_config
from subscriptions.domain import subscriptions
from subscriptions.shared.address import Address
from subscriptions.subscription.events import (
    SubscriptionActionableDateAdvanced,
    SubscriptionCancellationRequested,
    SubscriptionCancelled,
    SubscriptionCreated,
    SubscriptionDeactivated,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SubscriptionStatus(Enum):
    ACTIVE = "Active"
    PENDING_CANCELLATION = "Pending_Cancellation"
    CANCELLED = "Cancelled"
    INACTIVE = "Inactive"


class IntervalUnit(Enum):
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"


_INTERVAL_KEYWORDS = {
    IntervalUnit.DAY: "days",
    IntervalUnit.WEEK: "weeks",
    IntervalUnit.MONTH: "months",
    IntervalUnit.YEAR: "years",
}

_VALID_TRANSITIONS = {
    SubscriptionStatus.ACTIVE: {
        SubscriptionStatus.PENDING_CANCELLATION,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.INACTIVE,
    },
    SubscriptionStatus.PENDING_CANCELLATION: {SubscriptionStatus.CANCELLED},
    SubscriptionStatus.CANCELLED: set(),  # Terminal
    SubscriptionStatus.INACTIVE: set(),  # Terminal
}

# Statuses the processor still creates installments for
_ACTIONABLE_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.PENDING_CANCELLATION}


def _today():
    return datetime.now(UTC).date()


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@subscriptions.value_object(part_of="Subscription")
class OrderOrigin:
    """The order the customer subscribed from.

    Orders placed by the subscription inherit its type, source and sales
    rep so reporting attributes them to the original sale.
    """

    order_id = Identifier()
    order_type = String(max_length=50)
    source = String(max_length=100)
    sales_rep_id = String(max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@subscriptions.entity(part_of="Subscription")
class SubscriptionLineItem:
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@subscriptions.aggregate
class Subscription:
    customer_id = Identifier(required=True)
    store_id = String(max_length=100)
    status = String(choices=SubscriptionStatus, default=SubscriptionStatus.ACTIVE.value)
    interval_length = Integer(default=1, min_value=1)
    interval_units = String(choices=IntervalUnit, default=IntervalUnit.MONTH.value)
    actionable_date = Date()
    end_date = Date()
    line_items = HasMany(SubscriptionLineItem)
    shipping_address = ValueObject(Address)
    origin = ValueObject(OrderOrigin)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        line_items_data,
        actionable_date,
        interval_length=1,
        interval_units=IntervalUnit.MONTH.value,
        shipping_address=None,
        store_id=None,
        origin=None,
        end_date=None,
    ):
        """Set up a new active subscription.

        Args:
            customer_id: The subscribing customer.
            line_items_data: List of dicts with variant_id and quantity.
            actionable_date: First day an installment should be created.
            shipping_address: Optional dict with street, city, state,
                postal_code, country. Falls back to the customer's
                address at checkout time when omitted.
            origin: Optional dict with order_id, order_type, source,
                sales_rep_id of the order the subscription came from.
        """
        if not line_items_data:
            raise ValidationError({"line_items": ["A subscription needs at least one line item"]})

        now = datetime.now(UTC)
        subscription = cls(
            customer_id=customer_id,
            store_id=store_id,
            status=SubscriptionStatus.ACTIVE.value,
            interval_length=interval_length,
            interval_units=interval_units,
            actionable_date=actionable_date,
            end_date=end_date,
            shipping_address=Address(**shipping_address) if shipping_address else None,
            origin=OrderOrigin(**origin) if origin else None,
            created_at=now,
            updated_at=now,
        )
        for item in line_items_data:
            subscription.add_line_items(
                SubscriptionLineItem(variant_id=item["variant_id"], quantity=item["quantity"])
            )

        subscription.raise_(
            SubscriptionCreated(
                subscription_id=str(subscription.id),
                customer_id=str(customer_id),
                line_items=json.dumps(
                    [{"variant_id": str(li.variant_id), "quantity": li.quantity} for li in subscription.line_items]
                ),
                interval_length=subscription.interval_length,
                interval_units=subscription.interval_units,
                actionable_date=actionable_date,
                created_at=now,
            )
        )
        return subscription

    # -------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = SubscriptionStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def interval(self) -> relativedelta:
        keyword = _INTERVAL_KEYWORDS[IntervalUnit(self.interval_units)]
        return relativedelta(**{keyword: self.interval_length})

    @property
    def next_actionable_date(self):
        return (self.actionable_date or _today()) + self.interval

    def is_actionable(self, as_of=None) -> bool:
        """Whether the processor should create an installment for this subscription today."""
        as_of = as_of or _today()
        return (
            SubscriptionStatus(self.status) in _ACTIONABLE_STATUSES
            and self.actionable_date is not None
            and self.actionable_date <= as_of
        )

    def advance_actionable_date(self):
        """Move the actionable date forward by one interval and return it."""
        previous = self.actionable_date
        self.actionable_date = self.next_actionable_date
        self.updated_at = datetime.now(UTC)

        self.raise_(
            SubscriptionActionableDateAdvanced(
                subscription_id=str(self.id),
                previous_actionable_date=previous,
                actionable_date=self.actionable_date,
            )
        )
        return self.actionable_date

    # -------------------------------------------------------------------
    # Cancellation & deactivation
    # -------------------------------------------------------------------
    def can_be_cancelled(self, as_of=None) -> bool:
        """Cancellation is immediate only when it arrives before the notice window."""
        if self.actionable_date is None:
            return True
        as_of = as_of or _today()
        return self.actionable_date - get_config().minimum_cancellation_notice > as_of

    def cancel(self, as_of=None):
        """Cancel now, or mark pending when the next installment is too close."""
        if self.can_be_cancelled(as_of):
            self._mark_cancelled()
            return

        self._assert_can_transition(SubscriptionStatus.PENDING_CANCELLATION)
        now = datetime.now(UTC)
        self.status = SubscriptionStatus.PENDING_CANCELLATION.value
        self.updated_at = now

        self.raise_(
            SubscriptionCancellationRequested(
                subscription_id=str(self.id),
                customer_id=str(self.customer_id),
                requested_at=now,
            )
        )

    def complete_cancellation(self):
        """Finish a pending cancellation once its last installment has been created."""
        if SubscriptionStatus(self.status) != SubscriptionStatus.PENDING_CANCELLATION:
            raise ValidationError({"status": ["Only pending cancellations can be completed"]})
        self._mark_cancelled()

    def _mark_cancelled(self):
        self._assert_can_transition(SubscriptionStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = SubscriptionStatus.CANCELLED.value
        self.actionable_date = None
        self.updated_at = now

        self.raise_(
            SubscriptionCancelled(
                subscription_id=str(self.id),
                customer_id=str(self.customer_id),
                cancelled_at=now,
            )
        )

    @property
    def can_be_deactivated(self) -> bool:
        return (
            SubscriptionStatus(self.status) == SubscriptionStatus.ACTIVE
            and self.end_date is not None
            and self.actionable_date is not None
            and self.actionable_date > self.end_date
        )

    def deactivate(self):
        if not self.can_be_deactivated:
            raise ValidationError({"status": ["Subscription has not reached its end date"]})

        now = datetime.now(UTC)
        self.status = SubscriptionStatus.INACTIVE.value
        self.actionable_date = None
        self.updated_at = now

        self.raise_(
            SubscriptionDeactivated(
                subscription_id=str(self.id),
                customer_id=str(self.customer_id),
                end_date=self.end_date,
                deactivated_at=now,
            )
        )
