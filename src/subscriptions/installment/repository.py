"""Repository for the Installment aggregate."""

from subscriptions.domain import subscriptions
from subscriptions.installment.installment import Installment
from subscriptions.shared.paging import fetch_all


@subscriptions.repository(part_of=Installment)
class InstallmentRepository:
    def actionable(self, as_of) -> list[Installment]:
        """Unfulfilled installments whose retry date has come round.

        Fulfilled installments carry no actionable date, so the date filter
        alone keeps them out of the query.
        """
        candidates = fetch_all(self._dao.query.filter(actionable_date__lte=as_of))
        return [installment for installment in candidates if installment.is_actionable(as_of)]

    def for_customer(self, customer_id) -> list[Installment]:
        return fetch_all(self._dao.query.filter(customer_id=str(customer_id)))
