from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from weddingops.domain import rules, statuses
from weddingops.domain.models import Payment


@dataclass(frozen=True)
class MonthlySummary:
    month: str
    currency: str
    due: Decimal
    paid: Decimal

    @property
    def pending(self) -> Decimal:
        return self.due - self.paid


def month_bounds(month: str) -> tuple[date, date]:
    year, month_number = rules.parse_month(month)
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)


def monthly_summary(payments: list[Payment], month: str, currency: str) -> MonthlySummary:
    """Sum amounts due and amounts paid inside one calendar month.

    A payment counts towards `due` by its due date and towards `paid` by its
    paid date, so one payment can land in different months for each.
    """
    rules.validate_enum(currency, statuses.values(statuses.Currency), "currency")
    first, last = month_bounds(month)
    matching = [payment for payment in payments if payment.currency == currency]
    due = sum(
        (payment.amount for payment in matching if first <= payment.due_date <= last),
        Decimal("0"),
    )
    paid = sum(
        (
            payment.amount
            for payment in matching
            if payment.paid_date is not None and first <= payment.paid_date <= last
        ),
        Decimal("0"),
    )
    return MonthlySummary(month=month, currency=currency, due=due, paid=paid)
