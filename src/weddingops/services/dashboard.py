"""Derived views for the dashboard. Nothing here is stored."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from weddingops.domain import statuses
from weddingops.domain.models import Event, Payment, Snapshot, SpecialRequest

UPCOMING_WINDOW_DAYS = 14


@dataclass(frozen=True)
class Dashboard:
    upcoming_payments: list[Payment]
    open_requests: list[SpecialRequest]
    upcoming_events: list[Event]
    totals: dict[str, Decimal]
    client_count: int
    event_count: int


def is_upcoming(payment: Payment, today: date, days: int = UPCOMING_WINDOW_DAYS) -> bool:
    if payment.status == statuses.PaymentStatus.PAID.value:
        return False
    delta = (payment.due_date - today).days
    return 0 <= delta <= days


def upcoming_payments(
    payments: list[Payment], today: date, days: int = UPCOMING_WINDOW_DAYS, limit: int = 5
) -> list[Payment]:
    return [payment for payment in payments if is_upcoming(payment, today, days)][:limit]


def open_requests(requests: list[SpecialRequest], limit: int = 6) -> list[SpecialRequest]:
    open_status = statuses.RequestStatus.OPEN.value
    return [request for request in requests if request.status == open_status][:limit]


def upcoming_events(events: list[Event], today: date, limit: int = 4) -> list[Event]:
    future = [event for event in events if event.event_date >= today]
    return sorted(future, key=lambda event: event.event_date)[:limit]


def totals_by_currency(payments: list[Payment]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for currency in statuses.values(statuses.Currency):
        totals[currency] = Decimal("0")
    for payment in payments:
        totals[payment.currency] += payment.amount or Decimal("0")
    return dict(totals)


def build_dashboard(snapshot: Snapshot, today: date | None = None) -> Dashboard:
    today = today or date.today()
    return Dashboard(
        upcoming_payments=upcoming_payments(snapshot.payments, today),
        open_requests=open_requests(snapshot.special_requests),
        upcoming_events=upcoming_events(snapshot.events, today),
        totals=totals_by_currency(snapshot.payments),
        client_count=len(snapshot.clients),
        event_count=len(snapshot.events),
    )
