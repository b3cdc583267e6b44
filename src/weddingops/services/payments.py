from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from weddingops.domain import rules, statuses
from weddingops.domain.collections import get_collection
from weddingops.domain.models import Payment
from weddingops.services.records import clean, search, validate_choice
from weddingops.services.utils import new_id
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("type", "currency", "status", "invoice_number")


async def add_payment(
    store: Store,
    *,
    event_id: str | None,
    amount: Decimal | int | str | None = None,
    due_date: date | None = None,
    type: str = statuses.PaymentType.DEPOSIT.value,
    currency: str = statuses.Currency.USD.value,
    status: str = statuses.PaymentStatus.PENDING.value,
    method: str | None = None,
    invoice_number: str | None = None,
    receipt_url: str | None = None,
    payment_id: str | None = None,
    today: date | None = None,
) -> Payment:
    """Record a payment; amount defaults to zero and the due date to today."""
    rules.require(event_id, "event_id")
    parsed_amount = rules.parse_amount(amount, "amount")
    payment = Payment(
        payment_id=clean(payment_id) or new_id(get_collection("payments").id_prefix),
        event_id=event_id.strip(),
        type=validate_choice(type, statuses.values(statuses.PaymentType), "type"),
        currency=validate_choice(currency, statuses.values(statuses.Currency), "currency"),
        amount=parsed_amount if parsed_amount is not None else Decimal("0"),
        due_date=due_date or today or date.today(),
        status=validate_choice(status, statuses.values(statuses.PaymentStatus), "status"),
        method=clean(method),
        invoice_number=clean(invoice_number),
        receipt_url=clean(receipt_url),
    )
    return await store.insert(payment)


def search_payments(payments: list[Payment], query: str | None = None) -> list[Payment]:
    return sorted(search(payments, SEARCH_FIELDS, query), key=lambda payment: payment.due_date)


async def mark_paid(store: Store, payment_id: str, today: date | None = None) -> Payment:
    payment = store.get("payments", payment_id)
    paid = replace(
        payment,
        status=statuses.PaymentStatus.PAID.value,
        paid_date=today or date.today(),
    )
    return await store.update(paid)


async def remove_payment(store: Store, payment_id: str) -> None:
    await store.delete("payments", payment_id)
