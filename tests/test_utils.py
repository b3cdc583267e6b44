import re
from datetime import date
from decimal import Decimal

from weddingops.domain.models import Payment, from_row, to_row
from weddingops.services.utils import format_money, new_id


def test_format_money() -> None:
    assert format_money(Decimal("1200"), "USD") == "$1,200.00"
    assert format_money(Decimal("0"), "USD") == "$0.00"
    assert format_money(Decimal("1234567.5"), "MXN") == "MX$1,234,567.50"
    assert format_money(Decimal("-200"), "USD") == "-$200.00"


def test_new_id_shape() -> None:
    ids = {new_id("P") for _ in range(50)}
    assert all(re.fullmatch(r"P-[0-9A-Z]{6}", value) for value in ids)
    assert len(ids) > 1


def test_rows_keep_amounts_and_dates() -> None:
    payment = from_row(
        Payment,
        {
            "payment_id": "P-1",
            "event_id": "E-1",
            "type": "other",
            "currency": "MXN",
            "amount": 99.5,
            "due_date": "2025-12-31",
            "unexpected": "ignored",
        },
    )
    assert payment.amount == Decimal("99.5")
    assert payment.due_date == date(2025, 12, 31)

    row = to_row(payment, drop_none=True, drop_managed=True)
    assert row["amount"] == "99.5"
    assert row["due_date"] == "2025-12-31"
    assert "owner" not in row and "paid_date" not in row
