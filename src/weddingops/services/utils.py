from __future__ import annotations

import secrets
import string
from datetime import UTC, date, datetime
from decimal import Decimal

ID_ALPHABET = string.digits + string.ascii_uppercase
CURRENCY_SYMBOLS = {"USD": "$", "MXN": "MX$"}


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def new_id(prefix: str) -> str:
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(6))
    return f"{prefix}-{suffix}".upper()


def format_money(amount: Decimal | int | float | None, currency: str = "USD") -> str:
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_date(value: date | None) -> str:
    return value.isoformat() if value else ""
