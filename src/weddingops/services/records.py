from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

from weddingops.domain import rules

R = TypeVar("R")


def clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def search(records: Iterable[R], fields: Sequence[str], query: str | None) -> list[R]:
    """Case-insensitive substring match over the joined display fields."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(records)
    return [
        record
        for record in records
        if needle in " ".join(_text(getattr(record, name)) for name in fields).lower()
    ]


def validate_choice(
    value: str | None, allowed: Iterable[str], field: str, required: bool = True
) -> str | None:
    value = clean(value)
    if required:
        rules.require(value, field)
    rules.validate_enum(value, allowed, field)
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)
