from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields, replace
from datetime import date
from decimal import Decimal
from functools import cache
from typing import Any, get_args, get_type_hints

from weddingops.domain import rules


@dataclass(frozen=True)
class Client:
    client_id: str
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    timezone: str | None = None
    preferred_language: str | None = None
    whatsapp: str | None = None
    instagram: str | None = None
    lead_source: str | None = None
    notes: str | None = None
    owner: str | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Event:
    event_id: str
    client_id: str
    event_date: date
    partner_name: str | None = None
    location_city: str | None = None
    venue_name: str | None = None
    hotel_external_vendor_fee_usd: Decimal | None = None
    package_name: str | None = None
    hours_coverage: int | None = None
    photographers: int | None = None
    videographers: int | None = None
    status: str | None = None
    contract_url: str | None = None
    deposit_due_date: date | None = None
    deposit_amount_usd: Decimal | None = None
    balance_due_date: date | None = None
    balance_amount_usd: Decimal | None = None
    owner: str | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SpecialRequest:
    request_id: str
    event_id: str
    category: str
    description: str
    priority: str
    owner_name: str | None = None
    due_date: date | None = None
    status: str = "open"
    created_at: str | None = None
    owner: str | None = None


@dataclass(frozen=True)
class Payment:
    payment_id: str
    event_id: str
    type: str
    currency: str
    amount: Decimal
    due_date: date
    paid_date: date | None = None
    method: str | None = None
    invoice_number: str | None = None
    receipt_url: str | None = None
    status: str = "pending"
    owner: str | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Task:
    task_id: str
    title: str
    event_id: str | None = None
    description: str | None = None
    assignee: str | None = None
    due_date: date | None = None
    status: str = "todo"
    owner: str | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Deliverable:
    deliverable_id: str
    event_id: str
    type: str
    due_date: date | None = None
    delivered_date: date | None = None
    link: str | None = None
    revision_deadline: date | None = None
    owner: str | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Vendor:
    vendor_id: str
    event_id: str
    type: str
    name: str
    contact: str | None = None
    notes: str | None = None
    owner: str | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Snapshot:
    """Complete in-memory copy of all seven collections."""

    clients: list[Client] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    special_requests: list[SpecialRequest] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    deliverables: list[Deliverable] = field(default_factory=list)
    vendors: list[Vendor] = field(default_factory=list)

    def collection(self, name: str) -> list[Any]:
        return getattr(self, name)

    def with_collection(self, name: str, records: list[Any]) -> Snapshot:
        return replace(self, **{name: list(records)})


# Columns the backend fills in; never sent on writes.
MANAGED_FIELDS = frozenset({"owner", "inserted_at", "updated_at", "created_at"})


@cache
def field_kinds(record_type: type) -> dict[str, str]:
    hints = get_type_hints(record_type)
    kinds: dict[str, str] = {}
    for item in fields(record_type):
        args = get_args(hints[item.name]) or (hints[item.name],)
        if date in args:
            kinds[item.name] = "date"
        elif Decimal in args:
            kinds[item.name] = "amount"
        elif int in args:
            kinds[item.name] = "int"
        else:
            kinds[item.name] = "text"
    return kinds


def required_fields(record_type: type) -> list[str]:
    return [
        item.name
        for item in fields(record_type)
        if item.default is MISSING and item.default_factory is MISSING
    ]


def from_row(record_type: type, row: dict[str, Any]):
    """Build a record from a backend row or an imported JSON object.

    Keys the record type does not declare are ignored.
    """
    kinds = field_kinds(record_type)
    values: dict[str, Any] = {}
    for name, kind in kinds.items():
        if name not in row:
            continue
        values[name] = _coerce(row[name], kind, name)
    return record_type(**values)


def to_row(record: Any, drop_none: bool = False, drop_managed: bool = False) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for item in fields(record):
        value = getattr(record, item.name)
        if drop_none and value is None:
            continue
        if drop_managed and item.name in MANAGED_FIELDS:
            continue
        row[item.name] = _plain(value)
    return row


def _coerce(value: Any, kind: str, name: str) -> Any:
    if value is None:
        return None
    if kind == "date":
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise rules.ValidationError(f"{name} must be YYYY-MM-DD.")
        return rules.parse_date(value, name)
    if kind == "amount":
        return rules.parse_amount(value, name)
    if kind == "int":
        if isinstance(value, bool):
            raise rules.ValidationError(f"{name} must be an integer.")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise rules.ValidationError(f"{name} must be an integer.") from exc
    if not isinstance(value, str):
        raise rules.ValidationError(f"{name} must be a string.")
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return str(value)
    return value
