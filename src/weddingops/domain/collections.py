from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from weddingops.domain import statuses
from weddingops.domain.models import (
    Client,
    Deliverable,
    Event,
    Payment,
    SpecialRequest,
    Task,
    Vendor,
)


@dataclass(frozen=True)
class Collection:
    name: str
    key: str
    record_type: type
    id_prefix: str
    order_column: str
    enums: dict[str, list[str]]

    @property
    def field_names(self) -> list[str]:
        return [item.name for item in fields(self.record_type)]

    def key_of(self, record: Any) -> str:
        if isinstance(record, dict):
            return record.get(self.key)
        return getattr(record, self.key)


COLLECTIONS: dict[str, Collection] = {
    "clients": Collection(
        name="clients",
        key="client_id",
        record_type=Client,
        id_prefix="C",
        order_column="inserted_at",
        enums={},
    ),
    "events": Collection(
        name="events",
        key="event_id",
        record_type=Event,
        id_prefix="E",
        order_column="inserted_at",
        enums={"status": statuses.values(statuses.EventStatus)},
    ),
    "special_requests": Collection(
        name="special_requests",
        key="request_id",
        record_type=SpecialRequest,
        id_prefix="R",
        # special_requests has no inserted_at column
        order_column="created_at",
        enums={
            "category": statuses.values(statuses.RequestCategory),
            "priority": statuses.values(statuses.Priority),
            "status": statuses.values(statuses.RequestStatus),
        },
    ),
    "payments": Collection(
        name="payments",
        key="payment_id",
        record_type=Payment,
        id_prefix="P",
        order_column="inserted_at",
        enums={
            "type": statuses.values(statuses.PaymentType),
            "currency": statuses.values(statuses.Currency),
            "status": statuses.values(statuses.PaymentStatus),
        },
    ),
    "tasks": Collection(
        name="tasks",
        key="task_id",
        record_type=Task,
        id_prefix="T",
        order_column="inserted_at",
        enums={"status": statuses.values(statuses.TaskStatus)},
    ),
    "deliverables": Collection(
        name="deliverables",
        key="deliverable_id",
        record_type=Deliverable,
        id_prefix="D",
        order_column="inserted_at",
        enums={"type": statuses.values(statuses.DeliverableType)},
    ),
    "vendors": Collection(
        name="vendors",
        key="vendor_id",
        record_type=Vendor,
        id_prefix="V",
        order_column="inserted_at",
        enums={"type": statuses.values(statuses.VendorType)},
    ),
}

COLLECTION_NAMES = tuple(COLLECTIONS)

_BY_TYPE = {spec.record_type: spec for spec in COLLECTIONS.values()}


class UnknownCollectionError(KeyError):
    pass


def get_collection(name: str) -> Collection:
    try:
        return COLLECTIONS[name]
    except KeyError as exc:
        raise UnknownCollectionError(name) from exc


def collection_for(record: Any) -> Collection:
    try:
        return _BY_TYPE[type(record)]
    except KeyError as exc:
        raise UnknownCollectionError(type(record).__name__) from exc
