from __future__ import annotations

from dataclasses import replace
from datetime import date

from weddingops.domain import rules, statuses
from weddingops.domain.collections import get_collection
from weddingops.domain.models import Deliverable
from weddingops.services.records import clean, search, validate_choice
from weddingops.services.utils import new_id
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("type", "link")


async def add_deliverable(
    store: Store,
    *,
    event_id: str | None,
    type: str = statuses.DeliverableType.SNEAK_PEEK.value,
    due_date: date | None = None,
    link: str | None = None,
    revision_deadline: date | None = None,
    deliverable_id: str | None = None,
) -> Deliverable:
    rules.require(event_id, "event_id")
    deliverable = Deliverable(
        deliverable_id=clean(deliverable_id) or new_id(get_collection("deliverables").id_prefix),
        event_id=event_id.strip(),
        type=validate_choice(type, statuses.values(statuses.DeliverableType), "type"),
        due_date=due_date,
        link=clean(link),
        revision_deadline=revision_deadline,
    )
    return await store.insert(deliverable)


def search_deliverables(deliverables: list[Deliverable], query: str | None = None) -> list[Deliverable]:
    return search(deliverables, SEARCH_FIELDS, query)


async def mark_delivered(store: Store, deliverable_id: str, today: date | None = None) -> Deliverable:
    deliverable = store.get("deliverables", deliverable_id)
    return await store.update(replace(deliverable, delivered_date=today or date.today()))


async def remove_deliverable(store: Store, deliverable_id: str) -> None:
    await store.delete("deliverables", deliverable_id)
