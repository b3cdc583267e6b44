"""Special requests attached to a wedding."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from weddingops.domain import rules, statuses
from weddingops.domain.collections import get_collection
from weddingops.domain.models import SpecialRequest
from weddingops.services.records import clean, search, validate_choice
from weddingops.services.utils import new_id, utc_now_iso
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("description", "priority", "category", "status")


async def add_request(
    store: Store,
    *,
    event_id: str | None,
    description: str | None,
    category: str = statuses.RequestCategory.PHOTO.value,
    priority: str = statuses.Priority.MEDIUM.value,
    owner_name: str | None = None,
    due_date: date | None = None,
    request_id: str | None = None,
) -> SpecialRequest:
    rules.require(event_id, "event_id")
    rules.require(description, "description")
    request = SpecialRequest(
        request_id=clean(request_id) or new_id(get_collection("special_requests").id_prefix),
        event_id=event_id.strip(),
        description=description.strip(),
        category=validate_choice(category, statuses.values(statuses.RequestCategory), "category"),
        priority=validate_choice(priority, statuses.values(statuses.Priority), "priority"),
        owner_name=clean(owner_name),
        due_date=due_date,
        status=statuses.RequestStatus.OPEN.value,
        created_at=utc_now_iso(),
    )
    return await store.insert(request)


def search_requests(requests: list[SpecialRequest], query: str | None = None) -> list[SpecialRequest]:
    # Requests without a due date sort first.
    return sorted(
        search(requests, SEARCH_FIELDS, query),
        key=lambda request: (request.due_date is not None, request.due_date or date.min),
    )


async def toggle_request(store: Store, request_id: str) -> SpecialRequest:
    request = store.get("special_requests", request_id)
    if request.status == statuses.RequestStatus.OPEN.value:
        status = statuses.RequestStatus.DONE.value
    else:
        status = statuses.RequestStatus.OPEN.value
    return await store.update(replace(request, status=status))
