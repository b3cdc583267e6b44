from __future__ import annotations

from weddingops.domain import rules, statuses
from weddingops.domain.collections import get_collection
from weddingops.domain.models import Vendor
from weddingops.services.records import clean, search, validate_choice
from weddingops.services.utils import new_id
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("type", "name", "contact")


async def add_vendor(
    store: Store,
    *,
    event_id: str | None,
    name: str | None,
    type: str = statuses.VendorType.PLANNER.value,
    contact: str | None = None,
    notes: str | None = None,
    vendor_id: str | None = None,
) -> Vendor:
    rules.require(event_id, "event_id")
    rules.require(name, "name")
    vendor = Vendor(
        vendor_id=clean(vendor_id) or new_id(get_collection("vendors").id_prefix),
        event_id=event_id.strip(),
        name=name.strip(),
        type=validate_choice(type, statuses.values(statuses.VendorType), "type"),
        contact=clean(contact),
        notes=clean(notes),
    )
    return await store.insert(vendor)


def search_vendors(vendors: list[Vendor], query: str | None = None) -> list[Vendor]:
    return search(vendors, SEARCH_FIELDS, query)


async def remove_vendor(store: Store, vendor_id: str) -> None:
    await store.delete("vendors", vendor_id)
