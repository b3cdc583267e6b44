"""Weddings, stored in the `events` collection."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from weddingops.domain import rules, statuses
from weddingops.domain.collections import get_collection
from weddingops.domain.models import Event
from weddingops.services.records import clean, search, validate_choice
from weddingops.services.utils import new_id
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("venue_name", "location_city", "package_name", "status", "event_date")


async def add_event(
    store: Store,
    *,
    client_id: str | None,
    event_date: date | None,
    status: str | None = statuses.EventStatus.LEAD.value,
    partner_name: str | None = None,
    location_city: str | None = None,
    venue_name: str | None = None,
    package_name: str | None = None,
    hours_coverage: int | None = None,
    photographers: int | None = None,
    videographers: int | None = None,
    hotel_external_vendor_fee_usd: Decimal | None = None,
    contract_url: str | None = None,
    deposit_due_date: date | None = None,
    deposit_amount_usd: Decimal | None = None,
    balance_due_date: date | None = None,
    balance_amount_usd: Decimal | None = None,
    event_id: str | None = None,
) -> Event:
    rules.require(client_id, "client_id")
    rules.require(event_date, "event_date")
    event = Event(
        event_id=clean(event_id) or new_id(get_collection("events").id_prefix),
        client_id=client_id.strip(),
        event_date=event_date,
        status=validate_choice(
            status, statuses.values(statuses.EventStatus), "status", required=False
        ),
        partner_name=clean(partner_name),
        location_city=clean(location_city),
        venue_name=clean(venue_name),
        package_name=clean(package_name),
        hours_coverage=hours_coverage,
        photographers=photographers,
        videographers=videographers,
        hotel_external_vendor_fee_usd=hotel_external_vendor_fee_usd,
        contract_url=clean(contract_url),
        deposit_due_date=deposit_due_date,
        deposit_amount_usd=deposit_amount_usd,
        balance_due_date=balance_due_date,
        balance_amount_usd=balance_amount_usd,
    )
    return await store.insert(event)


def search_events(events: list[Event], query: str | None = None) -> list[Event]:
    return sorted(search(events, SEARCH_FIELDS, query), key=lambda event: event.event_date)
