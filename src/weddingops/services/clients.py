from __future__ import annotations

from weddingops.domain import rules
from weddingops.domain.collections import get_collection
from weddingops.domain.models import Client
from weddingops.services.records import clean, search
from weddingops.services.utils import new_id
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("first_name", "last_name", "instagram", "email", "phone")


async def add_client(
    store: Store,
    *,
    first_name: str | None,
    last_name: str | None,
    email: str | None = None,
    phone: str | None = None,
    instagram: str | None = None,
    country: str | None = None,
    timezone: str | None = None,
    preferred_language: str | None = None,
    whatsapp: str | None = None,
    lead_source: str | None = None,
    notes: str | None = None,
    client_id: str | None = None,
) -> Client:
    rules.require(first_name, "first_name")
    rules.require(last_name, "last_name")
    client = Client(
        client_id=clean(client_id) or new_id(get_collection("clients").id_prefix),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=clean(email),
        phone=clean(phone),
        instagram=clean(instagram),
        country=clean(country),
        timezone=clean(timezone),
        preferred_language=clean(preferred_language),
        whatsapp=clean(whatsapp),
        lead_source=clean(lead_source),
        notes=clean(notes),
    )
    return await store.insert(client)


def search_clients(clients: list[Client], query: str | None = None) -> list[Client]:
    return search(clients, SEARCH_FIELDS, query)


async def remove_client(store: Store, client_id: str) -> None:
    await store.delete("clients", client_id)


def copy_line(client: Client) -> str:
    """One-line contact summary, as pasted into chats."""
    return f"{client.first_name} {client.last_name} | {client.phone or ''}"
