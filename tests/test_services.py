import asyncio
import re
from datetime import date, timedelta
from decimal import Decimal

import pytest

from weddingops.domain.models import Event, SpecialRequest, Task
from weddingops.domain.rules import ValidationError
from weddingops.services import clients, dashboard, deliverables, payments, requests, tasks, vendors, weddings
from weddingops.store.demo import demo_snapshot
from weddingops.store.snapshot import Store

TODAY = date(2025, 12, 1)


class FakeRemote:
    def __init__(self) -> None:
        self.calls = []

    async def insert(self, collection, row):
        self.calls.append(("insert", collection))
        return row

    async def update(self, collection, key, row):
        self.calls.append(("update", collection))
        return row

    async def delete(self, collection, key, record_id):
        self.calls.append(("delete", collection))
        return True


def _store(remote=None) -> Store:
    return Store(remote, initial=demo_snapshot(TODAY))


def test_add_client_requires_last_name() -> None:
    remote = FakeRemote()
    store = _store(remote)
    before = store.snapshot

    with pytest.raises(ValidationError, match="last_name is required"):
        asyncio.run(clients.add_client(store, first_name="Ana", last_name="   "))

    assert store.snapshot == before
    assert remote.calls == []


def test_add_client_generates_prefixed_id() -> None:
    remote = FakeRemote()
    store = _store(remote)

    client = asyncio.run(clients.add_client(store, first_name=" Ana ", last_name="Diaz", phone="+52 1"))

    assert re.fullmatch(r"C-[0-9A-Z]{6}", client.client_id)
    assert client.first_name == "Ana"
    assert store.snapshot.clients[0].client_id == client.client_id
    assert remote.calls == [("insert", "clients")]


def test_search_clients_is_case_insensitive() -> None:
    snapshot = demo_snapshot(TODAY)
    assert clients.search_clients(snapshot.clients, "ALEXAND") != []
    assert clients.search_clients(snapshot.clients, "johnson")[0].client_id == "C-0001"
    assert clients.search_clients(snapshot.clients, "nobody") == []
    assert clients.search_clients(snapshot.clients, "") == snapshot.clients


def test_copy_line() -> None:
    client = demo_snapshot(TODAY).clients[0]
    assert clients.copy_line(client) == "Alex Johnson | +1 555 555 5555"


def test_add_event_validates_status() -> None:
    store = _store()
    with pytest.raises(ValidationError, match="status must be one of"):
        asyncio.run(
            weddings.add_event(store, client_id="C-0001", event_date=TODAY, status="maybe")
        )
    with pytest.raises(ValidationError, match="event_date is required"):
        asyncio.run(weddings.add_event(store, client_id="C-0001", event_date=None))


def test_search_events_sorts_by_date() -> None:
    events = [
        Event(event_id="E-2", client_id="C-1", event_date=date(2026, 3, 1), venue_name="Casa"),
        Event(event_id="E-1", client_id="C-1", event_date=date(2026, 1, 5), venue_name="Hotel X"),
    ]
    assert [event.event_id for event in weddings.search_events(events)] == ["E-1", "E-2"]
    assert [event.event_id for event in weddings.search_events(events, "casa")] == ["E-2"]
    assert [event.event_id for event in weddings.search_events(events, "2026-01")] == ["E-1"]


def test_search_requests_puts_undated_first() -> None:
    items = [
        SpecialRequest("R-1", "E-1", "photo", "Drone", "low", due_date=date(2026, 1, 2)),
        SpecialRequest("R-2", "E-1", "video", "Same day edit", "high"),
        SpecialRequest("R-3", "E-1", "photo", "Family list", "medium", due_date=date(2025, 12, 30)),
    ]
    ordered = requests.search_requests(items)
    assert [item.request_id for item in ordered] == ["R-2", "R-3", "R-1"]


def test_toggle_request_twice_is_identity() -> None:
    store = _store()
    original = store.get("special_requests", "R-0001")

    first = asyncio.run(requests.toggle_request(store, "R-0001"))
    assert first.status == "done"
    asyncio.run(requests.toggle_request(store, "R-0001"))

    assert store.get("special_requests", "R-0001") == original


def test_toggle_task_twice_is_identity() -> None:
    store = _store()
    original = store.get("tasks", "T-0001")

    asyncio.run(tasks.toggle_task(store, "T-0001"))
    assert store.get("tasks", "T-0001").status == "done"
    asyncio.run(tasks.toggle_task(store, "T-0001"))

    assert store.get("tasks", "T-0001") == original


def test_toggle_reopens_doing_task_as_done() -> None:
    store = Store(initial=demo_snapshot(TODAY).with_collection("tasks", [Task("T-1", "Edit", status="doing")]))
    assert asyncio.run(tasks.toggle_task(store, "T-1")).status == "done"


def test_split_tasks() -> None:
    items = [Task("T-1", "Cull photos", status="done"), Task("T-2", "Edit reel", assignee="Clem")]
    pending, done = tasks.split_tasks(items)
    assert [task.task_id for task in pending] == ["T-2"]
    assert [task.task_id for task in done] == ["T-1"]
    assert tasks.split_tasks(items, "clem") == ([items[1]], [])


def test_mark_paid_removes_from_upcoming() -> None:
    remote = FakeRemote()
    store = _store(remote)
    assert [p.payment_id for p in dashboard.upcoming_payments(store.snapshot.payments, TODAY)] == ["P-0001"]

    paid = asyncio.run(payments.mark_paid(store, "P-0001", today=TODAY))

    assert paid.status == "paid"
    assert paid.paid_date == TODAY
    assert dashboard.upcoming_payments(store.snapshot.payments, TODAY) == []
    assert remote.calls == [("update", "payments")]


def test_add_payment_defaults() -> None:
    store = _store()
    payment = asyncio.run(payments.add_payment(store, event_id="E-0001", today=TODAY))

    assert payment.amount == Decimal("0")
    assert payment.due_date == TODAY
    assert (payment.type, payment.currency, payment.status) == ("deposit", "USD", "pending")


def test_add_payment_rejects_bad_amount() -> None:
    store = _store()
    with pytest.raises(ValidationError, match="amount must be a number"):
        asyncio.run(payments.add_payment(store, event_id="E-0001", amount="lots"))
    with pytest.raises(ValidationError, match="currency must be one of"):
        asyncio.run(payments.add_payment(store, event_id="E-0001", amount="10", currency="EUR"))


def test_search_payments_sorted_by_due_date() -> None:
    store = _store()
    asyncio.run(payments.add_payment(store, event_id="E-0001", amount="300", due_date=TODAY, invoice_number="INV-9"))
    ordered = payments.search_payments(store.snapshot.payments)
    assert [p.due_date for p in ordered] == [TODAY, TODAY + timedelta(days=11)]
    assert [p.invoice_number for p in payments.search_payments(store.snapshot.payments, "inv-9")] == ["INV-9"]


def test_remove_payment() -> None:
    remote = FakeRemote()
    store = _store(remote)
    asyncio.run(payments.remove_payment(store, "P-0001"))
    assert store.snapshot.payments == []
    assert remote.calls == [("delete", "payments")]


def test_deliverable_lifecycle() -> None:
    store = _store()
    added = asyncio.run(deliverables.add_deliverable(store, event_id="E-0001", type="album"))
    assert added.deliverable_id.startswith("D-")

    delivered = asyncio.run(deliverables.mark_delivered(store, "D-0001", today=TODAY))
    assert delivered.delivered_date == TODAY

    asyncio.run(deliverables.remove_deliverable(store, added.deliverable_id))
    assert [d.deliverable_id for d in store.snapshot.deliverables] == ["D-0001"]
    assert deliverables.search_deliverables(store.snapshot.deliverables, "SNEAK") != []


def test_vendor_requires_name() -> None:
    store = _store()
    with pytest.raises(ValidationError, match="name is required"):
        asyncio.run(vendors.add_vendor(store, event_id="E-0001", name=""))

    vendor = asyncio.run(vendors.add_vendor(store, event_id="E-0001", name="DJ Sol", type="dj"))
    assert vendors.search_vendors(store.snapshot.vendors, "sol") == [vendor]
    asyncio.run(vendors.remove_vendor(store, vendor.vendor_id))
    assert [v.vendor_id for v in store.snapshot.vendors] == ["V-0001"]


def test_add_client_rejects_an_existing_id() -> None:
    store = Store(None, initial=demo_snapshot())

    with pytest.raises(ValidationError, match="clients C-0001 already exists"):
        asyncio.run(clients.add_client(store, first_name="Ana", last_name="Diaz", client_id="C-0001"))

    assert [client.client_id for client in store.snapshot.clients] == ["C-0001"]
    assert store.get("clients", "C-0001").first_name == "Alex"
