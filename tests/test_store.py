import asyncio
from datetime import date
from decimal import Decimal

import pytest

from weddingops.adapters.supabase.client import RemoteError
from weddingops.config import FailurePolicy
from weddingops.domain.collections import COLLECTION_NAMES
from weddingops.domain.models import Client, Payment, Snapshot, Task
from weddingops.services.eventlog import EventLogger
from weddingops.domain.rules import ValidationError
from weddingops.store.snapshot import ChangeEvent, RecordNotFoundError, Store, SyncPendingError


class FakeRemote:
    def __init__(self, rows=None, fail=()) -> None:
        self.rows = rows or {}
        self.fail = set(fail)
        self.calls = []

    async def list(self, collection):
        self.calls.append(("list", collection))
        return [dict(row) for row in self.rows.get(collection, [])]

    async def insert(self, collection, row):
        self.calls.append(("insert", collection, row))
        if "insert" in self.fail:
            raise RemoteError("new row violates row-level security policy")
        return dict(row, owner="user-1", inserted_at="2025-12-01T10:00:00+00:00")

    async def update(self, collection, key, row):
        self.calls.append(("update", collection, row))
        if "update" in self.fail:
            raise RemoteError("permission denied")
        return dict(row, owner="user-1", updated_at="2025-12-01T11:00:00+00:00")

    async def delete(self, collection, key, record_id):
        self.calls.append(("delete", collection, record_id))
        if "delete" in self.fail:
            raise RemoteError("permission denied")
        return True


def _client(client_id: str, first: str = "Alex") -> Client:
    return Client(client_id=client_id, first_name=first, last_name="Johnson")


def _seeded(remote=None, policy=FailurePolicy.ROLLBACK, logger=None) -> Store:
    initial = Snapshot(clients=[_client("C-0002", "Bea"), _client("C-0001")])
    return Store(remote, initial=initial, on_failure=policy, logger=logger)


def test_load_fetches_all_collections() -> None:
    remote = FakeRemote(
        rows={
            "clients": [{"client_id": "C-0001", "first_name": "Alex", "last_name": "Johnson"}],
            "payments": [
                {
                    "payment_id": "P-0001",
                    "event_id": "E-0001",
                    "type": "deposit",
                    "currency": "USD",
                    "amount": 1200,
                    "due_date": "2025-12-12",
                    "status": "pending",
                    "owner": "user-1",
                }
            ],
        }
    )
    store = Store(remote)

    snapshot = asyncio.run(store.load())

    assert sorted(call[1] for call in remote.calls) == sorted(COLLECTION_NAMES)
    assert snapshot.clients == [_client("C-0001")]
    assert snapshot.payments[0].amount == Decimal("1200")
    assert snapshot.payments[0].due_date == date(2025, 12, 12)
    assert snapshot.tasks == []


def test_store_without_remote_keeps_local_state() -> None:
    store = _seeded()
    asyncio.run(store.insert(_client("C-0003", "Cam")))

    assert not store.connected
    assert [client.client_id for client in store.snapshot.clients] == ["C-0003", "C-0002", "C-0001"]


def test_insert_prepends_and_adopts_stored_row() -> None:
    remote = FakeRemote()
    store = _seeded(remote)

    saved = asyncio.run(store.insert(_client("C-0003", "Cam")))

    assert saved.owner == "user-1"
    assert store.snapshot.clients[0] == saved
    sent = remote.calls[0][2]
    assert "owner" not in sent and "inserted_at" not in sent and "email" not in sent


def test_insert_failure_rolls_back() -> None:
    remote = FakeRemote(fail={"insert"})
    store = _seeded(remote)
    before = store.snapshot

    with pytest.raises(RemoteError, match="row-level security"):
        asyncio.run(store.insert(_client("C-0003", "Cam")))

    assert store.snapshot == before
    assert store.pending == set()


def test_insert_failure_marks_pending() -> None:
    remote = FakeRemote(fail={"insert"})
    store = _seeded(remote, policy=FailurePolicy.MARK_PENDING)

    with pytest.raises(RemoteError):
        asyncio.run(store.insert(_client("C-0003", "Cam")))

    assert store.snapshot.clients[0].client_id == "C-0003"
    assert store.pending == {("clients", "C-0003")}


def test_update_failure_restores_previous_record() -> None:
    remote = FakeRemote(fail={"update"})
    store = _seeded(remote)
    renamed = Client(client_id="C-0001", first_name="Alexander", last_name="Johnson")

    with pytest.raises(RemoteError):
        asyncio.run(store.update(renamed))

    assert store.get("clients", "C-0001").first_name == "Alex"


def test_update_sends_cleared_fields() -> None:
    remote = FakeRemote()
    store = Store(remote, initial=Snapshot(tasks=[Task(task_id="T-1", title="Cull", assignee="Clem")]))

    asyncio.run(store.update(Task(task_id="T-1", title="Cull")))

    sent = remote.calls[0][2]
    assert sent["assignee"] is None
    assert "updated_at" not in sent


def test_delete_failure_restores_position() -> None:
    remote = FakeRemote(fail={"delete"})
    store = _seeded(remote)
    before = store.snapshot

    with pytest.raises(RemoteError):
        asyncio.run(store.delete("clients", "C-0001"))

    assert store.snapshot == before


def test_delete_unknown_record() -> None:
    store = _seeded(FakeRemote())
    with pytest.raises(RecordNotFoundError):
        asyncio.run(store.delete("clients", "C-9999"))


def test_rollback_is_logged(tmp_path) -> None:
    logger = EventLogger(path=tmp_path / "events.ndjson", workspace="studio")
    store = _seeded(FakeRemote(fail={"delete"}), logger=logger)

    with pytest.raises(RemoteError):
        asyncio.run(store.delete("clients", "C-0002"))

    lines = (tmp_path / "events.ndjson").read_text(encoding="utf-8").splitlines()
    assert '"event_type": "delete"' in lines[0]
    assert '"event_type": "rollback"' in lines[1]
    assert "permission denied" in lines[1]


def test_apply_change_upserts_rows() -> None:
    remote = FakeRemote()
    store = _seeded(remote)

    inserted = ChangeEvent.from_payload(
        {
            "data": {
                "type": "INSERT",
                "table": "clients",
                "record": {"client_id": "C-0003", "first_name": "Cam", "last_name": "Lee"},
                "old_record": None,
            }
        }
    )
    updated = ChangeEvent.from_payload(
        {
            "eventType": "UPDATE",
            "table": "clients",
            "new": {"client_id": "C-0001", "first_name": "Alexander", "last_name": "Johnson"},
            "old": {"client_id": "C-0001"},
        }
    )

    assert asyncio.run(store.apply_change(inserted)) is True
    assert asyncio.run(store.apply_change(updated)) is True

    assert [client.client_id for client in store.snapshot.clients] == ["C-0003", "C-0002", "C-0001"]
    assert store.get("clients", "C-0001").first_name == "Alexander"
    assert remote.calls == []


def test_apply_change_removes_deleted_row() -> None:
    store = _seeded(FakeRemote())
    event = ChangeEvent.from_payload(
        {"data": {"type": "DELETE", "table": "clients", "record": None, "old_record": {"client_id": "C-0002"}}}
    )

    asyncio.run(store.apply_change(event))

    assert [client.client_id for client in store.snapshot.clients] == ["C-0001"]


def test_apply_change_refetches_when_notification_is_unusable() -> None:
    remote = FakeRemote(rows={"clients": [{"client_id": "C-0001", "first_name": "Alex", "last_name": "Johnson"}]})
    store = _seeded(remote)

    unknown_table = ChangeEvent.from_payload({"data": {"type": "INSERT", "table": "invoices", "record": {}}})
    assert asyncio.run(store.apply_change(unknown_table)) is False
    assert len(remote.calls) == len(COLLECTION_NAMES)
    assert [client.client_id for client in store.snapshot.clients] == ["C-0001"]

    remote.calls.clear()
    partial = ChangeEvent.from_payload(
        {"data": {"type": "UPDATE", "table": "payments", "record": {"payment_id": "P-0001", "amount": 10}}}
    )
    assert asyncio.run(store.apply_change(partial)) is False
    assert len(remote.calls) == len(COLLECTION_NAMES)


def test_refresh_clears_pending() -> None:
    remote = FakeRemote(fail={"insert"})
    store = _seeded(remote, policy=FailurePolicy.MARK_PENDING)
    payment = Payment(
        payment_id="P-0002",
        event_id="E-0001",
        type="balance",
        currency="USD",
        amount=Decimal("500"),
        due_date=date(2025, 12, 20),
    )

    with pytest.raises(RemoteError):
        asyncio.run(store.insert(payment))
    assert store.pending == {("payments", "P-0002")}

    asyncio.run(store.refresh())
    assert store.pending == set()
    assert store.snapshot.payments == []


def test_insert_rejects_existing_id_without_touching_snapshot() -> None:
    remote = FakeRemote()
    store = _seeded(remote)
    before = store.snapshot

    with pytest.raises(ValidationError, match="clients C-0001 already exists"):
        asyncio.run(store.insert(_client("C-0001", "Ana")))

    assert store.snapshot == before
    assert remote.calls == []


def test_insert_rejects_existing_id_without_remote() -> None:
    store = _seeded()

    with pytest.raises(ValidationError):
        asyncio.run(store.insert(_client("C-0002", "Ana")))

    assert [client.client_id for client in store.snapshot.clients] == ["C-0002", "C-0001"]
    assert store.get("clients", "C-0002").first_name == "Bea"


def test_insert_rollback_keeps_rows_added_meanwhile() -> None:
    store = _seeded()
    arrived = ChangeEvent.from_payload(
        {
            "data": {
                "type": "INSERT",
                "table": "clients",
                "record": {"client_id": "C-0009", "first_name": "Dee", "last_name": "Ko"},
            }
        }
    )

    class SlowRemote(FakeRemote):
        async def insert(self, collection, row):
            await store.apply_change(arrived)
            raise RemoteError("duplicate key value violates unique constraint")

    store.remote = SlowRemote()

    with pytest.raises(RemoteError):
        asyncio.run(store.insert(_client("C-0003", "Cam")))

    assert [client.client_id for client in store.snapshot.clients] == ["C-0009", "C-0002", "C-0001"]


def test_update_failure_marks_pending() -> None:
    remote = FakeRemote(fail={"update"})
    store = _seeded(remote, policy=FailurePolicy.MARK_PENDING)
    renamed = Client(client_id="C-0001", first_name="Alexander", last_name="Johnson")

    with pytest.raises(SyncPendingError) as excinfo:
        asyncio.run(store.update(renamed))

    assert (excinfo.value.collection, excinfo.value.record_id) == ("clients", "C-0001")
    assert store.get("clients", "C-0001").first_name == "Alexander"
    assert store.pending == {("clients", "C-0001")}


def test_delete_failure_marks_pending(tmp_path) -> None:
    logger = EventLogger(path=tmp_path / "events.ndjson", workspace="studio")
    store = _seeded(FakeRemote(fail={"delete"}), policy=FailurePolicy.MARK_PENDING, logger=logger)

    with pytest.raises(SyncPendingError):
        asyncio.run(store.delete("clients", "C-0002"))

    assert [client.client_id for client in store.snapshot.clients] == ["C-0001"]
    assert store.pending == {("clients", "C-0002")}
    lines = (tmp_path / "events.ndjson").read_text(encoding="utf-8").splitlines()
    assert '"event_type": "sync_pending"' in lines[-1]


def test_apply_change_refetches_delete_without_key() -> None:
    remote = FakeRemote(rows={"clients": [{"client_id": "C-0001", "first_name": "Alex", "last_name": "Johnson"}]})
    store = _seeded(remote)
    event = ChangeEvent.from_payload(
        {"data": {"type": "DELETE", "table": "clients", "record": None, "old_record": {}}}
    )

    assert asyncio.run(store.apply_change(event)) is False

    assert len(remote.calls) == len(COLLECTION_NAMES)
    assert [client.client_id for client in store.snapshot.clients] == ["C-0001"]
