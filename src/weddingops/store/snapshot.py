from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any

from weddingops.adapters.supabase.client import RemoteClient, RemoteError
from weddingops.config import FailurePolicy
from weddingops.domain import rules
from weddingops.domain.collections import (
    COLLECTION_NAMES,
    COLLECTIONS,
    Collection,
    collection_for,
    get_collection,
)
from weddingops.domain.models import Snapshot, from_row, required_fields, to_row
from weddingops.services.eventlog import EventLogger

CHANGE_KINDS = {"INSERT", "UPDATE", "DELETE"}


class RecordNotFoundError(LookupError):
    pass


class SyncPendingError(RemoteError):
    """A rejected write that was kept locally until the next refresh."""

    def __init__(self, message: str, collection: str, record_id: str) -> None:
        super().__init__(message)
        self.collection = collection
        self.record_id = record_id


@dataclass(frozen=True)
class ChangeEvent:
    kind: str
    table: str | None
    record: dict[str, Any]
    old_record: dict[str, Any]

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ChangeEvent:
        """Normalize a realtime notification.

        Accepts the SDK's `{"data": {"type", "table", "record", "old_record"}}`
        envelope as well as the flat `{"eventType", "table", "new", "old"}` shape.
        """
        data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
        kind = data.get("type") or data.get("eventType") or ""
        record = data.get("record") or data.get("new") or {}
        old_record = data.get("old_record") or data.get("old") or {}
        return cls(
            kind=str(kind).upper(),
            table=data.get("table"),
            record=dict(record),
            old_record=dict(old_record),
        )


class Store:
    """In-memory snapshot of every collection, mirrored to the backend.

    Writes land locally first and are then sent to the remote. When the remote
    rejects a write, `on_failure` decides whether the local change is undone
    (`rollback`) or kept and flagged in `pending` until the next refresh.
    Without a remote the store only keeps local state.
    """

    def __init__(
        self,
        remote: RemoteClient | None = None,
        *,
        initial: Snapshot | None = None,
        on_failure: FailurePolicy = FailurePolicy.ROLLBACK,
        logger: EventLogger | None = None,
    ) -> None:
        self.remote = remote
        self.snapshot = initial if initial is not None else Snapshot()
        self.on_failure = FailurePolicy(on_failure)
        self.logger = logger
        self.pending: set[tuple[str, str]] = set()

    @property
    def connected(self) -> bool:
        return self.remote is not None

    async def load(self) -> Snapshot:
        if self.remote is None:
            return self.snapshot
        return await self.refresh()

    async def refresh(self) -> Snapshot:
        if self.remote is None:
            return self.snapshot
        results = await asyncio.gather(*(self.remote.list(name) for name in COLLECTION_NAMES))
        collections = {}
        for name, rows in zip(COLLECTION_NAMES, results):
            record_type = get_collection(name).record_type
            collections[name] = [from_row(record_type, row) for row in rows]
        self.snapshot = Snapshot(**collections)
        self.pending.clear()
        self._log("refresh")
        return self.snapshot

    def replace(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self.pending.clear()
        self._log("replace")

    def get(self, collection: str, record_id: str):
        spec = get_collection(collection)
        for record in self.snapshot.collection(collection):
            if spec.key_of(record) == record_id:
                return record
        raise RecordNotFoundError(f"{collection} {record_id} not found.")

    async def insert(self, record):
        spec = collection_for(record)
        key = spec.key_of(record)
        if self._index_of(spec, key) is not None:
            raise rules.ValidationError(f"{spec.name} {key} already exists.")
        self._set(spec.name, [record, *self.snapshot.collection(spec.name)])
        self._log("insert", spec.name, key, changed_fields=to_row(record, drop_none=True))
        if self.remote is None:
            return record
        row = to_row(record, drop_none=True, drop_managed=True)
        try:
            stored = await self.remote.insert(spec.name, row)
        except RemoteError as exc:
            self._reconcile(spec, key, exc, undo=lambda: self._drop(spec, record))
            raise
        return self._accept(spec, key, stored)

    async def update(self, record):
        spec = collection_for(record)
        key = spec.key_of(record)
        previous = self.get(spec.name, key)
        self._swap(spec, key, record)
        changed = [
            item.name
            for item in fields(record)
            if getattr(record, item.name) != getattr(previous, item.name)
        ]
        self._log("update", spec.name, key, changed_fields=changed)
        if self.remote is None:
            return record
        row = to_row(record, drop_managed=True)
        try:
            stored = await self.remote.update(spec.name, spec.key, row)
        except RemoteError as exc:
            self._reconcile(spec, key, exc, undo=lambda: self._swap(spec, key, previous))
            raise
        return self._accept(spec, key, stored)

    async def delete(self, collection: str, record_id: str) -> None:
        spec = get_collection(collection)
        previous = self.get(collection, record_id)
        records = self.snapshot.collection(collection)
        index = records.index(previous)
        self._discard(spec, record_id)
        self._log("delete", collection, record_id)
        if self.remote is None:
            return

        def restore() -> None:
            current = list(self.snapshot.collection(collection))
            current.insert(min(index, len(current)), previous)
            self._set(collection, current)

        try:
            await self.remote.delete(collection, spec.key, record_id)
        except RemoteError as exc:
            self._reconcile(spec, record_id, exc, undo=restore)
            raise

    async def apply_change(self, event: ChangeEvent) -> bool:
        """Patch the snapshot for one change notification.

        Returns False when the notification could not be applied in place and
        a full refresh was done instead.
        """
        spec = COLLECTIONS.get(event.table or "")
        if spec is None or event.kind not in CHANGE_KINDS:
            return await self._fallback(event)

        if event.kind == "DELETE":
            key = spec.key_of(event.old_record)
            if not key:
                return await self._fallback(event)
            self._discard(spec, key)
        else:
            key = spec.key_of(event.record)
            if not key:
                return await self._fallback(event)
            try:
                for name in required_fields(spec.record_type):
                    rules.require(event.record.get(name), name)
                record = from_row(spec.record_type, event.record)
            except rules.ValidationError:
                return await self._fallback(event)
            if self._index_of(spec, key) is None:
                self._set(spec.name, [record, *self.snapshot.collection(spec.name)])
            else:
                self._swap(spec, key, record)
        self.pending.discard((spec.name, key))
        self._log("change", spec.name, key, detail=event.kind)
        return True

    async def _fallback(self, event: ChangeEvent) -> bool:
        self._log("change", event.table, detail=f"{event.kind or 'unknown'}; refetching")
        await self.refresh()
        return False

    def _accept(self, spec: Collection, key: str, stored: dict[str, Any]):
        saved = from_row(spec.record_type, stored)
        if self._index_of(spec, key) is not None:
            self._swap(spec, key, saved)
        self.pending.discard((spec.name, key))
        return saved

    def _reconcile(
        self, spec: Collection, key: str, exc: RemoteError, undo: Callable[[], None]
    ) -> None:
        if self.on_failure == FailurePolicy.MARK_PENDING:
            self.pending.add((spec.name, key))
            self._log("sync_pending", spec.name, key, detail=str(exc))
            raise SyncPendingError(str(exc), spec.name, key) from exc
        undo()
        self._log("rollback", spec.name, key, detail=str(exc))

    def _index_of(self, spec: Collection, key: str) -> int | None:
        for index, record in enumerate(self.snapshot.collection(spec.name)):
            if spec.key_of(record) == key:
                return index
        return None

    def _swap(self, spec: Collection, key: str, record) -> None:
        records = [
            record if spec.key_of(existing) == key else existing
            for existing in self.snapshot.collection(spec.name)
        ]
        self._set(spec.name, records)

    def _discard(self, spec: Collection, key: str) -> None:
        records = [
            existing
            for existing in self.snapshot.collection(spec.name)
            if spec.key_of(existing) != key
        ]
        self._set(spec.name, records)

    def _drop(self, spec: Collection, record) -> None:
        records = [
            existing
            for existing in self.snapshot.collection(spec.name)
            if existing is not record
        ]
        self._set(spec.name, records)

    def _set(self, collection: str, records: list[Any]) -> None:
        self.snapshot = self.snapshot.with_collection(collection, records)

    def _log(
        self,
        event_type: str,
        collection: str | None = None,
        record_id: str | None = None,
        changed_fields=None,
        detail: str | None = None,
    ) -> None:
        if self.logger is None:
            return
        self.logger.log(
            event_type=event_type,
            collection=collection,
            record_id=record_id,
            changed_fields=changed_fields,
            detail=detail,
        )

