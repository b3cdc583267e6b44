"""Conversion between a Snapshot and its JSON document shape.

The document is one object with seven arrays, keyed by collection name, whose
items use the backend column names. Reading a document validates it fully
before anything is built, so a bad file never yields a partial snapshot.
"""

from __future__ import annotations

from typing import Any

from weddingops.domain import rules
from weddingops.domain.collections import COLLECTION_NAMES, Collection, get_collection
from weddingops.domain.models import Snapshot, from_row, required_fields, to_row


class DocumentError(ValueError):
    pass


def to_document(snapshot: Snapshot) -> dict[str, list[dict[str, Any]]]:
    return {
        name: [to_row(record) for record in snapshot.collection(name)]
        for name in COLLECTION_NAMES
    }


def from_document(document: Any) -> Snapshot:
    if not isinstance(document, dict):
        raise DocumentError("Document must be an object with one array per collection.")
    unknown = sorted(set(document) - set(COLLECTION_NAMES))
    if unknown:
        raise DocumentError(f"Unknown collections: {', '.join(unknown)}")
    missing = [name for name in COLLECTION_NAMES if name not in document]
    if missing:
        raise DocumentError(f"Missing collections: {', '.join(missing)}")

    collections: dict[str, list[Any]] = {}
    for name in COLLECTION_NAMES:
        items = document[name]
        if not isinstance(items, list):
            raise DocumentError(f"{name} must be an array.")
        spec = get_collection(name)
        records = []
        seen: set[str] = set()
        for index, item in enumerate(items):
            where = f"{name}[{index}]"
            record = _read_record(spec, item, where)
            key = spec.key_of(record)
            if key in seen:
                raise DocumentError(f"{where}: duplicate {spec.key} {key}")
            seen.add(key)
            records.append(record)
        collections[name] = records
    return Snapshot(**collections)


def _read_record(spec: Collection, item: Any, where: str):
    if not isinstance(item, dict):
        raise DocumentError(f"{where} must be an object.")
    unknown = sorted(set(item) - set(spec.field_names))
    if unknown:
        raise DocumentError(f"{where}: unknown fields: {', '.join(unknown)}")
    try:
        for field in required_fields(spec.record_type):
            rules.require(item.get(field), field)
        for field, allowed in spec.enums.items():
            rules.validate_enum(item.get(field), allowed, field)
        return from_row(spec.record_type, item)
    except rules.ValidationError as exc:
        raise DocumentError(f"{where}: {exc}") from exc
