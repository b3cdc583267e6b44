from __future__ import annotations

import json
from pathlib import Path

from weddingops.domain.documents import DocumentError, from_document, to_document
from weddingops.domain.models import Snapshot


class CacheError(RuntimeError):
    pass


def load_snapshot(path: Path) -> Snapshot | None:
    if not path.exists():
        return None
    try:
        return from_document(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, DocumentError) as exc:
        raise CacheError(
            f"Local snapshot {path} is unreadable ({exc}). Run `weddingops reset` to start over."
        ) from exc


def save_snapshot(path: Path, snapshot: Snapshot) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(to_document(snapshot), indent=2) + "\n", encoding="utf-8")
    tmp_path.replace(path)
