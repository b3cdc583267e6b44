from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from weddingops.services.utils import utc_now_iso


@dataclass
class EventLogger:
    path: Path
    workspace: str
    enabled: bool = True

    def log(
        self,
        *,
        event_type: str,
        collection: str | None = None,
        record_id: str | None = None,
        changed_fields: Iterable[str] | None = None,
        detail: str | None = None,
    ) -> None:
        if not self.enabled:
            return
        payload = {
            "ts": utc_now_iso(),
            "workspace": self.workspace,
            "event_type": event_type,
            "collection": collection,
            "record_id": record_id,
            "changed_fields": list(changed_fields or []),
        }
        if detail:
            payload["detail"] = detail
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")
