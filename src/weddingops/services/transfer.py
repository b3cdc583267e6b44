from __future__ import annotations

import csv
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from openpyxl import Workbook

from weddingops.domain.collections import COLLECTION_NAMES, get_collection
from weddingops.domain.documents import DocumentError, from_document, to_document
from weddingops.domain.models import Snapshot


class TransferError(RuntimeError):
    pass


def backup_filename(today: date | None = None) -> str:
    return f"wedding-app-backup-{(today or date.today()).isoformat()}.json"


def export_json(snapshot: Snapshot, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(to_document(snapshot), indent=2) + "\n", encoding="utf-8")
    return out_path


def import_json(in_path: Path) -> Snapshot:
    """Read a backup file. Nothing is returned unless the whole file is valid."""
    try:
        text = in_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TransferError(f"Could not read {in_path}: {exc.strerror or exc}") from exc
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TransferError(
            f"{in_path} is not valid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}"
        ) from exc
    try:
        return from_document(document)
    except DocumentError as exc:
        raise TransferError(f"Invalid backup {in_path}: {exc}") from exc


def export_excel(snapshot: Snapshot, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    wb.remove(wb.active)
    document = to_document(snapshot)
    for name in COLLECTION_NAMES:
        ws = wb.create_sheet(title=name)
        headers = get_collection(name).field_names
        ws.append(headers)
        for row in document[name]:
            ws.append([_sheet_value(header, row.get(header)) for header in headers])
    wb.save(out_path)
    return out_path


def export_csv(snapshot: Snapshot, out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    document = to_document(snapshot)
    written = []
    for name in COLLECTION_NAMES:
        headers = get_collection(name).field_names
        csv_path = out_dir / f"{name}.csv"
        with csv_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            for row in document[name]:
                writer.writerow([_cell(row.get(header)) for header in headers])
        written.append(csv_path)
    return written


def _cell(value: Any) -> Any:
    return "" if value is None else value


def _sheet_value(header: str, value: Any) -> Any:
    # fractional amounts are stored as strings in documents
    if header == "amount" and isinstance(value, str):
        return Decimal(value)
    return value
