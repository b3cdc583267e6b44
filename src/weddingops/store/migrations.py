from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "resources" / "schema" / "canonical.yaml"

TYPE_MAP = {
    "text": "text",
    "number": "numeric",
    "int": "int",
    "date": "date",
    "datetime": "timestamptz",
    "enum": "text",
}

ON_DELETE = {"cascade", "set null", "restrict"}


@dataclass(frozen=True)
class Schema:
    version: int
    enums: dict[str, list[str]]
    tables: dict[str, Any]

    def field_names(self, table_name: str) -> list[str]:
        table_def = self.tables[table_name]
        return list(table_def.get("fields", {})) + list(table_def.get("timestamps") or [])


class SchemaError(RuntimeError):
    pass


def load_schema(schema_path: Path = SCHEMA_PATH) -> Schema:
    data = yaml.safe_load(schema_path.read_text(encoding="utf-8")) or {}
    version = data.get("version", 1)
    enums = data.get("enums", {})
    tables = data.get("tables", {})
    if not isinstance(tables, dict):
        raise SchemaError("Schema tables must be a mapping.")
    if not isinstance(enums, dict):
        raise SchemaError("Schema enums must be a mapping.")
    return Schema(version=version, enums=enums, tables=tables)


def render_postgres(schema: Schema) -> str:
    """Render the backend DDL: tables, update triggers, row-level security, realtime."""
    statements: list[str] = ["create extension if not exists pgcrypto;"]

    for table_name, table_def in schema.tables.items():
        statements.append(_create_table(schema, table_name, table_def))
        statements.extend(_create_indexes(table_name, table_def))

    statements.append(
        "create or replace function set_updated_at() returns trigger as $$ "
        "begin new.updated_at = now(); return new; end; $$ language plpgsql;"
    )
    for table_name, table_def in schema.tables.items():
        if "updated_at" in (table_def.get("timestamps") or []):
            statements.append(f"drop trigger if exists {table_name}_updated on {table_name};")
            statements.append(
                f"create trigger {table_name}_updated before update on {table_name} "
                "for each row execute function set_updated_at();"
            )

    for table_name in schema.tables:
        statements.append(f"alter table {table_name} enable row level security;")
        policy = f"tenant_isolation_{table_name}"
        statements.append(f"drop policy if exists {policy} on {table_name};")
        statements.append(
            f"create policy {policy} on {table_name} for all "
            "using (owner = auth.uid()) with check (owner = auth.uid());"
        )

    statements.append(
        "alter publication supabase_realtime add table " + ", ".join(schema.tables) + ";"
    )
    return "\n".join(statements) + "\n"


def _create_table(schema: Schema, table_name: str, table_def: dict[str, Any]) -> str:
    fields = table_def.get("fields")
    if not isinstance(fields, dict):
        raise SchemaError(f"Table {table_name} fields must be a mapping.")

    primary_key = table_def.get("primary_key")
    if primary_key not in fields:
        raise SchemaError(f"Table {table_name} primary_key must name one of its fields.")

    columns = [
        _column_sql(schema, table_name, field_name, spec, primary_key)
        for field_name, spec in fields.items()
    ]
    columns.append("owner uuid references auth.users default auth.uid()")
    for column in table_def.get("timestamps") or []:
        columns.append(f"{column} timestamptz default now()")

    body = ",\n  ".join(columns)
    return f"create table if not exists {table_name} (\n  {body}\n);"


def _column_sql(
    schema: Schema, table_name: str, field_name: str, spec: dict[str, Any], primary_key: str
) -> str:
    if not isinstance(spec, dict):
        raise SchemaError(f"Field {table_name}.{field_name} must be a mapping.")
    field_type = spec.get("type")
    if field_type not in TYPE_MAP:
        raise SchemaError(f"Unknown field type {field_type} for {field_name}.")
    parts = [field_name, TYPE_MAP[field_type]]
    if field_name == primary_key:
        parts.append("primary key")
    elif spec.get("required"):
        parts.append("not null")

    ref = spec.get("ref")
    if ref:
        ref_table, ref_field = ref.split(".")
        parts.append(f"references {ref_table}({ref_field})")
        on_delete = spec.get("on_delete")
        if on_delete:
            if on_delete not in ON_DELETE:
                raise SchemaError(f"Unknown on_delete {on_delete} for {field_name}.")
            parts.append(f"on delete {on_delete}")

    if field_type == "enum":
        allowed = schema.enums.get(spec.get("enum"))
        if not allowed:
            raise SchemaError(f"Unknown enum {spec.get('enum')} for {field_name}.")
        values = ",".join(f"'{value}'" for value in allowed)
        parts.append(f"check ({field_name} in ({values}))")

    default = spec.get("default")
    if default is not None:
        parts.append(f"default '{default}'")
    return " ".join(parts)


def _create_indexes(table_name: str, table_def: dict[str, Any]) -> list[str]:
    statements = []
    for index_fields in table_def.get("indexes") or []:
        if not isinstance(index_fields, list) or not index_fields:
            continue
        idx_name = f"idx_{table_name}_{'_'.join(index_fields)}"
        cols = ", ".join(index_fields)
        statements.append(f"create index if not exists {idx_name} on {table_name} ({cols});")
    return statements
