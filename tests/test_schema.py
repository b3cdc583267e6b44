from weddingops.domain.collections import COLLECTION_NAMES, COLLECTIONS
from weddingops.store.migrations import load_schema, render_postgres


def test_schema_tables_match_collections() -> None:
    schema = load_schema()
    assert list(schema.tables) == list(COLLECTION_NAMES)
    for name, collection in COLLECTIONS.items():
        assert schema.tables[name]["primary_key"] == collection.key
        # owner is added to every table by the DDL renderer
        assert set(schema.field_names(name)) | {"owner"} == set(collection.field_names)


def test_schema_enums_match_domain_values() -> None:
    schema = load_schema()
    for name, collection in COLLECTIONS.items():
        fields = schema.tables[name]["fields"]
        for field, allowed in collection.enums.items():
            assert fields[field]["type"] == "enum"
            assert schema.enums[fields[field]["enum"]] == allowed


def test_render_postgres_isolates_rows_per_owner() -> None:
    sql = render_postgres(load_schema())
    assert "create table if not exists clients (" in sql
    assert "owner uuid references auth.users default auth.uid()" in sql
    for name in COLLECTION_NAMES:
        assert f"alter table {name} enable row level security;" in sql
        assert f"create policy tenant_isolation_{name} on {name} for all" in sql
    assert "using (owner = auth.uid()) with check (owner = auth.uid());" in sql
    assert "create trigger payments_updated before update on payments" in sql
    assert "special_requests_updated" not in sql
    assert sql.rstrip().endswith(
        "alter publication supabase_realtime add table "
        "clients, events, special_requests, payments, tasks, deliverables, vendors;"
    )


def test_render_postgres_checks_enum_values() -> None:
    sql = render_postgres(load_schema())
    assert "status text check (status in ('pending','paid','overdue')) default 'pending'" in sql
