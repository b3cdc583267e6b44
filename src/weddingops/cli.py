from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import typer
from dotenv import load_dotenv

from weddingops import __version__
from weddingops.adapters.supabase.auth import AuthError
from weddingops.adapters.supabase.client import RemoteError
from weddingops.config import (
    WorkspaceError,
    ensure_workspaces_dir,
    load_backend_config,
    load_workspace,
    set_current_workspace,
    workspace_config_path,
    write_workspace_config,
)
from weddingops.domain import rules
from weddingops.domain.models import Snapshot
from weddingops.domain.rules import ValidationError
from weddingops.runtime import open_runtime
from weddingops.services import (
    accounting,
    clients,
    dashboard,
    deliverables,
    payments,
    requests,
    tasks,
    transfer,
    vendors,
    weddings,
)
from weddingops.services.eventlog import EventLogger
from weddingops.services.transfer import TransferError
from weddingops.services.utils import format_date, format_money
from weddingops.store.demo import demo_snapshot
from weddingops.store.local import CacheError, save_snapshot
from weddingops.store.migrations import SchemaError, load_schema, render_postgres
from weddingops.store.snapshot import ChangeEvent, RecordNotFoundError, Store, SyncPendingError

load_dotenv()

app = typer.Typer(help="Wedding studio operations CLI")
workspace_app = typer.Typer(help="Workspace management")
auth_app = typer.Typer(help="Sign-in to the hosted backend")
client_app = typer.Typer(help="Clients")
event_app = typer.Typer(help="Weddings")
request_app = typer.Typer(help="Special requests")
payment_app = typer.Typer(help="Payments")
task_app = typer.Typer(help="Tasks")
deliverable_app = typer.Typer(help="Deliverables")
vendor_app = typer.Typer(help="Vendors")
export_app = typer.Typer(help="Exports")
import_app = typer.Typer(help="Imports")
schema_app = typer.Typer(help="Backend schema")

app.add_typer(workspace_app, name="workspace")
app.add_typer(auth_app, name="auth")
app.add_typer(client_app, name="client")
app.add_typer(event_app, name="event")
app.add_typer(request_app, name="request")
app.add_typer(payment_app, name="payment")
app.add_typer(task_app, name="task")
app.add_typer(deliverable_app, name="deliverable")
app.add_typer(vendor_app, name="vendor")
app.add_typer(export_app, name="export")
app.add_typer(import_app, name="import")
app.add_typer(schema_app, name="schema")

HANDLED_ERRORS = (
    AuthError,
    CacheError,
    RecordNotFoundError,
    RemoteError,
    SchemaError,
    TransferError,
    ValidationError,
    WorkspaceError,
)


@dataclass
class CliOptions:
    events: bool = True


options = CliOptions()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
    events: bool = typer.Option(
        True, "--events/--no-events", help="Write activity to the workspace event log."
    ),
) -> None:
    options.events = events


@app.command("init")
def init() -> None:
    """Initialize directories for workspaces and exports."""
    ensure_workspaces_dir()
    Path("exports").mkdir(exist_ok=True)
    typer.echo("Initialized weddingops directories.")


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(...),
    production_redirect: str | None = typer.Option(
        None, "--production-redirect", help="Sign-in redirect used when WEDDINGOPS_ENV=production."
    ),
    local_redirect: str | None = typer.Option(
        None, "--local-redirect", help="Sign-in redirect used everywhere else."
    ),
    use: bool = typer.Option(True, "--use/--no-use", help="Set as current workspace."),
    force: bool = typer.Option(
        False, "--force", help="Overwrite existing workspace config if it exists."
    ),
) -> None:
    config_path = workspace_config_path(name)
    if config_path.exists() and not force:
        raise typer.BadParameter(
            f"Workspace already exists: {config_path}. Use --force to overwrite."
        )
    config_path = write_workspace_config(name, production_redirect, local_redirect)
    if use:
        set_current_workspace(name)
    typer.echo(f"Workspace created: {config_path}")


@workspace_app.command("use")
def workspace_use(name: str = typer.Argument(...)) -> None:
    if not workspace_config_path(name).exists():
        raise typer.BadParameter(f"Workspace config not found: {workspace_config_path(name)}")
    set_current_workspace(name)
    typer.echo(f"Active workspace: {name}")


@auth_app.command("login")
def auth_login(email: str = typer.Argument(...)) -> None:
    """Email a one-time sign-in link."""
    ws = _load_workspace()

    async def run():
        async with _open(ws, load=False) as rt:
            return await rt.require_auth().request_link(email)

    redirect = _run(run())
    typer.echo(f"Sign-in link sent to {email.strip()} (redirects to {redirect}).")
    typer.echo("Run `weddingops auth verify <email> --code <code>` with the code from the email.")


@auth_app.command("verify")
def auth_verify(
    email: str = typer.Argument(...),
    code: str = typer.Option(..., "--code", help="One-time code from the sign-in email."),
) -> None:
    ws = _load_workspace()

    async def run():
        async with _open(ws, load=False) as rt:
            return await rt.require_auth().verify(email, code)

    session = _run(run())
    user = getattr(session, "user", None)
    typer.echo(f"Signed in as {getattr(user, 'email', None) or email.strip()}.")


@auth_app.command("status")
def auth_status() -> None:
    ws = _load_workspace()

    async def run():
        async with _open(ws, load=False) as rt:
            if rt.auth is None:
                return None, False
            return await rt.auth.session(), True

    session, connected = _run(run())
    if not connected:
        typer.echo("No backend configured; working on local data.")
    elif session is None:
        typer.echo("Signed out.")
    else:
        user = getattr(session, "user", None)
        typer.echo(f"Signed in as {getattr(user, 'email', None) or 'unknown user'}.")


@auth_app.command("logout")
def auth_logout() -> None:
    ws = _load_workspace()

    async def run():
        async with _open(ws, load=False) as rt:
            await rt.require_auth().sign_out()

    _run(run())
    typer.echo("Signed out.")


@client_app.command("add")
def client_add(
    first_name: str = typer.Option(..., "--first"),
    last_name: str = typer.Option(..., "--last"),
    email: str | None = typer.Option(None, "--email"),
    phone: str | None = typer.Option(None, "--phone"),
    instagram: str | None = typer.Option(None, "--instagram"),
    country: str | None = typer.Option(None, "--country"),
    timezone: str | None = typer.Option(None, "--timezone"),
    language: str | None = typer.Option(None, "--language"),
    whatsapp: str | None = typer.Option(None, "--whatsapp"),
    lead_source: str | None = typer.Option(None, "--source"),
    notes: str | None = typer.Option(None, "--notes"),
) -> None:
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            return await clients.add_client(
                rt.store,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                instagram=instagram,
                country=country,
                timezone=timezone,
                preferred_language=language,
                whatsapp=whatsapp,
                lead_source=lead_source,
                notes=notes,
            )

    client = _run(run())
    typer.echo(f"Created client: {client.client_id}")


@client_app.command("list")
def client_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    rows = clients.search_clients(snapshot.clients, query)
    if not rows:
        typer.echo("No results.")
        return
    for client in rows:
        typer.echo(
            f"{client.client_id} | {client.first_name} {client.last_name} | "
            f"{client.email or ''} | {client.phone or ''} | {client.instagram or ''}"
        )


@client_app.command("copy")
def client_copy(
    client_id: str = typer.Argument(...),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    """Print the client's one-line contact summary."""
    snapshot = _read_snapshot(offline)
    for client in snapshot.clients:
        if client.client_id == client_id:
            typer.echo(clients.copy_line(client))
            return
    _exit_with_error(f"clients {client_id} not found.")


@client_app.command("remove")
def client_remove(
    client_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    if not yes:
        typer.confirm(f"Delete client {client_id}?", abort=True)
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            await clients.remove_client(rt.store, client_id)

    _run(run())
    typer.echo(f"Deleted client: {client_id}")


@event_app.command("add")
def event_add(
    client_id: str = typer.Option(..., "--client"),
    event_date: str = typer.Option(..., "--date", help="YYYY-MM-DD"),
    status: str = typer.Option("lead", "--status"),
    partner: str | None = typer.Option(None, "--partner"),
    city: str | None = typer.Option(None, "--city"),
    venue: str | None = typer.Option(None, "--venue"),
    package: str | None = typer.Option(None, "--package"),
    hours: int | None = typer.Option(None, "--hours"),
    photographers: int | None = typer.Option(None, "--photographers"),
    videographers: int | None = typer.Option(None, "--videographers"),
    vendor_fee: str | None = typer.Option(None, "--vendor-fee", help="Hotel external vendor fee (USD)."),
    contract_url: str | None = typer.Option(None, "--contract"),
    deposit_due: str | None = typer.Option(None, "--deposit-due"),
    deposit_amount: str | None = typer.Option(None, "--deposit-amount"),
    balance_due: str | None = typer.Option(None, "--balance-due"),
    balance_amount: str | None = typer.Option(None, "--balance-amount"),
) -> None:
    ws = _load_workspace()
    try:
        parsed = {
            "event_date": rules.parse_date(event_date, "date"),
            "hotel_external_vendor_fee_usd": rules.parse_amount(vendor_fee, "vendor-fee"),
            "deposit_due_date": rules.parse_date(deposit_due, "deposit-due"),
            "deposit_amount_usd": rules.parse_amount(deposit_amount, "deposit-amount"),
            "balance_due_date": rules.parse_date(balance_due, "balance-due"),
            "balance_amount_usd": rules.parse_amount(balance_amount, "balance-amount"),
        }
    except ValidationError as exc:
        _exit_with_error(str(exc))

    async def run():
        async with _open(ws) as rt:
            return await weddings.add_event(
                rt.store,
                client_id=client_id,
                status=status,
                partner_name=partner,
                location_city=city,
                venue_name=venue,
                package_name=package,
                hours_coverage=hours,
                photographers=photographers,
                videographers=videographers,
                contract_url=contract_url,
                **parsed,
            )

    event = _run(run())
    typer.echo(f"Created wedding: {event.event_id}")


@event_app.command("list")
def event_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    rows = weddings.search_events(snapshot.events, query)
    if not rows:
        typer.echo("No results.")
        return
    for event in rows:
        typer.echo(
            f"{event.event_id} | {format_date(event.event_date)} | {event.venue_name or ''} | "
            f"{event.location_city or ''} | {event.package_name or ''} | {event.status or ''}"
        )


@request_app.command("add")
def request_add(
    event_id: str = typer.Option(..., "--event"),
    description: str = typer.Option(..., "--description"),
    category: str = typer.Option("photo", "--category"),
    priority: str = typer.Option("medium", "--priority"),
    owner_name: str | None = typer.Option(None, "--owner"),
    due: str | None = typer.Option(None, "--due"),
) -> None:
    ws = _load_workspace()
    due_date = _parse_date(due, "due")

    async def run():
        async with _open(ws) as rt:
            return await requests.add_request(
                rt.store,
                event_id=event_id,
                description=description,
                category=category,
                priority=priority,
                owner_name=owner_name,
                due_date=due_date,
            )

    request = _run(run())
    typer.echo(f"Created request: {request.request_id}")


@request_app.command("list")
def request_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    rows = requests.search_requests(snapshot.special_requests, query)
    if not rows:
        typer.echo("No results.")
        return
    for request in rows:
        typer.echo(
            f"{request.request_id} | {request.status} | {request.priority} | "
            f"{request.category} | {format_date(request.due_date)} | {request.description}"
        )


@request_app.command("toggle")
def request_toggle(request_id: str = typer.Argument(...)) -> None:
    """Flip a request between open and done."""
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            return await requests.toggle_request(rt.store, request_id)

    request = _run(run())
    typer.echo(f"{request.request_id} is now {request.status}")


@payment_app.command("add")
def payment_add(
    event_id: str = typer.Option(..., "--event"),
    amount: str = typer.Option("0", "--amount"),
    due: str | None = typer.Option(None, "--due", help="YYYY-MM-DD, defaults to today."),
    type_: str = typer.Option("deposit", "--type"),
    currency: str = typer.Option("USD", "--currency"),
    status: str = typer.Option("pending", "--status"),
    method: str | None = typer.Option(None, "--method"),
    invoice: str | None = typer.Option(None, "--invoice"),
    receipt_url: str | None = typer.Option(None, "--receipt"),
) -> None:
    ws = _load_workspace()
    due_date = _parse_date(due, "due")

    async def run():
        async with _open(ws) as rt:
            return await payments.add_payment(
                rt.store,
                event_id=event_id,
                amount=amount,
                due_date=due_date,
                type=type_,
                currency=currency,
                status=status,
                method=method,
                invoice_number=invoice,
                receipt_url=receipt_url,
            )

    payment = _run(run())
    typer.echo(f"Created payment: {payment.payment_id}")


@payment_app.command("list")
def payment_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    rows = payments.search_payments(snapshot.payments, query)
    if not rows:
        typer.echo("No results.")
        return
    for payment in rows:
        typer.echo(
            f"{payment.payment_id} | {payment.type} | {format_money(payment.amount, payment.currency)} | "
            f"due {format_date(payment.due_date)} | {payment.status} | "
            f"paid {format_date(payment.paid_date) or '-'} | {payment.invoice_number or ''}"
        )


@payment_app.command("paid")
def payment_paid(payment_id: str = typer.Argument(...)) -> None:
    """Mark a payment as paid today."""
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            return await payments.mark_paid(rt.store, payment_id)

    payment = _run(run())
    typer.echo(f"{payment.payment_id} paid on {format_date(payment.paid_date)}")


@payment_app.command("remove")
def payment_remove(
    payment_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    if not yes:
        typer.confirm(f"Delete payment {payment_id}?", abort=True)
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            await payments.remove_payment(rt.store, payment_id)

    _run(run())
    typer.echo(f"Deleted payment: {payment_id}")


@task_app.command("add")
def task_add(
    title: str = typer.Argument(...),
    event_id: str | None = typer.Option(None, "--event"),
    description: str | None = typer.Option(None, "--description"),
    assignee: str | None = typer.Option(None, "--assignee"),
    due: str | None = typer.Option(None, "--due"),
) -> None:
    ws = _load_workspace()
    due_date = _parse_date(due, "due")

    async def run():
        async with _open(ws) as rt:
            return await tasks.add_task(
                rt.store,
                title=title,
                event_id=event_id,
                description=description,
                assignee=assignee,
                due_date=due_date,
            )

    task = _run(run())
    typer.echo(f"Created task: {task.task_id}")


@task_app.command("list")
def task_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    pending, done = tasks.split_tasks(snapshot.tasks, query)
    for heading, rows in (("Pending", pending), ("Done", done)):
        typer.echo(f"{heading}:")
        if not rows:
            typer.echo("  (none)")
        for task in rows:
            typer.echo(
                f"  {task.task_id} | {task.status} | {task.title} | "
                f"{task.assignee or ''} | {format_date(task.due_date)}"
            )


@task_app.command("toggle")
def task_toggle(task_id: str = typer.Argument(...)) -> None:
    """Mark a task done, or reopen a done task."""
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            return await tasks.toggle_task(rt.store, task_id)

    task = _run(run())
    typer.echo(f"{task.task_id} is now {task.status}")


@deliverable_app.command("add")
def deliverable_add(
    event_id: str = typer.Option(..., "--event"),
    type_: str = typer.Option("sneak_peek", "--type"),
    due: str | None = typer.Option(None, "--due"),
    link: str | None = typer.Option(None, "--link"),
    revision_deadline: str | None = typer.Option(None, "--revision-deadline"),
) -> None:
    ws = _load_workspace()
    due_date = _parse_date(due, "due")
    revision_date = _parse_date(revision_deadline, "revision-deadline")

    async def run():
        async with _open(ws) as rt:
            return await deliverables.add_deliverable(
                rt.store,
                event_id=event_id,
                type=type_,
                due_date=due_date,
                link=link,
                revision_deadline=revision_date,
            )

    deliverable = _run(run())
    typer.echo(f"Created deliverable: {deliverable.deliverable_id}")


@deliverable_app.command("list")
def deliverable_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    rows = deliverables.search_deliverables(snapshot.deliverables, query)
    if not rows:
        typer.echo("No results.")
        return
    for deliverable in rows:
        typer.echo(
            f"{deliverable.deliverable_id} | {deliverable.event_id} | {deliverable.type} | "
            f"due {format_date(deliverable.due_date)} | "
            f"delivered {format_date(deliverable.delivered_date) or '-'} | {deliverable.link or ''}"
        )


@deliverable_app.command("delivered")
def deliverable_delivered(deliverable_id: str = typer.Argument(...)) -> None:
    """Stamp today's date as the delivery date."""
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            return await deliverables.mark_delivered(rt.store, deliverable_id)

    deliverable = _run(run())
    typer.echo(
        f"{deliverable.deliverable_id} delivered on {format_date(deliverable.delivered_date)}"
    )


@deliverable_app.command("remove")
def deliverable_remove(
    deliverable_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    if not yes:
        typer.confirm(f"Delete deliverable {deliverable_id}?", abort=True)
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            await deliverables.remove_deliverable(rt.store, deliverable_id)

    _run(run())
    typer.echo(f"Deleted deliverable: {deliverable_id}")


@vendor_app.command("add")
def vendor_add(
    event_id: str = typer.Option(..., "--event"),
    name: str = typer.Option(..., "--name"),
    type_: str = typer.Option("planner", "--type"),
    contact: str | None = typer.Option(None, "--contact"),
    notes: str | None = typer.Option(None, "--notes"),
) -> None:
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            return await vendors.add_vendor(
                rt.store, event_id=event_id, name=name, type=type_, contact=contact, notes=notes
            )

    vendor = _run(run())
    typer.echo(f"Created vendor: {vendor.vendor_id}")


@vendor_app.command("list")
def vendor_list(
    query: str | None = typer.Option(None, "--query", "-q"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    rows = vendors.search_vendors(snapshot.vendors, query)
    if not rows:
        typer.echo("No results.")
        return
    for vendor in rows:
        typer.echo(
            f"{vendor.vendor_id} | {vendor.event_id} | {vendor.type} | {vendor.name} | "
            f"{vendor.contact or ''}"
        )


@vendor_app.command("remove")
def vendor_remove(
    vendor_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    if not yes:
        typer.confirm(f"Delete vendor {vendor_id}?", abort=True)
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            await vendors.remove_vendor(rt.store, vendor_id)

    _run(run())
    typer.echo(f"Deleted vendor: {vendor_id}")


@app.command("dashboard")
def show_dashboard(
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    _print_dashboard(_read_snapshot(offline))


@app.command("accounting")
def show_accounting(
    month: str | None = typer.Option(None, "--month", help="YYYY-MM, defaults to this month."),
    currency: str = typer.Option("USD", "--currency"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    month = month or date.today().strftime("%Y-%m")
    try:
        rules.parse_month(month)
    except ValidationError as exc:
        _exit_with_error(str(exc))
    snapshot = _read_snapshot(offline)
    try:
        summary = accounting.monthly_summary(snapshot.payments, month, currency)
    except ValidationError as exc:
        _exit_with_error(str(exc))
    typer.echo(f"Month: {summary.month} ({summary.currency})")
    typer.echo(f"Due this month: {format_money(summary.due, currency)}")
    typer.echo(f"Paid this month: {format_money(summary.paid, currency)}")
    typer.echo(f"Pending: {format_money(summary.pending, currency)}")


@export_app.command("json")
def export_json(
    out: str | None = typer.Option(None, "--out", help="Defaults to exports/wedding-app-backup-<today>.json."),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    out_path = Path(out) if out else Path("exports") / transfer.backup_filename()
    snapshot = _read_snapshot(offline)
    transfer.export_json(snapshot, out_path)
    typer.echo(f"Exported JSON to {out_path}")


@export_app.command("excel")
def export_excel(
    out: str = typer.Option(..., "--out"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    transfer.export_excel(snapshot, Path(out))
    typer.echo(f"Exported Excel to {out}")


@export_app.command("csv")
def export_csv(
    out_dir: str = typer.Option(..., "--out-dir"),
    offline: bool = typer.Option(False, "--offline", help="Read the local cache only."),
) -> None:
    snapshot = _read_snapshot(offline)
    written = transfer.export_csv(snapshot, Path(out_dir))
    typer.echo(f"Exported {len(written)} CSV files to {out_dir}")


@import_app.command("json")
def import_json(path: str = typer.Argument(..., help="Backup file written by `export json`.")) -> None:
    """Replace local data with a backup. The backend is not changed."""
    ws = _load_workspace()
    try:
        snapshot = transfer.import_json(Path(path))
    except TransferError as exc:
        _exit_with_error(str(exc))
    _replace_local(ws, snapshot)
    typer.echo(f"Imported {path}")


@app.command("reset")
def reset(yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation.")) -> None:
    """Replace local data with the demo data."""
    if not yes:
        typer.confirm("This replaces local data with the demo data. Continue?", abort=True)
    ws = _load_workspace()
    _replace_local(ws, demo_snapshot())
    typer.echo("Local data reset to the demo data.")


@schema_app.command("sql")
def schema_sql(out: str | None = typer.Option(None, "--out", help="Write to a file instead of stdout.")) -> None:
    """Render the backend DDL (tables, triggers, row-level security, realtime)."""
    try:
        sql = render_postgres(load_schema())
    except SchemaError as exc:
        _exit_with_error(str(exc))
    if out:
        Path(out).write_text(sql, encoding="utf-8")
        typer.echo(f"Wrote schema to {out}")
    else:
        typer.echo(sql, nl=False)


@app.command("watch")
def watch(
    limit: int | None = typer.Option(None, "--limit", help="Stop after this many notifications."),
) -> None:
    """Follow backend changes and re-render the dashboard after each one."""
    ws = _load_workspace()

    async def run():
        async with _open(ws) as rt:
            if rt.remote is None:
                raise RemoteError("watch needs a backend. Set SUPABASE_URL and SUPABASE_ANON_KEY.")
            queue: asyncio.Queue = asyncio.Queue()
            await rt.remote.subscribe(queue.put_nowait)
            _print_dashboard(rt.store.snapshot)
            received = 0
            while limit is None or received < limit:
                payload = await queue.get()
                await rt.store.apply_change(ChangeEvent.from_payload(payload))
                rt.save_cache()
                received += 1
                typer.echo("")
                _print_dashboard(rt.store.snapshot)

    try:
        _run(run())
    except KeyboardInterrupt:
        typer.echo("Stopped watching.")


def _print_dashboard(snapshot: Snapshot) -> None:
    view = dashboard.build_dashboard(snapshot)
    typer.echo(f"Upcoming payments (next {dashboard.UPCOMING_WINDOW_DAYS} days):")
    if not view.upcoming_payments:
        typer.echo("  No upcoming payments.")
    for payment in view.upcoming_payments:
        typer.echo(
            f"  {payment.payment_id} | {payment.type.upper()} | "
            f"{format_money(payment.amount, payment.currency)} | due {format_date(payment.due_date)} | "
            f"{payment.status}"
        )
    typer.echo("Open special requests:")
    if not view.open_requests:
        typer.echo("  No open requests.")
    for request in view.open_requests:
        typer.echo(
            f"  {request.request_id} | {request.description} | priority {request.priority} | "
            f"due {format_date(request.due_date) or '-'}"
        )
    typer.echo("Upcoming weddings:")
    if not view.upcoming_events:
        typer.echo("  No upcoming weddings.")
    for event in view.upcoming_events:
        typer.echo(f"  {format_date(event.event_date)} | {event.venue_name or ''} | {event.status or ''}")
    totals = " | ".join(
        f"{currency} {format_money(amount, currency)}" for currency, amount in view.totals.items()
    )
    typer.echo(f"Clients: {view.client_count} | Weddings: {view.event_count} | {totals}")


def _read_snapshot(offline: bool) -> Snapshot:
    ws = _load_workspace()

    async def run():
        async with _open(ws, offline=offline) as rt:
            return rt.store.snapshot

    return _run(run())


def _replace_local(ws, snapshot: Snapshot) -> None:
    # The current cache is not read, so a corrupt one can still be replaced.
    store = Store(None, logger=_event_logger(ws, enabled=options.events))
    store.replace(snapshot)
    save_snapshot(ws.cache.snapshot_path, store.snapshot)


def _open(ws, *, offline: bool = False, load: bool = True):
    return open_runtime(
        ws,
        load_backend_config(),
        _event_logger(ws, enabled=options.events),
        offline=offline,
        load=load,
    )


def _run(coro):
    try:
        return asyncio.run(coro)
    except SyncPendingError as exc:
        _exit_with_error(
            f"{exc}\nKept locally as pending sync: {exc.collection} {exc.record_id}. "
            "It is dropped on the next refresh unless the backend accepts it."
        )
    except HANDLED_ERRORS as exc:
        _exit_with_error(str(exc))


def _parse_date(value: str | None, field: str) -> date | None:
    try:
        return rules.parse_date(value, field)
    except ValidationError as exc:
        _exit_with_error(str(exc))


def _load_workspace():
    try:
        return load_workspace()
    except WorkspaceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _exit_with_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _event_logger(ws, enabled: bool) -> EventLogger:
    return EventLogger(path=ws.events_path, workspace=ws.name, enabled=enabled)


if __name__ == "__main__":
    app()
