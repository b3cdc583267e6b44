from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from weddingops.domain.models import (
    Client,
    Deliverable,
    Event,
    Payment,
    Snapshot,
    SpecialRequest,
    Task,
    Vendor,
)


def demo_snapshot(today: date | None = None) -> Snapshot:
    """Built-in sample data used when no backend is configured."""
    today = today or date.today()
    wedding_day = date(2025, 12, 12)
    return Snapshot(
        clients=[
            Client(
                client_id="C-0001",
                first_name="Alex",
                last_name="Johnson",
                email="alex@email.com",
                phone="+1 555 555 5555",
                country="USA",
                timezone="America/Chicago",
                preferred_language="en",
                whatsapp="yes",
                instagram="@alexandmaria",
                lead_source="WeddingWire",
                notes="Prefers WhatsApp.",
            )
        ],
        events=[
            Event(
                event_id="E-0001",
                client_id="C-0001",
                partner_name="Maria Lopez",
                event_date=wedding_day,
                location_city="Playa del Carmen",
                venue_name="Hotel X",
                hotel_external_vendor_fee_usd=Decimal("250"),
                package_name="Elegance Photo + Video",
                hours_coverage=8,
                photographers=1,
                videographers=1,
                status="signed",
                contract_url="https://example.com/contract/123",
                deposit_due_date=today + timedelta(days=11),
                deposit_amount_usd=Decimal("1200"),
                balance_due_date=wedding_day,
                balance_amount_usd=Decimal("1800"),
            )
        ],
        special_requests=[
            SpecialRequest(
                request_id="R-0001",
                event_id="E-0001",
                category="photo",
                description="Portraits with grandma before the ceremony; rings on seashells.",
                priority="high",
                owner_name="Clem",
                due_date=wedding_day,
                status="open",
                created_at=today.isoformat(),
            )
        ],
        payments=[
            Payment(
                payment_id="P-0001",
                event_id="E-0001",
                type="deposit",
                currency="USD",
                amount=Decimal("1200"),
                due_date=today + timedelta(days=11),
                method="wire",
                invoice_number="INV-2025-001",
                receipt_url="",
                status="pending",
            )
        ],
        tasks=[
            Task(
                task_id="T-0001",
                event_id="E-0001",
                title="Review timeline with planner",
                description="Confirm getting-ready, first look and ceremony times.",
                assignee="Clem",
                due_date=today + timedelta(days=5),
                status="todo",
            )
        ],
        deliverables=[
            Deliverable(
                deliverable_id="D-0001",
                event_id="E-0001",
                type="sneak_peek",
                due_date=wedding_day + timedelta(days=7),
                link="",
                revision_deadline=wedding_day + timedelta(days=60),
            )
        ],
        vendors=[
            Vendor(
                vendor_id="V-0001",
                event_id="E-0001",
                type="planner",
                name="Ana Planner",
                contact="+52 1 999 000 0000",
                notes="Very punctual, coordinates with the DJ.",
            )
        ],
    )
