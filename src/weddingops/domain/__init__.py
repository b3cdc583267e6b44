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
from weddingops.domain.rules import ValidationError

__all__ = [
    "Client",
    "Deliverable",
    "Event",
    "Payment",
    "Snapshot",
    "SpecialRequest",
    "Task",
    "Vendor",
    "ValidationError",
]
