from __future__ import annotations

from enum import Enum


class EventStatus(str, Enum):
    LEAD = "lead"
    SIGNED = "signed"
    DELIVERED = "delivered"


class RequestCategory(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    OTHER = "other"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RequestStatus(str, Enum):
    OPEN = "open"
    DONE = "done"


class PaymentType(str, Enum):
    DEPOSIT = "deposit"
    BALANCE = "balance"
    OTHER = "other"


class Currency(str, Enum):
    USD = "USD"
    MXN = "MXN"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class TaskStatus(str, Enum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class DeliverableType(str, Enum):
    SNEAK_PEEK = "sneak_peek"
    SLIDESHOW = "slideshow"
    COMING_SOON = "coming_soon"
    HIGHLIGHT = "highlight"
    ALBUM = "album"
    PHOTOS = "photos"
    OTHER = "other"


class VendorType(str, Enum):
    PLANNER = "planner"
    DJ = "dj"
    MAKEUP = "makeup"
    VENUE = "venue"
    PHOTO = "photo"
    VIDEO = "video"
    OTHER = "other"


def values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
