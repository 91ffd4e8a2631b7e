from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..models.booking_status import ActorRole, BookingStatus, CancellationReason, EventStatus
from ..utils.fields import read_field


@dataclass(frozen=True)
class StatusDisplay:
    label: str
    color: str
    icon: str
    variant: str = "default"


BOOKING_STATUS_DISPLAY: Mapping[BookingStatus, StatusDisplay] = MappingProxyType(
    {
        BookingStatus.APPLIED: StatusDisplay("Application Submitted", "bg-blue-100 text-blue-800", "📝"),
        BookingStatus.SELECTED: StatusDisplay(
            "Venue Selected You - Please Confirm", "bg-yellow-100 text-yellow-800", "⭐"
        ),
        BookingStatus.CONFIRMED: StatusDisplay("Booking Confirmed", "bg-green-100 text-green-800", "✅"),
        BookingStatus.CANCELLED: StatusDisplay("Cancelled", "bg-red-100 text-red-800", "❌", "secondary"),
        BookingStatus.COMPLETED: StatusDisplay("Event Completed", "bg-gray-100 text-gray-800", "🎉", "secondary"),
        BookingStatus.PENDING_CANCEL: StatusDisplay(
            "Cancel Requested - Awaiting Confirmation", "bg-orange-100 text-orange-800", "⏳"
        ),
    }
)

EVENT_STATUS_DISPLAY: Mapping[EventStatus, StatusDisplay] = MappingProxyType(
    {
        EventStatus.OPEN: StatusDisplay("Open", "blue", "calendar"),
        EventStatus.INVITED: StatusDisplay("Invited", "indigo", "mail"),
        EventStatus.APPLICATION_RECEIVED: StatusDisplay("Application Received", "purple", "inbox"),
        EventStatus.SELECTED: StatusDisplay("Musician Selected", "yellow", "star"),
        EventStatus.CONFIRMED: StatusDisplay("Confirmed", "green", "check-circle"),
        EventStatus.CANCEL_REQUESTED: StatusDisplay("Cancel Requested", "orange", "hourglass"),
        EventStatus.CANCELLED: StatusDisplay("Cancelled", "red", "x-circle", "secondary"),
        EventStatus.COMPLETED: StatusDisplay("Completed", "cyan", "party-popper", "secondary"),
    }
)

CANCELLATION_REASON_LABELS: Mapping[CancellationReason, str] = MappingProxyType(
    {
        CancellationReason.SCHEDULE_CONFLICT: "Schedule Conflict",
        CancellationReason.VENUE_CHANGED_MIND: "Venue Changed Mind",
        CancellationReason.MUSICIAN_CHANGED_MIND: "Musician Changed Mind",
        CancellationReason.EVENT_CANCELLED: "Event Cancelled",
        CancellationReason.PRICING_ISSUE: "Pricing Issue",
        CancellationReason.OTHER: "Other",
    }
)

for _table, _enum in (
    (BOOKING_STATUS_DISPLAY, BookingStatus),
    (EVENT_STATUS_DISPLAY, EventStatus),
    (CANCELLATION_REASON_LABELS, CancellationReason),
):
    _missing = set(_enum) - set(_table)
    if _missing:
        raise RuntimeError(f"{_enum.__name__} display table lacks {sorted(m.value for m in _missing)}")


def _fallback(raw: Any) -> StatusDisplay:
    text = str(getattr(raw, "value", raw) or "")
    label = text[:1].upper() + text[1:] if text else "Unknown"
    return StatusDisplay(label, "bg-gray-100 text-gray-800", "", "outline")


def format_cancellation_info(booking: Any) -> str:
    """``Cancelled by <party> - <reason>`` for cancelled bookings, else ``""``."""
    if BookingStatus.coerce(read_field(booking, "status")) != BookingStatus.CANCELLED:
        return ""
    role = ActorRole.coerce(read_field(booking, "cancel_confirmed_by_role"))
    cancelled_by = "Venue" if role == ActorRole.VENUE else "Musician"
    raw_reason = read_field(booking, "cancellation_reason")
    reason = CancellationReason.coerce(raw_reason)
    if reason is not None:
        reason_label = CANCELLATION_REASON_LABELS[reason]
    elif raw_reason:
        reason_label = str(raw_reason)
    else:
        reason_label = "No reason provided"
    return f"Cancelled by {cancelled_by} - {reason_label}"


def describe_booking_status(
    status: Any,
    booking: Optional[Any] = None,
    table: Mapping[BookingStatus, StatusDisplay] = BOOKING_STATUS_DISPLAY,
) -> StatusDisplay:
    known = BookingStatus.coerce(status)
    if known is None or known not in table:
        return _fallback(status)
    display = table[known]
    if known == BookingStatus.CANCELLED and booking is not None:
        info = format_cancellation_info(booking)
        if info:
            return StatusDisplay(info, display.color, display.icon, "secondary")
    return display


def describe_event_status(
    status: Any,
    table: Mapping[EventStatus, StatusDisplay] = EVENT_STATUS_DISPLAY,
) -> StatusDisplay:
    known = EventStatus.coerce(status)
    if known is None or known not in table:
        return _fallback(status)
    return table[known]
