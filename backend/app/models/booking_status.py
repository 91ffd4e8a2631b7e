import enum
from typing import Any, Optional


class _CoercibleEnum(str, enum.Enum):
    @classmethod
    def coerce(cls, value: Any) -> Optional["_CoercibleEnum"]:
        """Return the member for ``value`` or ``None``; never raises."""
        if isinstance(value, cls):
            return value
        if isinstance(value, enum.Enum):
            value = value.value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class BookingStatus(_CoercibleEnum):
    """Status of one musician's booking against one event."""
    APPLIED = "applied"
    SELECTED = "selected"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Cancellation requested by either party, awaiting confirmation
    PENDING_CANCEL = "pending_cancel"


class EventStatus(_CoercibleEnum):
    """Status shown for an event, derived from its bookings."""
    OPEN = "open"
    INVITED = "invited"
    APPLICATION_RECEIVED = "application_received"
    SELECTED = "selected"
    CONFIRMED = "confirmed"
    CANCEL_REQUESTED = "cancel_requested"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CancellationReason(_CoercibleEnum):
    SCHEDULE_CONFLICT = "schedule_conflict"
    VENUE_CHANGED_MIND = "venue_changed_mind"
    MUSICIAN_CHANGED_MIND = "musician_changed_mind"
    EVENT_CANCELLED = "event_cancelled"
    PRICING_ISSUE = "pricing_issue"
    OTHER = "other"


class ActorRole(_CoercibleEnum):
    """Which side of a booking performed an action."""
    VENUE = "venue"
    MUSICIAN = "musician"


class ChangeType(_CoercibleEnum):
    """Kind of entry in an event's history."""
    EVENT_CREATED = "event_created"
    EVENT_UPDATED = "event_updated"
    EVENT_STATUS = "event_status"
    MUSICIAN_INVITED = "musician_invited"
    BOOKING_CREATED = "booking_created"
    BOOKING_STATUS = "booking_status"
