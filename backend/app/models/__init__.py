from .user import User
from .musician import Musician
from .venue import Venue
from .event import Event
from .booking import Booking
from .event_history import EventHistory
from .booking_status import BookingStatus, EventStatus, CancellationReason, ActorRole, ChangeType

__all__ = [
    "User",
    "Musician",
    "Venue",
    "Event",
    "Booking",
    "EventHistory",
    "BookingStatus",
    "EventStatus",
    "CancellationReason",
    "ActorRole",
    "ChangeType",
]
