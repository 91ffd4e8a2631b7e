"""Reduce an event's bookings to the single status shown for the event.

Precedence, highest first:

1. ``completed``        any booking completed
2. ``cancelled``        any booking cancelled and none confirmed
3. ``cancel_requested`` any booking pending cancellation
4. ``confirmed``        any booking confirmed
5. ``selected``         any booking selected
6. ``application_received`` any booking applied
7. ``invited``          the event's stored status is ``invited``
8. the event's stored status (``open`` when empty or unrecognised)

Only membership per status matters, so the result does not depend on the
order of the bookings. A confirmed booking keeps an event confirmed even if
another musician cancelled; selected/applied bookings do not get that
exemption, so ``[cancelled, selected]`` derives to ``cancelled``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..core.config import settings
from ..models.booking_status import BookingStatus, EventStatus
from ..utils.fields import read_field, read_path

logger = logging.getLogger(__name__)

# (booking status that must be present, resulting event status)
_PRECEDENCE: tuple[tuple[BookingStatus, EventStatus], ...] = (
    (BookingStatus.COMPLETED, EventStatus.COMPLETED),
    (BookingStatus.CANCELLED, EventStatus.CANCELLED),
    (BookingStatus.PENDING_CANCEL, EventStatus.CANCEL_REQUESTED),
    (BookingStatus.CONFIRMED, EventStatus.CONFIRMED),
    (BookingStatus.SELECTED, EventStatus.SELECTED),
    (BookingStatus.APPLIED, EventStatus.APPLICATION_RECEIVED),
)

_unranked = set(BookingStatus) - {b for b, _ in _PRECEDENCE}
if _unranked:
    raise RuntimeError(f"Derivation precedence lacks {sorted(s.value for s in _unranked)}")

PAST_EVENT_STATUSES = frozenset({EventStatus.COMPLETED, EventStatus.CANCELLED})
# Statuses a venue may store on an event; everything else is derived
STORED_EVENT_STATUSES = frozenset({EventStatus.OPEN, EventStatus.INVITED})


@dataclass
class EventView:
    """An event paired with its derived status and its own bookings."""

    event: Any
    event_status: EventStatus
    bookings: list = field(default_factory=list)

    @property
    def id(self) -> Any:
        return read_field(self.event, "id")

    def __getattr__(self, name: str) -> Any:
        # Fall through to the wrapped record so filters can address
        # ``title``, ``date``, ``venue.name`` and friends directly.
        if name.startswith("_"):
            raise AttributeError(name)
        return read_field(self.__dict__.get("event"), name)


def _as_key(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        # A list or mapping cannot name an event
        return None
    return value


def _booking_event_id(booking: Any) -> Any:
    event_id = read_field(booking, "event_id")
    if event_id is None:
        event_id = read_path(booking, "event.id")
    return _as_key(event_id)


def _stored_status(event: Any) -> EventStatus:
    raw = read_field(event, "status")
    if raw is None or raw == "":
        return EventStatus.coerce(settings.DEFAULT_EVENT_STATUS) or EventStatus.OPEN
    stored = EventStatus.coerce(raw)
    if stored is None:
        logger.debug(
            "Event id=%s has unrecognised stored status %r; showing open",
            read_field(event, "id"),
            raw,
        )
        return EventStatus.OPEN
    return stored


def partition_bookings(bookings: Iterable[Any]) -> dict[BookingStatus, list]:
    """Group bookings by recognised status; unknown statuses are dropped."""
    groups: dict[BookingStatus, list] = defaultdict(list)
    for booking in bookings or ():
        status = BookingStatus.coerce(read_field(booking, "status"))
        if status is not None:
            groups[status].append(booking)
    return dict(groups)


def _resolve(stored: EventStatus, present: set[BookingStatus]) -> EventStatus:
    for booking_status, event_status in _PRECEDENCE:
        if booking_status not in present:
            continue
        if booking_status == BookingStatus.CANCELLED and BookingStatus.CONFIRMED in present:
            continue
        return event_status
    return stored


def derive_event_status(event: Any, bookings: Iterable[Any]) -> EventStatus:
    """Return the status to display for ``event``.

    ``bookings`` may be the full booking collection; only bookings whose
    event id matches ``event`` are considered. Never raises on bad data.
    """
    event_id = _as_key(read_field(event, "id"))
    own = []
    if event_id is not None:
        own = [b for b in bookings or () if _booking_event_id(b) == event_id]
    return _resolve(_stored_status(event), set(partition_bookings(own)))


def attach_derived_statuses(events: Iterable[Any], bookings: Iterable[Any]) -> list[EventView]:
    """Derive the status of every event in one pass over ``bookings``."""
    by_event: dict[Any, list] = defaultdict(list)
    for booking in bookings or ():
        by_event[_booking_event_id(booking)].append(booking)

    views: list[EventView] = []
    for event in events or ():
        event_id = _as_key(read_field(event, "id"))
        own = by_event.get(event_id, []) if event_id is not None else []
        status = _resolve(_stored_status(event), set(partition_bookings(own)))
        views.append(EventView(event=event, event_status=status, bookings=list(own)))
    return views


def is_past_status(status: Any) -> bool:
    return EventStatus.coerce(status) in PAST_EVENT_STATUSES
