"""Legal booking states and transitions.

Cancellation is two-phase: either party first moves a live booking to
``pending_cancel`` and the booking only becomes ``cancelled`` once that
request is confirmed. ``cancelled`` and ``completed`` are terminal.

Nothing here persists anything. Callers check ``can_transition_to`` before
asking the persistence layer to change a status; a ``False`` answer is the
rejection, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..models.booking_status import ActorRole, BookingStatus

_S = BookingStatus

ALLOWED_STATUS_TRANSITIONS: Mapping[BookingStatus, frozenset[BookingStatus]] = MappingProxyType(
    {
        _S.APPLIED: frozenset({_S.SELECTED, _S.CANCELLED, _S.PENDING_CANCEL}),
        _S.SELECTED: frozenset({_S.CONFIRMED, _S.CANCELLED, _S.PENDING_CANCEL}),
        _S.CONFIRMED: frozenset({_S.COMPLETED, _S.CANCELLED, _S.PENDING_CANCEL}),
        _S.PENDING_CANCEL: frozenset({_S.CANCELLED}),
        _S.CANCELLED: frozenset(),
        _S.COMPLETED: frozenset(),
    }
)

_missing = set(BookingStatus) - set(ALLOWED_STATUS_TRANSITIONS)
if _missing:
    raise RuntimeError(f"Transition table lacks rows for {sorted(s.value for s in _missing)}")


@dataclass(frozen=True)
class BookingAction:
    target: BookingStatus
    label: str


def can_transition_to(current: Any, target: Any) -> bool:
    """Return True when ``current -> target`` is listed in the transition table."""
    current_status = BookingStatus.coerce(current)
    target_status = BookingStatus.coerce(target)
    if current_status is None or target_status is None:
        return False
    return target_status in ALLOWED_STATUS_TRANSITIONS[current_status]


def get_next_possible_statuses(current: Any) -> frozenset[BookingStatus]:
    current_status = BookingStatus.coerce(current)
    if current_status is None:
        return frozenset()
    return ALLOWED_STATUS_TRANSITIONS[current_status]


def is_terminal(status: Any) -> bool:
    current_status = BookingStatus.coerce(status)
    return current_status is not None and not ALLOWED_STATUS_TRANSITIONS[current_status]


def available_actions(current: Any, role: Optional[ActorRole]) -> list[BookingAction]:
    """Return the actions a party may take on a booking in ``current``.

    The venue selects applicants, the musician confirms a selection, and
    either side may complete a confirmed booking or walk the two-phase
    cancellation path. Parties that are neither side get nothing.
    """
    current_status = BookingStatus.coerce(current)
    actor = ActorRole.coerce(role)
    if current_status is None or actor is None:
        return []

    actions: list[BookingAction] = []
    if current_status == _S.APPLIED and actor == ActorRole.VENUE:
        actions.append(BookingAction(_S.SELECTED, "Select This Musician"))
    if current_status == _S.SELECTED and actor == ActorRole.MUSICIAN:
        actions.append(BookingAction(_S.CONFIRMED, "Confirm Booking"))
    if current_status == _S.CONFIRMED:
        actions.append(BookingAction(_S.COMPLETED, "Mark as Completed"))
    if current_status == _S.PENDING_CANCEL:
        actions.append(BookingAction(_S.CANCELLED, "Confirm Cancel"))
    elif not is_terminal(current_status):
        actions.append(BookingAction(_S.PENDING_CANCEL, "Cancel Booking"))

    # Offered actions never bypass the table
    return [a for a in actions if can_transition_to(current_status, a.target)]
