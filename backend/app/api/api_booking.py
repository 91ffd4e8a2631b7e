# backend/app/api/api_booking.py

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import crud
from ..core.config import settings
from ..crud import InvalidTransitionError, role_for_booking
from ..database import get_db
from ..models import Booking, Musician, User
from ..schemas.booking import (
    BookingActionResponse,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    NextStatusesResponse,
)
from ..services.booking_lifecycle import (
    available_actions,
    can_transition_to,
    get_next_possible_statuses,
)
from ..services.filter_engine import ALL, FilterState, filter_items
from ..services.filter_presets import my_bookings_spec
from ..services.status_display import describe_booking_status
from ..utils import error_response, transition_error
from .dependencies import get_current_musician, get_current_user

router = APIRouter(tags=["bookings"])
logger = logging.getLogger(__name__)
# ‣ Note: no prefix here.  main.py already does:
#     app.include_router(router, prefix="/api/v1/bookings", …)


def booking_response(booking: Booking) -> BookingResponse:
    data = BookingResponse.model_validate(booking)
    return data.model_copy(update={"status_label": describe_booking_status(booking.status, booking).label})


def _load_booking(db: Session, booking_id: int) -> Booking:
    booking = crud.booking.get_booking(db, booking_id)
    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found."
        )
    return booking


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def apply_to_event(
    *,
    db: Session = Depends(get_db),
    booking_in: BookingCreate,
    current_musician: Musician = Depends(get_current_musician),
) -> Any:
    """
    Apply to an event.  The booking starts in ``applied``.
    """
    event = crud.crud_event.get_event(db, booking_in.event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Event not found."
        )
    try:
        booking = crud.booking.create_application(
            db,
            event=event,
            musician=current_musician,
            proposed_rate=booking_in.proposed_rate,
            pitch=booking_in.musician_pitch,
        )
    except ValueError as exc:
        raise error_response(str(exc), {"event_id": "already_applied"})
    return booking_response(_load_booking(db, booking.id))


@router.get("/my-bookings", response_model=List[BookingResponse])
def read_my_bookings(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: str = Query(ALL, alias="status", description="Booking status or 'all'"),
    search: str = Query("", description="Matches event title, musician, venue or pitch"),
) -> Any:
    """Return bookings on the caller's musician and venue profiles."""
    limit = settings.MY_BOOKINGS_LIMIT
    seen: dict[int, Booking] = {}
    if current_user.musician_profile is not None:
        for b in crud.booking.get_bookings_by_musician(db, current_user.musician_profile.id, limit=limit):
            seen.setdefault(b.id, b)
    if current_user.venue_profile is not None:
        for b in crud.booking.get_bookings_by_venue(db, current_user.venue_profile.id, limit=limit):
            seen.setdefault(b.id, b)

    bookings = sorted(seen.values(), key=lambda b: b.id, reverse=True)
    state = FilterState(status=status_filter.strip().lower() or ALL, search=search.strip())
    return [booking_response(b) for b in filter_items(bookings, my_bookings_spec(), state)]


@router.get("/{booking_id}/next-statuses", response_model=NextStatusesResponse)
def read_next_statuses(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    booking = _load_booking(db, booking_id)
    role = role_for_booking(current_user, booking)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a party to this booking.",
        )
    return NextStatusesResponse(
        booking_id=booking.id,
        current=booking.status,
        next_statuses=sorted(get_next_possible_statuses(booking.status), key=lambda s: s.value),
        actions=[
            BookingActionResponse(status=a.target, label=a.label)
            for a in available_actions(booking.status, role)
        ],
    )


@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    *,
    db: Session = Depends(get_db),
    booking_id: int,
    status_update: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Move a booking to a new status.  Either party may call this, but only
    for transitions offered to their side of the booking.
    """
    booking = _load_booking(db, booking_id)
    role = role_for_booking(current_user, booking)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Booking not found or you lack permission to update it.",
        )

    target = status_update.status
    if not can_transition_to(booking.status, target):
        raise transition_error(booking.status, target, get_next_possible_statuses(booking.status))

    offered = {a.target for a in available_actions(booking.status, role)}
    if target not in offered:
        raise error_response(
            "Status change not available",
            {"status": f"{role.value} cannot move booking to {target.value} from here"},
        )

    try:
        booking = crud.booking.transition_booking(
            db,
            booking,
            target,
            actor_id=current_user.id,
            actor_role=role,
            cancellation_reason=status_update.cancellation_reason,
        )
    except InvalidTransitionError as exc:
        # Another request moved the booking first
        raise transition_error(exc.current, exc.target, get_next_possible_statuses(exc.current))
    return booking_response(booking)
