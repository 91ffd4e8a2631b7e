# backend/app/api/api_event.py

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import crud
from ..database import get_db
from ..services.event_status import EventView, attach_derived_statuses, is_past_status
from ..services.filter_engine import FilterSpec, FilterState, UnknownFacetError, apply_filters
from ..services.filter_presets import event_history_spec, venue_events_spec
from ..services.status_display import describe_event_status
from ..models import Musician, User, Venue
from ..schemas.event import (
    EventCreate,
    EventHistoryResponse,
    EventListResponse,
    EventResponse,
    EventUpdate,
    InvitationCreate,
)
from ..utils import error_response
from .api_booking import booking_response
from .dependencies import get_current_user, get_current_venue

router = APIRouter(tags=["events"])
logger = logging.getLogger(__name__)


def event_response(view: EventView) -> EventResponse:
    data = EventResponse.model_validate(view)
    return data.model_copy(
        update={
            "status_label": describe_event_status(view.event_status).label,
            "bookings": [booking_response(b) for b in view.bookings],
        }
    )


def _load_views(db: Session, venue_id: Optional[int] = None) -> List[EventView]:
    if venue_id is not None:
        events = crud.crud_event.get_events_by_venue(db, venue_id)
    else:
        events = crud.crud_event.list_events(db)
    bookings = crud.booking.get_bookings_for_events(db, [e.id for e in events])
    return attach_derived_statuses(events, bookings)


def _musician_names(views: List[EventView]) -> List[str]:
    names = {
        b.musician.stage_name
        for v in views
        for b in v.bookings
        if b.musician is not None and b.musician.stage_name
    }
    return sorted(names)


def _filtered(views: List[EventView], spec: FilterSpec, params: Dict[str, Any]) -> EventListResponse:
    params = {k: v for k, v in params.items() if v is not None}
    if isinstance(params.get("status"), str):
        params["status"] = params["status"].strip().lower()
    state = FilterState.from_flat(params)
    try:
        result = apply_filters(views, spec, state)
    except UnknownFacetError as exc:
        raise error_response(str(exc), {key: "unknown filter" for key in exc.keys})
    return EventListResponse(
        items=[event_response(v) for v in result.items],
        total_count=result.total_count,
        filtered_count=result.filtered_count,
    )


@router.get("/", response_model=EventListResponse)
def read_events(
    db: Session = Depends(get_db),
    venue_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    musician: Optional[str] = Query(None),
) -> Any:
    """Upcoming and in-progress events with their derived status."""
    views = [v for v in _load_views(db, venue_id) if not is_past_status(v.event_status)]
    spec = venue_events_spec(_musician_names(views))
    return _filtered(
        views,
        spec,
        {
            "dateFrom": date_from,
            "dateTo": date_to,
            "status": status_filter,
            "search": search,
            "musician": musician,
        },
    )


@router.get("/history", response_model=EventListResponse)
def read_event_history(
    db: Session = Depends(get_db),
    venue_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    musician: Optional[str] = Query(None),
    venue: Optional[str] = Query(None),
    cancellation_reason: Optional[str] = Query(None, alias="cancellationReason"),
) -> Any:
    """Completed and cancelled events."""
    views = [v for v in _load_views(db, venue_id) if is_past_status(v.event_status)]
    venues = sorted({v.venue.name for v in views if v.venue is not None})
    spec = event_history_spec(_musician_names(views), venues)
    return _filtered(
        views,
        spec,
        {
            "dateFrom": date_from,
            "dateTo": date_to,
            "status": status_filter,
            "search": search,
            "musician": musician,
            "venue": venue,
            "cancellationReason": cancellation_reason,
        },
    )




def _load_event(db: Session, event_id: int):
    event = crud.crud_event.get_event(db, event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Event not found."
        )
    return event


def _owned_event(db: Session, event_id: int, venue: Venue):
    event = _load_event(db, event_id)
    if event.venue_id != venue.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this event",
        )
    return event


def _view(db: Session, event) -> EventView:
    bookings = crud.booking.get_bookings_by_event(db, event.id)
    return attach_derived_statuses([event], bookings)[0]


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    *,
    db: Session = Depends(get_db),
    event_in: EventCreate,
    current_venue: Venue = Depends(get_current_venue),
) -> Any:
    """Post a new event for the calling venue."""
    event = crud.crud_event.create_event(
        db,
        current_venue,
        event_in.model_dump(exclude_none=True),
        actor_id=current_venue.user_id,
    )
    return event_response(_view(db, event))


@router.get("/{event_id}", response_model=EventResponse)
def read_event(event_id: int, db: Session = Depends(get_db)) -> Any:
    return event_response(_view(db, _load_event(db, event_id)))


@router.patch("/{event_id}", response_model=EventResponse)
def update_event(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    event_in: EventUpdate,
    current_venue: Venue = Depends(get_current_venue),
) -> Any:
    """Edit an event. Only the fields sent are changed."""
    event = _owned_event(db, event_id, current_venue)
    changes = event_in.model_dump(exclude_unset=True)
    # title and status cannot be cleared
    for key in ("title", "status"):
        if key in changes and changes[key] is None:
            del changes[key]
    event = crud.crud_event.update_event(db, event, changes, actor_id=current_venue.user_id)
    return event_response(_view(db, event))


@router.post("/{event_id}/invitations", response_model=EventResponse)
def invite_musician(
    *,
    db: Session = Depends(get_db),
    event_id: int,
    invitation: InvitationCreate,
    current_venue: Venue = Depends(get_current_venue),
) -> Any:
    """Invite a musician to an event; the stored status becomes ``invited``."""
    event = _owned_event(db, event_id, current_venue)
    musician = crud.crud_musician.get_musician(db, invitation.musician_id)
    if musician is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Musician not found."
        )
    try:
        event = crud.crud_event.invite_musician(
            db,
            event,
            musician,
            actor_id=current_venue.user_id,
            message=invitation.message,
        )
    except ValueError as exc:
        raise error_response(str(exc), {"musician_id": "already_booked"})
    return event_response(_view(db, event))


@router.get("/{event_id}/history", response_model=List[EventHistoryResponse])
def read_event_changes(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Audit trail for an event, oldest first.

    Visible to the owning venue and to musicians with a booking on the event.
    """
    event = _load_event(db, event_id)
    venue: Optional[Venue] = current_user.venue_profile
    musician: Optional[Musician] = current_user.musician_profile
    is_owner = venue is not None and venue.id == event.venue_id
    is_participant = musician is not None and any(
        b.musician_id == musician.id for b in event.bookings
    )
    if not (is_owner or is_participant):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view this event's history",
        )
    return crud.crud_event_history.get_history_for_event(db, event.id)
