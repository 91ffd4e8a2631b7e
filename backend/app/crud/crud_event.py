import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from .. import models
from ..models.booking_status import ChangeType, EventStatus
from ..services.booking_lifecycle import is_terminal
from .crud_event_history import record_change, status_change_description

logger = logging.getLogger(__name__)


def _query(db: Session):
    return db.query(models.Event).options(selectinload(models.Event.venue))


def get_event(db: Session, event_id: int) -> Optional[models.Event]:
    return _query(db).filter(models.Event.id == event_id).first()


def get_events_by_venue(db: Session, venue_id: int) -> List[models.Event]:
    return (
        _query(db)
        .filter(models.Event.venue_id == venue_id)
        .order_by(models.Event.date, models.Event.id)
        .all()
    )


def list_events(db: Session, skip: int = 0, limit: int = 500) -> List[models.Event]:
    return (
        _query(db)
        .order_by(models.Event.date, models.Event.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_event(
    db: Session,
    venue: models.Venue,
    data: Dict[str, Any],
    actor_id: Optional[int] = None,
) -> models.Event:
    db_event = models.Event(venue_id=venue.id, **data)
    db.add(db_event)
    db.flush()
    record_change(
        db,
        db_event.id,
        ChangeType.EVENT_CREATED,
        new_value=db_event.status,
        changed_by=actor_id,
        description=f'Event "{db_event.title}" created',
        context={"venue_id": venue.id},
    )
    db.commit()
    db.refresh(db_event)
    logger.info("Event id=%s created for venue=%s", db_event.id, venue.id)
    return db_event


def update_event(
    db: Session,
    db_event: models.Event,
    changes: Dict[str, Any],
    actor_id: Optional[int] = None,
) -> models.Event:
    """Apply ``changes`` and record what actually moved."""
    changes = dict(changes)
    new_status = changes.pop("status", None)
    updated = {}
    for key, value in changes.items():
        old = getattr(db_event, key)
        if old != value:
            setattr(db_event, key, value)
            updated[key] = value
    if updated:
        record_change(
            db,
            db_event.id,
            ChangeType.EVENT_UPDATED,
            changed_by=actor_id,
            description=f"Updated {', '.join(sorted(updated))}",
            context={"fields": sorted(updated)},
        )
    if new_status is not None and new_status != db_event.status:
        _set_stored_status(db, db_event, new_status, actor_id)
    db.commit()
    db.refresh(db_event)
    return db_event


def invite_musician(
    db: Session,
    db_event: models.Event,
    musician: models.Musician,
    actor_id: Optional[int] = None,
    message: Optional[str] = None,
) -> models.Event:
    """Mark the event invited and record who was asked."""
    active = [
        b for b in db_event.bookings
        if b.musician_id == musician.id and not is_terminal(b.status)
    ]
    if active:
        raise ValueError(
            f"Musician {musician.id} already has an active booking for event {db_event.id}."
        )
    if db_event.status != EventStatus.INVITED.value:
        _set_stored_status(db, db_event, EventStatus.INVITED.value, actor_id)
    record_change(
        db,
        db_event.id,
        ChangeType.MUSICIAN_INVITED,
        new_value=musician.stage_name,
        changed_by=actor_id,
        description=f"{musician.stage_name} invited",
        context={"musician_id": musician.id, "message": message},
    )
    db.commit()
    db.refresh(db_event)
    return db_event


def _set_stored_status(db: Session, db_event: models.Event, status: str, actor_id: Optional[int]) -> None:
    previous = db_event.status
    db_event.status = status
    record_change(
        db,
        db_event.id,
        ChangeType.EVENT_STATUS,
        previous_value=previous,
        new_value=status,
        changed_by=actor_id,
        description=status_change_description("Event", previous, status),
    )
