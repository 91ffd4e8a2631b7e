import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from .. import models
from ..models.base import utc_now
from ..models.booking_status import ActorRole, BookingStatus, CancellationReason, ChangeType
from ..services.booking_lifecycle import can_transition_to, get_next_possible_statuses, is_terminal
from .crud_event_history import record_change, status_change_description

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a status change is not listed in the transition table."""

    def __init__(self, current: Any, target: Any):
        self.current = current
        self.target = target
        cur = getattr(current, "value", current)
        tgt = getattr(target, "value", target)
        super().__init__(f"Cannot move booking from {cur} to {tgt}")


# Timestamp column stamped when a booking enters each status
_STATUS_TIMESTAMPS = {
    BookingStatus.APPLIED: "applied_at",
    BookingStatus.SELECTED: "selected_at",
    BookingStatus.CONFIRMED: "confirmed_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.PENDING_CANCEL: "cancel_requested_at",
    BookingStatus.CANCELLED: "cancelled_at",
}


def build_transition_changes(
    target: BookingStatus,
    actor_id: Optional[int],
    actor_role: Optional[ActorRole],
    cancellation_reason: Optional[CancellationReason] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Column updates for moving a booking into ``target``."""
    now = now or utc_now()
    changes: Dict[str, Any] = {"status": target, _STATUS_TIMESTAMPS[target]: now}
    if target == BookingStatus.PENDING_CANCEL:
        changes["cancel_requested_by"] = actor_id
        changes["cancel_requested_by_role"] = actor_role
        changes["cancellation_reason"] = cancellation_reason
    elif target == BookingStatus.CANCELLED:
        changes["cancelled_by"] = actor_id
        changes["cancel_confirmed_by_role"] = actor_role
        if cancellation_reason is not None:
            changes["cancellation_reason"] = cancellation_reason
    elif target == BookingStatus.COMPLETED:
        changes["completed_by"] = actor_id
    return changes


def role_for_booking(user: Optional[models.User], booking: models.Booking) -> Optional[ActorRole]:
    """Which side of ``booking`` the user is on, if any."""
    if user is None:
        return None
    venue = user.venue_profile
    if venue is not None and venue.id == booking.venue_id:
        return ActorRole.VENUE
    musician = user.musician_profile
    if musician is not None and musician.id == booking.musician_id:
        return ActorRole.MUSICIAN
    return None


class CRUDBooking:
    def _query(self, db: Session):
        return db.query(models.Booking).options(
            selectinload(models.Booking.event).selectinload(models.Event.venue),
            selectinload(models.Booking.musician),
            selectinload(models.Booking.venue),
        )

    def get_booking(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return self._query(db).filter(models.Booking.id == booking_id).first()

    def get_bookings_by_event(self, db: Session, event_id: int) -> List[models.Booking]:
        return (
            self._query(db)
            .filter(models.Booking.event_id == event_id)
            .order_by(models.Booking.id)
            .all()
        )

    def get_bookings_for_events(self, db: Session, event_ids: Iterable[int]) -> List[models.Booking]:
        ids = list(event_ids)
        if not ids:
            return []
        return (
            self._query(db)
            .filter(models.Booking.event_id.in_(ids))
            .order_by(models.Booking.id)
            .all()
        )

    def get_bookings_by_musician(
        self, db: Session, musician_id: int, skip: int = 0, limit: int = 100
    ) -> List[models.Booking]:
        return (
            self._query(db)
            .filter(models.Booking.musician_id == musician_id)
            .order_by(models.Booking.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_bookings_by_venue(
        self, db: Session, venue_id: int, skip: int = 0, limit: int = 100
    ) -> List[models.Booking]:
        return (
            self._query(db)
            .filter(models.Booking.venue_id == venue_id)
            .order_by(models.Booking.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_application(
        self,
        db: Session,
        event: models.Event,
        musician: models.Musician,
        proposed_rate: Optional[Decimal] = None,
        pitch: Optional[str] = None,
    ) -> models.Booking:
        """Record a musician's application to an event in ``applied``."""
        existing = (
            db.query(models.Booking)
            .filter(
                models.Booking.event_id == event.id,
                models.Booking.musician_id == musician.id,
            )
            .all()
        )
        if any(not is_terminal(b.status) for b in existing):
            raise ValueError(
                f"Musician {musician.id} already has an active booking for event {event.id}."
            )

        db_booking = models.Booking(
            event_id=event.id,
            musician_id=musician.id,
            venue_id=event.venue_id,
            status=BookingStatus.APPLIED,
            proposed_rate=proposed_rate,
            musician_pitch=pitch,
            applied_at=utc_now(),
        )
        db.add(db_booking)
        db.flush()
        record_change(
            db,
            event.id,
            ChangeType.BOOKING_CREATED,
            new_value=BookingStatus.APPLIED,
            changed_by=musician.user_id,
            booking_id=db_booking.id,
            description=f"{musician.stage_name} applied",
            context={"musician_id": musician.id, "venue_id": event.venue_id},
        )
        db.commit()
        db.refresh(db_booking)
        logger.info(
            "Booking id=%s created for event=%s musician=%s",
            db_booking.id,
            event.id,
            musician.id,
        )
        return db_booking

    def transition_booking(
        self,
        db: Session,
        db_booking: models.Booking,
        target: BookingStatus,
        actor_id: Optional[int],
        actor_role: Optional[ActorRole],
        cancellation_reason: Optional[CancellationReason] = None,
        now: Optional[datetime] = None,
    ) -> models.Booking:
        """Validate and persist a status change."""
        current = db_booking.status
        if not can_transition_to(current, target):
            logger.warning(
                "Rejected booking id=%s transition %s -> %s (allowed: %s)",
                db_booking.id,
                getattr(current, "value", current),
                getattr(target, "value", target),
                sorted(s.value for s in get_next_possible_statuses(current)),
            )
            raise InvalidTransitionError(current, target)

        changes = build_transition_changes(
            BookingStatus.coerce(target),
            actor_id,
            actor_role,
            cancellation_reason=cancellation_reason,
            now=now,
        )
        for key, value in changes.items():
            setattr(db_booking, key, value)
        record_change(
            db,
            db_booking.event_id,
            ChangeType.BOOKING_STATUS,
            previous_value=current,
            new_value=changes["status"],
            changed_by=actor_id,
            booking_id=db_booking.id,
            description=status_change_description("Booking", current, changes["status"]),
            context={
                "musician_id": db_booking.musician_id,
                "venue_id": db_booking.venue_id,
                "actor_role": getattr(actor_role, "value", actor_role),
                "cancellation_reason": getattr(cancellation_reason, "value", cancellation_reason),
            },
        )
        db.commit()
        db.refresh(db_booking)
        return db_booking


booking = CRUDBooking()
