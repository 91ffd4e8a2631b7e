import logging
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from app import crud
from app.crud import InvalidTransitionError, build_transition_changes, role_for_booking
from app.core.config import settings
from app.models import ActorRole, Booking, BookingStatus, CancellationReason, ChangeType, Event, EventHistory, Musician, User, Venue
from app.models.base import BaseModel


def setup_db():
    engine = create_engine('sqlite:///:memory:', connect_args={'check_same_thread': False})
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    return Session()


def create_data(db):
    venue_user = User(email='v@test.com', first_name='V', last_name='Owner')
    musician_user = User(email='m@test.com', first_name='M', last_name='Player')
    db.add_all([venue_user, musician_user])
    db.commit()

    venue = Venue(user_id=venue_user.id, name='Blue Room', city='Austin')
    musician = Musician(user_id=musician_user.id, stage_name='DJ Alpha', genres=['house'])
    db.add_all([venue, musician])
    db.commit()

    event = Event(venue_id=venue.id, title='Friday Set', date=date(2030, 1, 1))
    db.add(event)
    db.commit()
    return venue_user, musician_user, venue, musician, event


def test_create_application_starts_applied():
    db = setup_db()
    _, _, venue, musician, event = create_data(db)

    booking = crud.booking.create_application(db, event=event, musician=musician, pitch='Pick me')
    assert booking.status == BookingStatus.APPLIED
    assert booking.venue_id == venue.id
    assert booking.applied_at is not None
    assert event.status == 'open'


def test_duplicate_active_application_rejected():
    db = setup_db()
    _, _, _, musician, event = create_data(db)
    crud.booking.create_application(db, event=event, musician=musician)
    with pytest.raises(ValueError):
        crud.booking.create_application(db, event=event, musician=musician)


def test_reapply_after_terminal_booking():
    db = setup_db()
    _, _, _, musician, event = create_data(db)
    first = crud.booking.create_application(db, event=event, musician=musician)
    first.status = BookingStatus.CANCELLED
    db.commit()
    second = crud.booking.create_application(db, event=event, musician=musician)
    assert second.id != first.id


def test_full_lifecycle_stamps_timestamps():
    db = setup_db()
    venue_user, musician_user, _, musician, event = create_data(db)
    booking = crud.booking.create_application(db, event=event, musician=musician)

    booking = crud.booking.transition_booking(
        db, booking, BookingStatus.SELECTED, actor_id=venue_user.id, actor_role=ActorRole.VENUE
    )
    assert booking.selected_at is not None
    booking = crud.booking.transition_booking(
        db, booking, BookingStatus.CONFIRMED, actor_id=musician_user.id, actor_role=ActorRole.MUSICIAN
    )
    assert booking.confirmed_at is not None
    booking = crud.booking.transition_booking(
        db,
        booking,
        BookingStatus.PENDING_CANCEL,
        actor_id=musician_user.id,
        actor_role=ActorRole.MUSICIAN,
        cancellation_reason=CancellationReason.SCHEDULE_CONFLICT,
    )
    assert booking.cancel_requested_by == musician_user.id
    assert booking.cancel_requested_by_role == ActorRole.MUSICIAN
    booking = crud.booking.transition_booking(
        db, booking, BookingStatus.CANCELLED, actor_id=venue_user.id, actor_role=ActorRole.VENUE
    )
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_by == venue_user.id
    assert booking.cancel_confirmed_by_role == ActorRole.VENUE
    # The reason given with the request survives confirmation
    assert booking.cancellation_reason == CancellationReason.SCHEDULE_CONFLICT


def test_illegal_transition_raises_and_logs(caplog):
    caplog.set_level(logging.WARNING, logger="app.crud.crud_booking")
    db = setup_db()
    _, _, _, musician, event = create_data(db)
    booking = crud.booking.create_application(db, event=event, musician=musician)

    with pytest.raises(InvalidTransitionError) as exc:
        crud.booking.transition_booking(db, booking, BookingStatus.COMPLETED, actor_id=None, actor_role=None)
    assert str(exc.value) == "Cannot move booking from applied to completed"
    assert booking.status == BookingStatus.APPLIED
    assert any("Rejected booking" in r.getMessage() for r in caplog.records)


def test_unknown_stored_status_loads_as_raw_string():
    db = setup_db()
    _, _, _, musician, event = create_data(db)
    booking = crud.booking.create_application(db, event=event, musician=musician)
    db.execute(text("UPDATE bookings SET status = 'archived' WHERE id = :id"), {"id": booking.id})
    db.commit()
    db.expire_all()

    fetched = crud.booking.get_booking(db, booking.id)
    assert fetched.status == 'archived'
    with pytest.raises(InvalidTransitionError):
        crud.booking.transition_booking(db, fetched, BookingStatus.CANCELLED, actor_id=None, actor_role=None)


def test_build_transition_changes():
    now = datetime(2030, 1, 1, 12, 0)
    changes = build_transition_changes(BookingStatus.COMPLETED, 7, ActorRole.VENUE, now=now)
    assert changes == {"status": BookingStatus.COMPLETED, "completed_at": now, "completed_by": 7}

    changes = build_transition_changes(
        BookingStatus.PENDING_CANCEL, 3, ActorRole.MUSICIAN, CancellationReason.OTHER, now=now
    )
    assert changes["cancel_requested_at"] == now
    assert changes["cancel_requested_by_role"] == ActorRole.MUSICIAN
    assert changes["cancellation_reason"] == CancellationReason.OTHER

    changes = build_transition_changes(BookingStatus.CANCELLED, 4, ActorRole.VENUE, now=now)
    assert "cancellation_reason" not in changes


def test_role_for_booking():
    db = setup_db()
    venue_user, musician_user, _, musician, event = create_data(db)
    stranger = User(email='s@test.com', first_name='S', last_name='Tranger')
    db.add(stranger)
    db.commit()
    booking = crud.booking.create_application(db, event=event, musician=musician)

    assert role_for_booking(venue_user, booking) == ActorRole.VENUE
    assert role_for_booking(musician_user, booking) == ActorRole.MUSICIAN
    assert role_for_booking(stranger, booking) is None
    assert role_for_booking(None, booking) is None


def test_bookings_for_events_and_by_party():
    db = setup_db()
    _, _, venue, musician, event = create_data(db)
    other = Event(venue_id=venue.id, title='Saturday Set')
    db.add(other)
    db.commit()
    crud.booking.create_application(db, event=event, musician=musician)
    crud.booking.create_application(db, event=other, musician=musician)

    assert len(crud.booking.get_bookings_for_events(db, [event.id])) == 1
    assert crud.booking.get_bookings_for_events(db, []) == []
    assert len(crud.booking.get_bookings_by_venue(db, venue.id)) == 2
    by_musician = crud.booking.get_bookings_by_musician(db, musician.id)
    assert [b.event_id for b in by_musician] == [other.id, event.id]
    assert isinstance(by_musician[0], Booking)


def test_default_timestamp_is_timezone_aware():
    changes = build_transition_changes(BookingStatus.SELECTED, 1, ActorRole.VENUE)
    assert changes["selected_at"].tzinfo is not None


def test_event_status_defaults_to_setting(monkeypatch):
    db = setup_db()
    _, _, venue, _, event = create_data(db)
    assert event.status == settings.DEFAULT_EVENT_STATUS

    monkeypatch.setattr(settings, 'DEFAULT_EVENT_STATUS', 'invited')
    later = Event(venue_id=venue.id, title='Late Show')
    db.add(later)
    db.commit()
    assert later.status == 'invited'


def test_history_records_application_and_transitions():
    db = setup_db()
    venue_user, musician_user, _, musician, event = create_data(db)
    booking = crud.booking.create_application(db, event=event, musician=musician)
    crud.booking.transition_booking(
        db, booking, BookingStatus.SELECTED, actor_id=venue_user.id, actor_role=ActorRole.VENUE
    )
    crud.booking.transition_booking(
        db,
        booking,
        BookingStatus.PENDING_CANCEL,
        actor_id=musician_user.id,
        actor_role=ActorRole.MUSICIAN,
        cancellation_reason=CancellationReason.OTHER,
    )

    entries = crud.crud_event_history.get_history_for_event(db, event.id)
    assert [e.change_type for e in entries] == [
        ChangeType.BOOKING_CREATED.value,
        ChangeType.BOOKING_STATUS.value,
        ChangeType.BOOKING_STATUS.value,
    ]
    created, selected, pending = entries
    assert created.booking_id == booking.id
    assert created.changed_by == musician_user.id
    assert created.new_value == 'applied'

    assert (selected.previous_value, selected.new_value) == ('applied', 'selected')
    assert selected.changed_by == venue_user.id
    assert selected.description == 'Booking status changed from "applied" to "selected"'
    assert selected.context['actor_role'] == 'venue'

    assert (pending.previous_value, pending.new_value) == ('selected', 'pending_cancel')
    assert pending.context['cancellation_reason'] == 'other'
    assert pending.context['musician_id'] == musician.id


def test_rejected_transition_writes_no_history():
    db = setup_db()
    _, _, _, musician, event = create_data(db)
    booking = crud.booking.create_application(db, event=event, musician=musician)
    with pytest.raises(InvalidTransitionError):
        crud.booking.transition_booking(db, booking, BookingStatus.COMPLETED, actor_id=None, actor_role=None)
    db.rollback()
    assert db.query(EventHistory).count() == 1
