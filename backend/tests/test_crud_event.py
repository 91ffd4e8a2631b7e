from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import crud
from app.models import Booking, BookingStatus, ChangeType, Musician, User, Venue
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
    venue = Venue(user_id=venue_user.id, name='Blue Room')
    musician = Musician(user_id=musician_user.id, stage_name='DJ Alpha')
    db.add_all([venue, musician])
    db.commit()
    return venue_user, venue, musician


def _types(db, event_id):
    return [e.change_type for e in crud.crud_event_history.get_history_for_event(db, event_id)]


def test_create_event_records_history():
    db = setup_db()
    venue_user, venue, _ = create_data(db)
    event = crud.crud_event.create_event(
        db, venue, {'title': 'Friday Set', 'date': date(2030, 1, 1)}, actor_id=venue_user.id
    )
    assert event.id is not None
    assert event.status == 'open'
    assert event.venue_id == venue.id
    entries = crud.crud_event_history.get_history_for_event(db, event.id)
    assert [e.change_type for e in entries] == [ChangeType.EVENT_CREATED.value]
    assert entries[0].changed_by == venue_user.id
    assert entries[0].new_value == 'open'


def test_update_event_records_fields_and_status():
    db = setup_db()
    venue_user, venue, _ = create_data(db)
    event = crud.crud_event.create_event(db, venue, {'title': 'Friday Set'})

    crud.crud_event.update_event(
        db, event, {'title': 'Friday Late Set', 'status': 'invited'}, actor_id=venue_user.id
    )
    assert event.title == 'Friday Late Set'
    assert event.status == 'invited'
    entries = crud.crud_event_history.get_history_for_event(db, event.id)
    updated, status_change = entries[1], entries[2]
    assert updated.change_type == ChangeType.EVENT_UPDATED.value
    assert updated.context == {'fields': ['title']}
    assert status_change.change_type == ChangeType.EVENT_STATUS.value
    assert (status_change.previous_value, status_change.new_value) == ('open', 'invited')
    assert status_change.description == 'Event status changed from "open" to "invited"'


def test_update_event_without_changes_records_nothing():
    db = setup_db()
    _, venue, _ = create_data(db)
    event = crud.crud_event.create_event(db, venue, {'title': 'Friday Set'})
    crud.crud_event.update_event(db, event, {'title': 'Friday Set', 'status': 'open'})
    assert _types(db, event.id) == [ChangeType.EVENT_CREATED.value]


def test_invite_musician_sets_invited():
    db = setup_db()
    venue_user, venue, musician = create_data(db)
    event = crud.crud_event.create_event(db, venue, {'title': 'Friday Set'})

    crud.crud_event.invite_musician(db, event, musician, actor_id=venue_user.id, message='Play for us?')
    assert event.status == 'invited'
    entries = crud.crud_event_history.get_history_for_event(db, event.id)
    assert [e.change_type for e in entries] == [
        ChangeType.EVENT_CREATED.value,
        ChangeType.EVENT_STATUS.value,
        ChangeType.MUSICIAN_INVITED.value,
    ]
    assert entries[-1].context == {'musician_id': musician.id, 'message': 'Play for us?'}

    # A second invitation keeps the status and adds one entry
    crud.crud_event.invite_musician(db, event, musician)
    assert _types(db, event.id)[-1] == ChangeType.MUSICIAN_INVITED.value
    assert len(_types(db, event.id)) == 4


def test_invite_musician_with_active_booking_rejected():
    db = setup_db()
    _, venue, musician = create_data(db)
    event = crud.crud_event.create_event(db, venue, {'title': 'Friday Set'})
    db.add(Booking(event_id=event.id, musician_id=musician.id, venue_id=venue.id, status=BookingStatus.APPLIED))
    db.commit()
    db.refresh(event)

    with pytest.raises(ValueError):
        crud.crud_event.invite_musician(db, event, musician)
    assert event.status == 'open'
