from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.base import BaseModel
from app.models import Booking, BookingStatus, Event, Musician, User, Venue
from app.api.dependencies import get_db


def setup_app():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    return Session


def create_data(Session):
    db = Session()
    venue_user = User(email='venue@test.com', first_name='V', last_name='Owner')
    musician_user = User(email='musician@test.com', first_name='M', last_name='Player')
    stranger = User(email='stranger@test.com', first_name='S', last_name='Tranger')
    db.add_all([venue_user, musician_user, stranger])
    db.commit()

    venue = Venue(user_id=venue_user.id, name='Blue Room')
    musician = Musician(user_id=musician_user.id, stage_name='DJ Alpha')
    db.add_all([venue, musician])
    db.commit()

    event = Event(venue_id=venue.id, title='Friday Set', date=date(2030, 1, 1))
    db.add(event)
    db.commit()
    ids = {
        'venue_user': venue_user.id,
        'musician_user': musician_user.id,
        'stranger': stranger.id,
        'venue': venue.id,
        'musician': musician.id,
        'event': event.id,
    }
    db.close()
    return ids


def as_user(user_id):
    return {'X-User-Id': str(user_id)}


def apply(client, ids):
    res = client.post(
        '/api/v1/bookings/',
        json={'event_id': ids['event'], 'musician_pitch': 'We play loud'},
        headers=as_user(ids['musician_user']),
    )
    assert res.status_code == 201, res.text
    return res.json()


def set_status(client, booking_id, user_id, status, **extra):
    return client.patch(
        f'/api/v1/bookings/{booking_id}/status',
        json={'status': status, **extra},
        headers=as_user(user_id),
    )


def test_musician_applies_to_event():
    Session = setup_app()
    ids = create_data(Session)
    client = TestClient(app)

    data = apply(client, ids)
    assert data['status'] == 'applied'
    assert data['status_label'] == 'Application Submitted'
    assert data['venue_id'] == ids['venue']
    assert data['event']['title'] == 'Friday Set'
    assert data['musician']['stage_name'] == 'DJ Alpha'
    app.dependency_overrides.clear()


def test_apply_errors():
    Session = setup_app()
    ids = create_data(Session)
    client = TestClient(app)

    res = client.post('/api/v1/bookings/', json={'event_id': ids['event']})
    assert res.status_code == 401

    res = client.post('/api/v1/bookings/', json={'event_id': ids['event']}, headers=as_user(ids['venue_user']))
    assert res.status_code == 403

    res = client.post('/api/v1/bookings/', json={'event_id': 999}, headers=as_user(ids['musician_user']))
    assert res.status_code == 404

    apply(client, ids)
    res = client.post('/api/v1/bookings/', json={'event_id': ids['event']}, headers=as_user(ids['musician_user']))
    assert res.status_code == 422
    assert res.json()['detail']['field_errors'] == {'event_id': 'already_applied'}
    app.dependency_overrides.clear()


def test_full_lifecycle_with_two_phase_cancel():
    Session = setup_app()
    ids = create_data(Session)
    client = TestClient(app)
    booking_id = apply(client, ids)['id']

    res = set_status(client, booking_id, ids['venue_user'], 'selected')
    assert res.status_code == 200, res.text
    assert res.json()['status'] == 'selected'

    res = set_status(client, booking_id, ids['musician_user'], 'CONFIRMED')
    assert res.status_code == 200, res.text
    assert res.json()['confirmed_at'] is not None

    # Direct cancel is in the table but never offered to either party
    res = set_status(client, booking_id, ids['musician_user'], 'cancelled')
    assert res.status_code == 422
    assert res.json()['detail']['message'] == 'Status change not available'

    res = set_status(
        client,
        booking_id,
        ids['musician_user'],
        'pending_cancel',
        cancellation_reason='schedule_conflict',
    )
    assert res.status_code == 200, res.text
    assert res.json()['cancel_requested_by_role'] == 'musician'

    res = set_status(client, booking_id, ids['venue_user'], 'cancelled')
    assert res.status_code == 200, res.text
    body = res.json()
    assert body['status'] == 'cancelled'
    assert body['cancel_confirmed_by_role'] == 'venue'
    assert body['status_label'] == 'Cancelled by Venue - Schedule Conflict'

    res = set_status(client, booking_id, ids['venue_user'], 'selected')
    assert res.status_code == 422
    assert res.json()['detail']['field_errors']['status'].endswith('allowed: none')
    app.dependency_overrides.clear()


def test_status_update_rejections():
    Session = setup_app()
    ids = create_data(Session)
    client = TestClient(app)
    booking_id = apply(client, ids)['id']

    # Musician cannot select themselves
    res = set_status(client, booking_id, ids['musician_user'], 'selected')
    assert res.status_code == 422

    res = set_status(client, booking_id, ids['venue_user'], 'completed')
    assert res.status_code == 422
    assert res.json()['detail']['field_errors']['status'] == (
        'Cannot move booking from applied to completed; allowed: cancelled, pending_cancel, selected'
    )

    res = set_status(client, booking_id, ids['stranger'], 'selected')
    assert res.status_code == 403

    res = set_status(client, 999, ids['venue_user'], 'selected')
    assert res.status_code == 404

    res = set_status(client, booking_id, ids['venue_user'], 'archived')
    assert res.status_code == 422

    db = Session()
    assert db.get(Booking, booking_id).status == BookingStatus.APPLIED
    db.close()
    app.dependency_overrides.clear()


def test_next_statuses_by_role():
    Session = setup_app()
    ids = create_data(Session)
    client = TestClient(app)
    booking_id = apply(client, ids)['id']

    res = client.get(f'/api/v1/bookings/{booking_id}/next-statuses', headers=as_user(ids['venue_user']))
    assert res.status_code == 200
    data = res.json()
    assert data['current'] == 'applied'
    assert data['next_statuses'] == ['cancelled', 'pending_cancel', 'selected']
    assert data['actions'] == [
        {'status': 'selected', 'label': 'Select This Musician'},
        {'status': 'pending_cancel', 'label': 'Cancel Booking'},
    ]

    res = client.get(f'/api/v1/bookings/{booking_id}/next-statuses', headers=as_user(ids['musician_user']))
    assert [a['status'] for a in res.json()['actions']] == ['pending_cancel']

    res = client.get(f'/api/v1/bookings/{booking_id}/next-statuses', headers=as_user(ids['stranger']))
    assert res.status_code == 403
    app.dependency_overrides.clear()


def test_my_bookings_filters():
    Session = setup_app()
    ids = create_data(Session)
    client = TestClient(app)
    booking_id = apply(client, ids)['id']

    for user in ('musician_user', 'venue_user'):
        res = client.get('/api/v1/bookings/my-bookings', headers=as_user(ids[user]))
        assert res.status_code == 200
        assert [b['id'] for b in res.json()] == [booking_id]

    res = client.get('/api/v1/bookings/my-bookings', headers=as_user(ids['stranger']))
    assert res.json() == []

    headers = as_user(ids['musician_user'])
    assert len(client.get('/api/v1/bookings/my-bookings?status=applied', headers=headers).json()) == 1
    assert client.get('/api/v1/bookings/my-bookings?status=selected', headers=headers).json() == []
    assert client.get('/api/v1/bookings/my-bookings?status=bogus', headers=headers).json() == []
    assert len(client.get('/api/v1/bookings/my-bookings?search=friday', headers=headers).json()) == 1
    assert len(client.get('/api/v1/bookings/my-bookings?search=loud', headers=headers).json()) == 1
    assert client.get('/api/v1/bookings/my-bookings?search=nothing', headers=headers).json() == []
    app.dependency_overrides.clear()
