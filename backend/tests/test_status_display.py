from app.models.booking_status import BookingStatus, EventStatus
from app.services.status_display import (
    BOOKING_STATUS_DISPLAY,
    EVENT_STATUS_DISPLAY,
    describe_booking_status,
    describe_event_status,
    format_cancellation_info,
)


def test_every_status_has_a_label():
    assert set(BOOKING_STATUS_DISPLAY) == set(BookingStatus)
    assert set(EVENT_STATUS_DISPLAY) == set(EventStatus)


def test_known_statuses():
    assert describe_booking_status("applied").label == "Application Submitted"
    assert describe_booking_status(BookingStatus.PENDING_CANCEL).label == "Cancel Requested - Awaiting Confirmation"
    assert describe_event_status("application_received").label == "Application Received"
    assert describe_event_status(EventStatus.CANCEL_REQUESTED).label == "Cancel Requested"


def test_unknown_status_falls_back_to_capitalized_value():
    display = describe_booking_status("archived")
    assert display.label == "Archived"
    assert display.variant == "outline"
    assert describe_event_status(None).label == "Unknown"


def test_cancelled_booking_label_names_party_and_reason():
    booking = {
        "status": "cancelled",
        "cancel_confirmed_by_role": "venue",
        "cancellation_reason": "pricing_issue",
    }
    assert format_cancellation_info(booking) == "Cancelled by Venue - Pricing Issue"
    assert describe_booking_status("cancelled", booking).label == "Cancelled by Venue - Pricing Issue"


def test_cancellation_info_defaults():
    assert format_cancellation_info({"status": "cancelled"}) == "Cancelled by Musician - No reason provided"
    assert (
        format_cancellation_info({"status": "cancelled", "cancellation_reason": "double booked"})
        == "Cancelled by Musician - double booked"
    )
    assert format_cancellation_info({"status": "confirmed"}) == ""
