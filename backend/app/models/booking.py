# backend/app/models/booking.py

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus, CancellationReason, ActorRole
from .types import LenientStatusEnum

class Booking(BaseModel):
    __tablename__ = "bookings"

    id          = Column(Integer, primary_key=True, index=True)
    event_id    = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    musician_id = Column(Integer, ForeignKey("musicians.id"), nullable=False, index=True)
    venue_id    = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    status      = Column(
        LenientStatusEnum(BookingStatus),
        default=BookingStatus.APPLIED,
        nullable=False,
        index=True,
    )
    proposed_rate  = Column(Numeric(10, 2), nullable=True)
    musician_pitch = Column(Text, nullable=True)

    # Per-transition timestamps
    applied_at   = Column(DateTime, nullable=True)
    selected_at  = Column(DateTime, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Two-phase cancellation: request, then confirmation
    cancel_requested_at      = Column(DateTime, nullable=True)
    cancel_requested_by      = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancel_requested_by_role = Column(LenientStatusEnum(ActorRole), nullable=True)
    cancelled_at             = Column(DateTime, nullable=True)
    cancelled_by             = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancel_confirmed_by_role = Column(LenientStatusEnum(ActorRole), nullable=True)
    cancellation_reason      = Column(LenientStatusEnum(CancellationReason), nullable=True)

    # Relationships
    event    = relationship("Event", back_populates="bookings")
    musician = relationship("Musician", back_populates="bookings")
    venue    = relationship("Venue")
