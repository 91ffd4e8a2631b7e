# backend/app/models/event_history.py

from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel


class EventHistory(BaseModel):
    """Append-only audit trail of changes to an event and its bookings."""

    __tablename__ = "event_history"

    id             = Column(Integer, primary_key=True, index=True)
    event_id       = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    booking_id     = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    changed_by     = Column(Integer, ForeignKey("users.id"), nullable=True)
    change_type    = Column(String(32), nullable=False, index=True)
    previous_value = Column(String, nullable=True)
    new_value      = Column(String, nullable=True)
    description    = Column(Text, nullable=True)
    context        = Column(JSON, nullable=False, default=dict)

    event   = relationship("Event", back_populates="history")
    booking = relationship("Booking")
