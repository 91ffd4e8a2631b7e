from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey
from sqlalchemy.orm import relationship

from ..core.config import settings
from .base import BaseModel


def _default_status() -> str:
    return settings.DEFAULT_EVENT_STATUS


class Event(BaseModel):
    __tablename__ = "events"

    id          = Column(Integer, primary_key=True, index=True)
    venue_id    = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    title       = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date        = Column(Date, nullable=True, index=True)
    start_time  = Column(String, nullable=True)  # "HH:MM"
    end_time    = Column(String, nullable=True)
    # Stored status is only a fallback; the displayed status is derived from bookings
    status      = Column(String, nullable=False, default=_default_status)

    venue    = relationship("Venue", back_populates="events")
    bookings = relationship("Booking", back_populates="event")
    history  = relationship(
        "EventHistory",
        back_populates="event",
        order_by="EventHistory.id",
    )
