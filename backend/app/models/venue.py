from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from .base import BaseModel


class Venue(BaseModel):
    __tablename__ = "venues"

    id      = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    name    = Column(String, nullable=False, index=True)
    city    = Column(String, nullable=True)
    state   = Column(String, nullable=True)

    user   = relationship("User", back_populates="venue_profile")
    events = relationship("Event", back_populates="venue", order_by="Event.date")
