from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel


class Musician(BaseModel):
    __tablename__ = "musicians"

    id          = Column(Integer, primary_key=True, index=True)
    user_id     = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    stage_name  = Column(String, nullable=False, index=True)
    city        = Column(String, nullable=True)
    state       = Column(String, nullable=True)
    bio         = Column(Text, nullable=True)
    genres      = Column(JSON, nullable=True)  # list[str]
    hourly_rate = Column(Numeric(10, 2), nullable=True)

    user     = relationship("User", back_populates="musician_profile")
    bookings = relationship("Booking", back_populates="musician")
