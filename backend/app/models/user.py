# backend/app/models/user.py

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    __tablename__ = "users"

    id          = Column(Integer, primary_key=True, index=True)
    email       = Column(String, unique=True, index=True, nullable=False)
    first_name  = Column(String, nullable=False)
    last_name   = Column(String, nullable=False)
    is_active   = Column(Boolean, default=True)

    # ↔–↔ A user acts as a musician, a venue, or both; each profile is optional
    musician_profile = relationship(
        "Musician",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    venue_profile = relationship(
        "Venue",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
