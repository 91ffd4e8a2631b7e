import datetime as dt
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.booking_status import EventStatus
from ..services.event_status import STORED_EVENT_STATUSES
from .booking import BookingResponse


class VenueSummary(BaseModel):
    id: int
    name: str
    city: Optional[str] = None

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    id: int
    venue_id: int
    title: str
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    # Stored fallback status as persisted
    status: str
    # Status derived from the event's bookings
    event_status: EventStatus
    status_label: Optional[str] = None
    venue: Optional[VenueSummary] = None
    bookings: List[BookingResponse] = []

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    items: List[EventResponse]
    total_count: int
    filtered_count: int


_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
ClockTime = Annotated[str, Field(pattern=_TIME_PATTERN)]  # "HH:MM"


def _stored_status(v):
    if v is None:
        return v
    coerced = EventStatus.coerce(v)
    if coerced not in STORED_EVENT_STATUSES:
        allowed = ", ".join(sorted(s.value for s in STORED_EVENT_STATUSES))
        raise ValueError(f"status must be one of: {allowed}")
    return coerced.value


# Properties a venue sends when posting an event
class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    status: Optional[str] = None

    @field_validator("title", mode="before")
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("status", mode="before")
    def check_status(cls, v):
        return _stored_status(v)


# Properties to receive on event update; omitted fields are left alone
class EventUpdate(BaseModel):
    title: Optional[Annotated[str, Field(min_length=1)]] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    status: Optional[str] = None

    @field_validator("title", mode="before")
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("status", mode="before")
    def check_status(cls, v):
        return _stored_status(v)


class InvitationCreate(BaseModel):
    musician_id: int
    message: Optional[str] = None


class EventHistoryResponse(BaseModel):
    id: int
    event_id: int
    booking_id: Optional[int] = None
    changed_by: Optional[int] = None
    change_type: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    description: Optional[str] = None
    context: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
