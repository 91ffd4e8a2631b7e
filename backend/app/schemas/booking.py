from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Annotated, Union
from datetime import datetime
import datetime as dt
from decimal import Decimal
from ..models.booking_status import BookingStatus, CancellationReason, ActorRole


# Properties to receive when a musician applies to an event
class BookingCreate(BaseModel):
    event_id: int
    proposed_rate: Optional[Annotated[Decimal, Field(ge=0)]] = None
    musician_pitch: Optional[str] = None


# Properties to receive on a status change (either party)
class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    cancellation_reason: Optional[CancellationReason] = None

    @field_validator("status", "cancellation_reason", mode="before")
    def lower_enum_values(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class MusicianSummary(BaseModel):
    id: int
    stage_name: str
    city: Optional[str] = None

    model_config = {"from_attributes": True}


class EventSummary(BaseModel):
    id: int
    title: str
    date: Optional[dt.date] = None

    model_config = {"from_attributes": True}


# Properties to return to client
class BookingResponse(BaseModel):
    id: int
    event_id: int
    musician_id: int
    venue_id: int
    # Unrecognised stored values are passed through rather than rejected
    status: Union[BookingStatus, str]
    proposed_rate: Optional[Decimal] = None
    musician_pitch: Optional[str] = None
    applied_at: Optional[datetime] = None
    selected_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancel_requested_at: Optional[datetime] = None
    cancel_requested_by_role: Optional[Union[ActorRole, str]] = None
    cancelled_at: Optional[datetime] = None
    cancel_confirmed_by_role: Optional[Union[ActorRole, str]] = None
    cancellation_reason: Optional[Union[CancellationReason, str]] = None
    status_label: Optional[str] = None

    musician: Optional[MusicianSummary] = None
    event: Optional[EventSummary] = None

    model_config = {
        "from_attributes": True
    }


class BookingActionResponse(BaseModel):
    status: BookingStatus
    label: str


class NextStatusesResponse(BaseModel):
    booking_id: int
    current: Union[BookingStatus, str]
    next_statuses: List[BookingStatus]
    actions: List[BookingActionResponse]
