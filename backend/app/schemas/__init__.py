from .booking import (
    BookingCreate,
    BookingStatusUpdate,
    BookingResponse,
    BookingActionResponse,
    NextStatusesResponse,
)
from .event import (
    EventCreate,
    EventUpdate,
    InvitationCreate,
    EventResponse,
    EventListResponse,
    EventHistoryResponse,
    VenueSummary,
)
from .musician import MusicianResponse, MusicianListResponse
