from .crud_booking import (
    booking,
    build_transition_changes,
    role_for_booking,
    InvalidTransitionError,
)
from . import crud_event
from . import crud_event_history
from . import crud_musician

# Usage: `crud.booking.get_booking(...)`, `crud.crud_event.get_event(...)`
