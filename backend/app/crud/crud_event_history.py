import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..models.booking_status import ChangeType

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def record_change(
    db: Session,
    event_id: int,
    change_type: ChangeType,
    *,
    previous_value: Any = None,
    new_value: Any = None,
    changed_by: Optional[int] = None,
    booking_id: Optional[int] = None,
    description: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> models.EventHistory:
    """Stage a history entry on ``db``. The caller commits it with its own change."""
    entry = models.EventHistory(
        event_id=event_id,
        booking_id=booking_id,
        changed_by=changed_by,
        change_type=change_type.value,
        previous_value=_plain(previous_value),
        new_value=_plain(new_value),
        description=description,
        context=context or {},
    )
    db.add(entry)
    logger.debug(
        "History %s staged for event=%s booking=%s",
        change_type.value,
        event_id,
        booking_id,
    )
    return entry


def status_change_description(kind: str, previous: Any, new: Any) -> str:
    return f'{kind} status changed from "{_plain(previous) or "none"}" to "{_plain(new)}"'


def get_history_for_event(db: Session, event_id: int) -> List[models.EventHistory]:
    return (
        db.query(models.EventHistory)
        .filter(models.EventHistory.event_id == event_id)
        .order_by(models.EventHistory.id)
        .all()
    )
