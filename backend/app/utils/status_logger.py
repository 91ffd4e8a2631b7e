import logging
from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE, NEVER_SET

from .. import models

logger = logging.getLogger(__name__)

_registered = False


def _listener_factory(model_name: str):
    """Return a SQLAlchemy attribute listener that logs status changes."""

    def _status_change(target, value, oldvalue, initiator):  # noqa: ANN001
        if oldvalue in (NO_VALUE, NEVER_SET) or oldvalue == value:
            return value
        logger.info(
            "%s id=%s status changed from %s to %s",
            model_name,
            getattr(target, "id", "unknown"),
            getattr(oldvalue, "value", oldvalue),
            getattr(value, "value", value),
        )
        return value

    return _status_change


def register_status_listeners() -> None:
    """Attach listeners for the booking and event ``status`` columns."""
    global _registered
    if _registered:
        return
    for model in (models.Booking, models.Event):
        event.listen(
            model.status,  # type: ignore[arg-type]
            "set",
            _listener_factory(model.__name__),
            retval=False,
            propagate=True,
            active_history=True,
        )
    _registered = True
