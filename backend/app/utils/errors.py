from typing import Any, Dict, Iterable
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def transition_error(current: Any, target: Any, allowed: Iterable[Any]) -> HTTPException:
    """422 for a booking status change the caller may not make."""
    cur = getattr(current, "value", current)
    tgt = getattr(target, "value", target)
    options = sorted(getattr(a, "value", a) for a in allowed)
    return error_response(
        "Invalid status transition",
        {"status": f"Cannot move booking from {cur} to {tgt}; allowed: {', '.join(options) or 'none'}"},
    )
