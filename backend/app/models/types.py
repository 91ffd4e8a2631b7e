import logging

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

logger = logging.getLogger(__name__)


class LenientStatusEnum(TypeDecorator):
    """String-backed enum column that tolerates unknown stored values.

    Values are written lowercase. On load, known values become enum members
    and anything else is handed back as the raw string so callers can treat
    it as matching no known status.
    """

    impl = String(32)
    cache_ok = True

    def __init__(self, enum_cls, **kwargs):
        self.enum_cls = enum_cls
        super().__init__(**kwargs)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, self.enum_cls):
            return value.value
        return str(value).strip().lower()

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        member = self.enum_cls.coerce(value)
        if member is None:
            logger.warning(
                "Unrecognised %s value %r loaded from database",
                self.enum_cls.__name__,
                value,
            )
            return value
        return member
