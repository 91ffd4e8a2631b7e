from datetime import datetime, timezone
from sqlalchemy import Column, DateTime
from ..database import Base  # This is the same Base created by declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(Base):
    __abstract__ = True

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        status = getattr(self, "status", None)
        suffix = f" status={getattr(status, 'value', status)}" if status is not None else ""
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}{suffix}>"
