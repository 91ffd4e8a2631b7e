from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models


def get_musician(db: Session, musician_id: int) -> Optional[models.Musician]:
    return db.query(models.Musician).filter(models.Musician.id == musician_id).first()


def list_musicians(db: Session, skip: int = 0, limit: int = 500) -> List[models.Musician]:
    return (
        db.query(models.Musician)
        .order_by(models.Musician.stage_name)
        .offset(skip)
        .limit(limit)
        .all()
    )
