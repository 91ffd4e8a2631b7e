# backend/app/api/api_musician.py

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import crud
from ..database import get_db
from ..schemas.musician import MusicianListResponse, MusicianResponse
from ..services.filter_engine import FilterState, apply_filters
from ..services.filter_presets import musician_search_spec

router = APIRouter(tags=["musicians"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=MusicianListResponse)
def read_musicians(
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None, description="Name, city or bio"),
    genre: Optional[str] = Query(None),
) -> Any:
    """Musician directory."""
    musicians = crud.crud_musician.list_musicians(db)
    genres = sorted({g for m in musicians for g in (m.genres or []) if g})
    state = FilterState(search=(search or "").strip(), facets={"genre": genre} if genre else {})
    result = apply_filters(musicians, musician_search_spec(genres), state)
    return MusicianListResponse(
        items=[MusicianResponse.model_validate(m) for m in result.items],
        total_count=result.total_count,
        filtered_count=result.filtered_count,
    )
