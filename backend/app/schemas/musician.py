from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class MusicianResponse(BaseModel):
    id: int
    stage_name: str
    city: Optional[str] = None
    state: Optional[str] = None
    bio: Optional[str] = None
    genres: Optional[List[str]] = None
    hourly_rate: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class MusicianListResponse(BaseModel):
    items: List[MusicianResponse]
    total_count: int
    filtered_count: int
