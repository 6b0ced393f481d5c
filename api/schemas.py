from __future__ import annotations

import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    chapters: List[str] = Field(default_factory=list)
    only_open: bool = False


class ObservationModel(BaseModel):
    id: int
    date: datetime.date
    chapter: str
    severity: str
    status: str
    description: str = ""


class ChaptersResponse(BaseModel):
    chapters: List[str]
