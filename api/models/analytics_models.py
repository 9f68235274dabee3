# api/models/analytics_models.py
from pydantic import BaseModel, Field
from typing import List, Optional

from services.analytics.models import AbstractRecord, ChangeEvent


class RecomputeRequest(BaseModel):
    records: List[AbstractRecord] = Field(default_factory=list, description="Complete record snapshot")
    current_year: Optional[int] = Field(None, description="Reference year; defaults to settings")


class GraphRequest(BaseModel):
    record: AbstractRecord
    max_entities: Optional[int] = Field(None, ge=0)


class ChangeNotification(BaseModel):
    event_type: ChangeEvent
    records: List[AbstractRecord] = Field(default_factory=list, description="Complete record snapshot after the change")
