from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

PreferenceType = Literal["available", "unavailable", "prefers_morning", "prefers_evening", "prefers_day_off"]


class PreferenceCreate(BaseModel):
    start_date: date
    end_date: date
    preference_type: PreferenceType
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_dates(self) -> "PreferenceCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class PreferenceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    preference_type: Optional[PreferenceType] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class PreferenceOut(BaseModel):
    id: UUID
    company_id: UUID
    employee_id: UUID
    start_date: date
    end_date: date
    preference_type: str
    notes: Optional[str] = None
    status: str
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
