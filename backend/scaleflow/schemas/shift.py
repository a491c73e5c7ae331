from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scaleflow.core.clock import as_utc
from scaleflow.core.roles import Role


class ShiftCreate(BaseModel):
    employee_id: Optional[UUID] = None
    role: Optional[Role] = None
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = Field(default=None, max_length=500)
    published: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v: datetime) -> datetime:
        # Times without an offset are taken as UTC.
        return as_utc(v)

    @model_validator(mode="after")
    def check_times(self) -> "ShiftCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ShiftUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    employee_id: Optional[UUID] = None
    role: Optional[Role] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    published: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v: Optional[datetime]) -> datetime:
        if v is None:
            raise ValueError("cannot be cleared")
        return as_utc(v)

    @field_validator("published")
    @classmethod
    def reject_null_published(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("cannot be cleared")
        return v

    @model_validator(mode="after")
    def check_times(self) -> "ShiftUpdate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ShiftBulkCreate(BaseModel):
    shifts: List[ShiftCreate] = Field(min_length=1, max_length=500)


class ShiftPublish(BaseModel):
    shift_ids: List[UUID] = Field(min_length=1)


class ShiftOut(BaseModel):
    id: UUID
    company_id: UUID
    employee_id: Optional[UUID] = None
    role: Optional[str] = None
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None
    published: bool
    created_at: datetime

    model_config = {"from_attributes": True}
