from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

WEEKDAYS = {"monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"}


class CompanySettings(BaseModel):
    # Unknown keys are kept as-is.
    model_config = ConfigDict(extra="allow")

    timezone: Optional[str] = None
    work_week: Optional[List[str]] = None
    default_shift_duration: Optional[float] = Field(default=None, gt=0, le=24)

    @field_validator("work_week")
    @classmethod
    def validate_work_week(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        days = [d.strip().lower() for d in v]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {unknown}")
        return days


def _normalize_company_name(v: str) -> str:
    name = " ".join((v or "").strip().split())
    if not name:
        raise ValueError("Company name cannot be empty.")
    return name


class CompanyCreate(BaseModel):
    name: str = Field(max_length=200)
    settings: Optional[CompanySettings] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _normalize_company_name(v)


class CompanyUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=200)
    settings: Optional[CompanySettings] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _normalize_company_name(v)


class CompanyOut(BaseModel):
    id: UUID
    name: str
    owner_id: Optional[UUID] = None
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}
