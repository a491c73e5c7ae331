from __future__ import annotations

from datetime import date as date_type, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scaleflow.models.workload import DEFAULT_DEPARTMENT
from scaleflow.schemas.company import WEEKDAYS


def _normalize_department(v: Optional[str]) -> str:
    return " ".join((v or "").strip().split()) or DEFAULT_DEPARTMENT


class WorkloadMetricUpsert(BaseModel):
    date: date_type
    department: str = Field(default=DEFAULT_DEPARTMENT, max_length=100)
    planned_capacity_hours: float = Field(ge=0)
    scheduled_hours: float = Field(default=0, ge=0)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    required_staff_count: int = Field(default=0, ge=0)
    scheduled_staff_count: int = Field(default=0, ge=0)
    actual_staff_count: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("department", mode="before")
    @classmethod
    def normalize_department(cls, v: Optional[str]) -> str:
        return _normalize_department(v)


class WorkloadMetricOut(BaseModel):
    id: UUID
    company_id: UUID
    date: date_type
    department: str
    planned_capacity_hours: float
    scheduled_hours: float
    actual_hours: Optional[float] = None
    required_staff_count: int
    scheduled_staff_count: int
    actual_staff_count: Optional[int] = None
    utilization_rate: float
    staffing_gap: int
    notes: Optional[str] = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class WorkloadSummary(BaseModel):
    days: int
    avg_utilization: float
    total_scheduled_hours: float
    total_planned_hours: float
    avg_staffing_gap: float
    days_under_staffed: int
    days_over_staffed: int


def _validate_days(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return None
    days = [d.strip().lower() for d in v]
    unknown = [d for d in days if d not in WEEKDAYS]
    if unknown:
        raise ValueError(f"Unknown weekday(s): {unknown}")
    return days


def _validate_months(v: Optional[List[int]]) -> Optional[List[int]]:
    if v is None:
        return None
    if any(m < 1 or m > 12 for m in v):
        raise ValueError("Months must be between 1 and 12.")
    return sorted(set(v))


class WorkloadTemplateCreate(BaseModel):
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    department: str = Field(default=DEFAULT_DEPARTMENT, max_length=100)
    template_capacity_hours: float = Field(ge=0)
    template_staff_count: int = Field(ge=0)
    applies_to_days: List[str] = Field(default_factory=list)
    applies_to_months: List[int] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = (v or "").strip()
        if not name:
            raise ValueError("Template name is required.")
        return name

    @field_validator("department", mode="before")
    @classmethod
    def normalize_department(cls, v: Optional[str]) -> str:
        return _normalize_department(v)

    @field_validator("applies_to_days")
    @classmethod
    def validate_days(cls, v: List[str]) -> List[str]:
        return _validate_days(v)

    @field_validator("applies_to_months")
    @classmethod
    def validate_months(cls, v: List[int]) -> List[int]:
        return _validate_months(v)


class WorkloadTemplateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    department: Optional[str] = Field(default=None, max_length=100)
    template_capacity_hours: Optional[float] = Field(default=None, ge=0)
    template_staff_count: Optional[int] = Field(default=None, ge=0)
    applies_to_days: Optional[List[str]] = None
    applies_to_months: Optional[List[int]] = None
    is_active: Optional[bool] = None

    @field_validator(
        "name",
        "department",
        "template_capacity_hours",
        "template_staff_count",
        "applies_to_days",
        "applies_to_months",
        "is_active",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("cannot be cleared")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = (v or "").strip()
        if not name:
            raise ValueError("Template name is required.")
        return name

    @field_validator("department")
    @classmethod
    def normalize_department(cls, v: str) -> str:
        return _normalize_department(v)

    @field_validator("applies_to_days")
    @classmethod
    def validate_days(cls, v: List[str]) -> List[str]:
        return _validate_days(v)

    @field_validator("applies_to_months")
    @classmethod
    def validate_months(cls, v: List[int]) -> List[int]:
        return _validate_months(v)


class WorkloadTemplateOut(BaseModel):
    id: UUID
    company_id: UUID
    name: str
    description: Optional[str] = None
    department: str
    template_capacity_hours: float
    template_staff_count: int
    applies_to_days: List[str]
    applies_to_months: List[int]
    is_active: bool
    created_by: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkloadTemplateApply(BaseModel):
    dates: List[date_type] = Field(min_length=1, max_length=366)
