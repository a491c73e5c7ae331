from __future__ import annotations

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scaleflow.core.roles import Role

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def _validate_hhmm(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not HHMM_RE.match(v):
        raise ValueError("Invalid time format (HH:mm).")
    return v


def _validate_template_name(v: str) -> str:
    name = (v or "").strip()
    if not name:
        raise ValueError("Template name is required.")
    return name


class ShiftTemplateCreate(BaseModel):
    name: str = Field(max_length=200)
    duration_hours: float = Field(ge=0.5, le=24)
    default_start_time: Optional[str] = None
    role: Optional[Role] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_template_name(v)

    @field_validator("default_start_time")
    @classmethod
    def validate_start(cls, v: Optional[str]) -> Optional[str]:
        return _validate_hhmm(v)


class ShiftTemplateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=200)
    duration_hours: Optional[float] = Field(default=None, ge=0.5, le=24)
    default_start_time: Optional[str] = None
    role: Optional[Role] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _validate_template_name(v)

    @field_validator("default_start_time")
    @classmethod
    def validate_start(cls, v: Optional[str]) -> Optional[str]:
        return _validate_hhmm(v)


class ShiftTemplateOut(BaseModel):
    id: UUID
    company_id: UUID
    name: str
    role: Optional[str] = None
    duration_hours: float
    default_start_time: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
