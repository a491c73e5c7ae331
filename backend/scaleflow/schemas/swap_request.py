from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class SwapRequestCreate(BaseModel):
    requested_shift_id: UUID
    target_employee_id: Optional[UUID] = None
    target_shift_id: Optional[UUID] = None
    request_notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_target(self) -> "SwapRequestCreate":
        if self.target_employee_id and not self.target_shift_id:
            raise ValueError("If you select a target employee, you must also select a target shift.")
        if self.target_shift_id and not self.target_employee_id:
            raise ValueError("A target shift requires a target employee.")
        return self


class SwapRequestOut(BaseModel):
    id: UUID
    company_id: UUID
    requesting_employee_id: UUID
    requested_shift_id: UUID
    target_employee_id: Optional[UUID] = None
    target_shift_id: Optional[UUID] = None
    request_notes: Optional[str] = None
    status: str
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
