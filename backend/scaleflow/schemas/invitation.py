from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from scaleflow.core.roles import Role


class InvitationCreate(BaseModel):
    email: EmailStr
    role: Role = Field(default=Role.EMPLOYEE)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class FirstAdminInviteCreate(BaseModel):
    email: EmailStr
    role: Role = Field(default=Role.SYSTEM_ADMIN)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class InvitationOut(BaseModel):
    id: UUID
    company_id: Optional[UUID] = None
    email: EmailStr
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    token: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    accepted_by_user_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class InvitationAccept(BaseModel):
    token: str = Field(..., description="Invitation token")


class InvitationSent(BaseModel):
    message: str
    invitation: InvitationOut
