# backend/scaleflow/schemas/auth.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, field_validator

_URL = TypeAdapter(AnyHttpUrl)


def _normalize_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    v = " ".join(value.strip().split())
    return v or None


def _normalize_avatar_url(value: Optional[str]) -> Optional[str]:
    # "" clears the avatar
    if value is None:
        return None
    v = value.strip()
    if not v:
        return None
    try:
        _URL.validate_python(v)
    except ValueError:
        raise ValueError("Please enter a valid URL.")
    return v


class MagicCodeRequest(BaseModel):
    email: EmailStr


class MagicCodeVerify(BaseModel):
    email: EmailStr
    code: str = Field(min_length=4, max_length=64)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_name(v)

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_avatar_url(v)


class MeResponse(BaseModel):
    id: UUID
    email: EmailStr
    is_active: bool

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    role: Optional[str] = None
    company_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class PermissionsResponse(BaseModel):
    user_id: Optional[str]
    role: Optional[str]
    company_id: Optional[str]
    permissions: Dict[str, bool]
    granted: List[str]
    capabilities: List[str]
    assignable_roles: List[str]
    accessible_paths: List[str] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: Dict[str, Any], accessible_paths: List[str]) -> "PermissionsResponse":
        return cls(**summary, accessible_paths=accessible_paths)
