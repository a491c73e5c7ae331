from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from scaleflow.auth.permissions import Capability
from scaleflow.auth.gate import GateVariant
from scaleflow.core.roles import Role


class GateRequest(BaseModel):
    allowed_roles: Optional[List[Role]] = None
    capabilities: List[Capability] = Field(default_factory=list)
    has_fallback: bool = False
    disable_instead: bool = False
    show_tooltip: bool = False
    tooltip_message: Optional[str] = Field(default=None, max_length=300)


class GateResponse(BaseModel):
    variant: GateVariant
    allowed: bool
    attributes: Dict[str, Any] = Field(default_factory=dict)
    tooltip: Optional[str] = None


class RouteOut(BaseModel):
    path: str
    name: str
    description: str
    category: str
    requires_auth: bool
    requires_company: Optional[bool] = None
    allowed_roles: Optional[List[str]] = None


class RouteCheckOut(BaseModel):
    path: str
    outcome: str
    allowed: bool
    redirect_to: Optional[str] = None
