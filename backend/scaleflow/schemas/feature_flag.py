from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class FeatureFlagOut(BaseModel):
    name: str
    enabled: bool


class FeatureFlagConfigOut(BaseModel):
    name: str
    enabled: bool
    description: str
    rollout_percentage: Optional[int] = None
    environments: Optional[List[str]] = None
    roles: Optional[List[str]] = None
