from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from scaleflow.api.deps.session import get_session_permissions
from scaleflow.auth.permissions import SessionPermissions
from scaleflow.core.feature_flags import FeatureFlag, is_feature_enabled, parse_flag
from scaleflow.schemas.feature_flag import FeatureFlagOut

router = APIRouter(prefix="/feature-flags", tags=["feature-flags"])


def _evaluate(flag: FeatureFlag, perms: SessionPermissions) -> FeatureFlagOut:
    return FeatureFlagOut(
        name=flag.value,
        enabled=is_feature_enabled(flag, role=perms.role, user_id=perms.user_id),
    )


@router.get("", response_model=List[FeatureFlagOut])
async def list_feature_flags(
    perms: SessionPermissions = Depends(get_session_permissions),
):
    """
    Every known flag, evaluated for the caller in the running environment.
    """
    return [_evaluate(f, perms) for f in FeatureFlag]


@router.get("/{flag}", response_model=FeatureFlagOut)
async def get_feature_flag(
    flag: str,
    perms: SessionPermissions = Depends(get_session_permissions),
):
    f = parse_flag(flag)
    if f is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown feature flag")
    return _evaluate(f, perms)
