# backend/scaleflow/core/feature_flags.py
# Static feature flags, gated by environment, role and a per-user rollout bucket.
from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from scaleflow.core.config import settings
from scaleflow.core.roles import Role, parse_role

logger = logging.getLogger(__name__)


class FeatureFlag(str, enum.Enum):
    # UI
    CALENDAR_VIEW = "calendar-view"
    DARK_MODE_AUTO = "dark-mode-auto"
    NEW_DASHBOARD = "new-dashboard"

    # Functionality
    SHIFT_BIDDING = "shift-bidding"
    IN_APP_MESSAGING = "in-app-messaging"
    ADVANCED_ANALYTICS = "advanced-analytics"

    # Experiments
    IMPROVED_ONBOARDING = "improved-onboarding"
    AI_SCHEDULING = "ai-scheduling"


@dataclass(frozen=True)
class FeatureFlagConfig:
    enabled: bool
    description: str
    rollout_percentage: Optional[int] = None  # 0..100
    environments: Optional[tuple[str, ...]] = None
    roles: Optional[tuple[Role, ...]] = None


FEATURE_FLAG_CONFIG: dict[FeatureFlag, FeatureFlagConfig] = {
    FeatureFlag.CALENDAR_VIEW: FeatureFlagConfig(
        enabled=False,
        description="Interactive calendar view for schedules",
        rollout_percentage=0,
        environments=("development",),
    ),
    FeatureFlag.DARK_MODE_AUTO: FeatureFlagConfig(
        enabled=True,
        description="Automatic dark mode based on system preferences",
        environments=("development", "production"),
    ),
    FeatureFlag.NEW_DASHBOARD: FeatureFlagConfig(
        enabled=False,
        description="New dashboard with improved analytics",
        rollout_percentage=10,
        roles=(Role.MANAGER, Role.SYSTEM_ADMIN),
    ),
    FeatureFlag.SHIFT_BIDDING: FeatureFlagConfig(
        enabled=False,
        description="Allow employees to bid on available shifts",
        environments=("development",),
    ),
    FeatureFlag.IN_APP_MESSAGING: FeatureFlagConfig(
        enabled=False,
        description="Direct messaging between users",
        environments=("development",),
    ),
    FeatureFlag.ADVANCED_ANALYTICS: FeatureFlagConfig(
        enabled=False,
        description="Advanced analytics dashboard",
        roles=(Role.MANAGER, Role.SYSTEM_ADMIN),
    ),
    FeatureFlag.IMPROVED_ONBOARDING: FeatureFlagConfig(
        enabled=True,
        description="Improved onboarding flow",
        rollout_percentage=50,
    ),
    FeatureFlag.AI_SCHEDULING: FeatureFlagConfig(
        enabled=False,
        description="AI-powered shift scheduling suggestions",
        environments=("development",),
        roles=(Role.MANAGER,),
    ),
}


def parse_flag(value: FeatureFlag | str | None) -> Optional[FeatureFlag]:
    if isinstance(value, FeatureFlag):
        return value
    if not isinstance(value, str):
        return None
    try:
        return FeatureFlag(value.strip().lower())
    except ValueError:
        return None


def normalize_environment(value: str | None) -> str:
    env = (value or "").strip().lower()
    return {"prod": "production", "dev": "development"}.get(env, env)


def rollout_bucket(user_id: uuid.UUID | str) -> int:
    """
    Stable 0..99 bucket for a user id (31-multiplier string hash, 32-bit wrap).
    """
    h = 0
    for ch in str(user_id):
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) % 100


def is_feature_enabled(
    flag: FeatureFlag | str | None,
    *,
    role: Role | str | None = None,
    user_id: uuid.UUID | str | None = None,
    environment: str | None = None,
) -> bool:
    """
    Unknown flags are off. A role-restricted flag needs a matching role, and a
    partial rollout needs a user id whose bucket falls under the percentage.
    """
    f = parse_flag(flag)
    if f is None:
        logger.warning("unknown feature flag %r", flag)
        return False

    cfg = FEATURE_FLAG_CONFIG[f]
    if not cfg.enabled:
        return False

    if cfg.environments is not None:
        env = normalize_environment(environment if environment is not None else settings.ENVIRONMENT)
        if env not in cfg.environments:
            return False

    if cfg.roles is not None:
        r = parse_role(role)
        if r is None or r not in cfg.roles:
            return False

    if cfg.rollout_percentage is not None and cfg.rollout_percentage < 100:
        if user_id is None:
            return False
        if rollout_bucket(user_id) >= cfg.rollout_percentage:
            return False

    return True


def get_enabled_features(
    *,
    role: Role | str | None = None,
    user_id: uuid.UUID | str | None = None,
    environment: str | None = None,
) -> list[FeatureFlag]:
    return [
        f
        for f in FeatureFlag
        if is_feature_enabled(f, role=role, user_id=user_id, environment=environment)
    ]
