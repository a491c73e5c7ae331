"""
Decision table for permission-gated UI elements.

The caller supplies what it has on hand (role allow-list, required
capabilities, whether it has fallback content) and receives one of four fixed
render variants. Rendering stays on the client.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional

from scaleflow.auth.permissions import Capability, RoleLike, get_role_permissions
from scaleflow.core.roles import Role, parse_role

DEFAULT_DISABLED_TOOLTIP = "You do not have permission to perform this action"
DEFAULT_FALLBACK_TOOLTIP = "You do not have permission to view this content"

DISABLED_ATTRIBUTES: dict[str, Any] = {"disabled": True, "aria-disabled": True}


class GateVariant(str, enum.Enum):
    ALLOW = "allow"
    DISABLED = "disabled"
    FALLBACK = "fallback"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class GateRequirements:
    # None => no role restriction; an empty set admits nobody.
    allowed_roles: Optional[FrozenSet[Role]] = None
    capabilities: FrozenSet[Capability] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        allowed_roles: Optional[Iterable[RoleLike]] = None,
        capabilities: Optional[Iterable[Capability | str]] = None,
    ) -> "GateRequirements":
        roles = None
        given = list(allowed_roles or [])
        if given:
            # Unknown names match nobody, so a list of only unknown names stays a restriction.
            roles = frozenset(r for r in (parse_role(x) for x in given) if r is not None)
        return cls(
            allowed_roles=roles,
            capabilities=frozenset(Capability(c) for c in (capabilities or [])),
        )


@dataclass(frozen=True)
class GateDecision:
    variant: GateVariant
    attributes: dict[str, Any] = field(default_factory=dict)
    tooltip: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.variant is GateVariant.ALLOW


def is_gate_satisfied(role: RoleLike, requirements: GateRequirements) -> bool:
    r = parse_role(role)
    if requirements.allowed_roles is not None:
        if r is None or r not in requirements.allowed_roles:
            return False

    perms = get_role_permissions(r)
    return all(perms.has(cap) for cap in requirements.capabilities)


def evaluate_gate(
    role: RoleLike,
    requirements: GateRequirements,
    *,
    has_fallback: bool = False,
    disable_instead: bool = False,
    show_tooltip: bool = False,
    tooltip_message: Optional[str] = None,
) -> GateDecision:
    if is_gate_satisfied(role, requirements):
        return GateDecision(variant=GateVariant.ALLOW)

    if disable_instead:
        return GateDecision(
            variant=GateVariant.DISABLED,
            attributes=dict(DISABLED_ATTRIBUTES),
            tooltip=(tooltip_message or DEFAULT_DISABLED_TOOLTIP) if show_tooltip else None,
        )

    if has_fallback:
        return GateDecision(
            variant=GateVariant.FALLBACK,
            tooltip=(tooltip_message or DEFAULT_FALLBACK_TOOLTIP) if show_tooltip else None,
        )

    return GateDecision(variant=GateVariant.HIDDEN)
