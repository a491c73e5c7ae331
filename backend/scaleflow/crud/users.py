# backend/scaleflow/crud/users.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.core.roles import Role
from scaleflow.models.user import User


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email.strip().lower())
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_company_member(
    db: AsyncSession,
    company_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[User]:
    """
    The user, if they are an active member of company_id. None otherwise.
    """
    stmt = (
        select(User)
        .where(User.id == user_id)
        .where(User.company_id == company_id)
        .where(User.is_active.is_(True))
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def count_members_by_role(db: AsyncSession, company_id: uuid.UUID) -> dict[str, int]:
    """
    Active members of a company grouped by stored role string.
    """
    stmt = (
        select(User.role, func.count(User.id))
        .where(User.company_id == company_id)
        .where(User.is_active.is_(True))
        .group_by(User.role)
    )
    res = await db.execute(stmt)
    return {role: int(n) for role, n in res.all()}


async def count_active_system_admins(db: AsyncSession) -> int:
    stmt = (
        select(func.count(User.id))
        .where(User.role == Role.SYSTEM_ADMIN.value)
        .where(User.is_active.is_(True))
    )
    res = await db.execute(stmt)
    return int(res.scalar() or 0)
