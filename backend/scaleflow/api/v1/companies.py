from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import require_capabilities, require_route
from scaleflow.api.deps.session import get_current_company_id
from scaleflow.api.v1.auth import get_current_user
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.core.roles import Role
from scaleflow.core.routes import CREATE_COMPANY_PATH
from scaleflow.db.session import get_db
from scaleflow.models.company import Company
from scaleflow.models.user import User
from scaleflow.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])


async def _load_company(db: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    _perms: SessionPermissions = Depends(require_route(CREATE_COMPANY_PATH)),
):
    """
    Create a company for a user who has none yet.
    The creator becomes its owner and its first manager.
    """
    if user.company_id is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You already belong to a company",
        )

    company = Company(
        name=payload.name,
        owner_id=user.id,
        settings=payload.settings.model_dump(exclude_none=True) if payload.settings else None,
    )
    db.add(company)
    await db.flush()

    user.company_id = company.id
    user.role = Role.MANAGER.value

    await db.commit()
    await db.refresh(company)

    logger.info("company %s created by user %s", company.id, user.id)
    return company


@router.get("/current", response_model=CompanyOut)
async def get_current_company(
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
):
    return await _load_company(db, company_id)


@router.patch("/current", response_model=CompanyOut)
async def update_current_company(
    payload: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(require_capabilities(Capability.MANAGE_COMPANY)),
):
    """
    Rename the company and/or merge new keys into its settings.
    """
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    company = await _load_company(db, company_id)

    if payload.name is not None:
        company.name = payload.name

    if payload.settings is not None:
        merged = dict(company.settings or {})
        merged.update(payload.settings.model_dump(exclude_none=True))
        company.settings = merged

    await db.commit()
    await db.refresh(company)
    return company
