from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import require_capabilities
from scaleflow.api.deps.session import get_current_company_id
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.db.session import get_db
from scaleflow.models.shift_template import ShiftTemplate
from scaleflow.schemas.shift_template import (
    ShiftTemplateCreate,
    ShiftTemplateOut,
    ShiftTemplateUpdate,
)

router = APIRouter(prefix="/shift-templates", tags=["shift-templates"])

_require_schedulers = require_capabilities(Capability.MANAGE_SCHEDULES)


async def _load_template(db: AsyncSession, company_id: uuid.UUID, template_id: uuid.UUID) -> ShiftTemplate:
    template = await db.get(ShiftTemplate, template_id)
    if template is None or template.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift template not found")
    return template


@router.get("", response_model=List[ShiftTemplateOut])
async def list_shift_templates(
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    res = await db.execute(
        select(ShiftTemplate)
        .where(ShiftTemplate.company_id == company_id)
        .order_by(ShiftTemplate.name)
    )
    return list(res.scalars().all())


@router.post("", response_model=ShiftTemplateOut, status_code=status.HTTP_201_CREATED)
async def create_shift_template(
    payload: ShiftTemplateCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    template = ShiftTemplate(
        company_id=company_id,
        name=payload.name,
        role=payload.role.value if payload.role else None,
        duration_hours=payload.duration_hours,
        default_start_time=payload.default_start_time,
        notes=payload.notes,
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


@router.patch("/{template_id}", response_model=ShiftTemplateOut)
async def update_shift_template(
    template_id: uuid.UUID,
    payload: ShiftTemplateUpdate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    for required in ("name", "duration_hours"):
        if required in data and data[required] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{required} cannot be cleared",
            )

    template = await _load_template(db, company_id, template_id)

    if "role" in data and data["role"] is not None:
        data["role"] = data["role"].value
    for field, value in data.items():
        setattr(template, field, value)

    await db.commit()
    await db.refresh(template)
    return template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    template = await _load_template(db, company_id, template_id)
    await db.delete(template)
    await db.commit()
    return None
