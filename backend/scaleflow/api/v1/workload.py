from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.api.deps.permissions import require_capabilities
from scaleflow.api.deps.session import get_current_company_id
from scaleflow.auth.permissions import Capability, SessionPermissions
from scaleflow.db.session import get_db
from scaleflow.models.workload import DEFAULT_DEPARTMENT, WorkloadMetric, WorkloadTemplate
from scaleflow.schemas.workload import (
    WorkloadMetricOut,
    WorkloadMetricUpsert,
    WorkloadSummary,
    WorkloadTemplateApply,
    WorkloadTemplateCreate,
    WorkloadTemplateOut,
    WorkloadTemplateUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workload", tags=["workload"])

_require_reports = require_capabilities(Capability.VIEW_REPORTS)
_require_schedulers = require_capabilities(Capability.MANAGE_SCHEDULES)


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end must be on or after start",
        )


async def _metrics_between(
    db: AsyncSession,
    company_id: uuid.UUID,
    start: date,
    end: date,
    department: Optional[str] = None,
) -> list[WorkloadMetric]:
    stmt = select(WorkloadMetric).where(
        WorkloadMetric.company_id == company_id,
        WorkloadMetric.date >= start,
        WorkloadMetric.date <= end,
    )
    if department:
        stmt = stmt.where(WorkloadMetric.department == department)
    res = await db.execute(stmt.order_by(WorkloadMetric.date, WorkloadMetric.department))
    return list(res.scalars().all())


async def _find_metric(db: AsyncSession, company_id: uuid.UUID, day: date, department: str) -> Optional[WorkloadMetric]:
    res = await db.execute(
        select(WorkloadMetric).where(
            WorkloadMetric.company_id == company_id,
            WorkloadMetric.date == day,
            WorkloadMetric.department == department,
        )
    )
    return res.scalar_one_or_none()


async def _load_template(db: AsyncSession, company_id: uuid.UUID, template_id: uuid.UUID) -> WorkloadTemplate:
    template = await db.get(WorkloadTemplate, template_id)
    if template is None or template.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workload template not found")
    return template


def summarize(metrics: list[WorkloadMetric]) -> WorkloadSummary:
    if not metrics:
        return WorkloadSummary(
            days=0,
            avg_utilization=0,
            total_scheduled_hours=0,
            total_planned_hours=0,
            avg_staffing_gap=0,
            days_under_staffed=0,
            days_over_staffed=0,
        )

    n = len(metrics)
    return WorkloadSummary(
        days=n,
        avg_utilization=round(sum(m.utilization_rate for m in metrics) / n, 2),
        total_scheduled_hours=sum(m.scheduled_hours for m in metrics),
        total_planned_hours=sum(m.planned_capacity_hours for m in metrics),
        avg_staffing_gap=round(sum(m.staffing_gap for m in metrics) / n, 2),
        days_under_staffed=sum(1 for m in metrics if m.staffing_gap < 0),
        days_over_staffed=sum(1 for m in metrics if m.staffing_gap > 0),
    )


# =========================================================
# METRICS
# =========================================================
@router.get("/metrics", response_model=List[WorkloadMetricOut])
async def list_metrics(
    start: date = Query(...),
    end: date = Query(...),
    department: Optional[str] = Query(default=None, max_length=100),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_reports),
):
    _check_range(start, end)
    return await _metrics_between(db, company_id, start, end, department)


@router.get("/metrics/{day}", response_model=WorkloadMetricOut)
async def get_metric(
    day: date,
    department: str = Query(default=DEFAULT_DEPARTMENT, max_length=100),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_reports),
):
    metric = await _find_metric(db, company_id, day, department)
    if metric is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workload metric not found")
    return metric


@router.put("/metrics", response_model=WorkloadMetricOut)
async def upsert_metric(
    payload: WorkloadMetricUpsert,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    """
    One row per (company, date, department); an existing row is overwritten.
    """
    metric = await _find_metric(db, company_id, payload.date, payload.department)
    if metric is None:
        metric = WorkloadMetric(company_id=company_id)
        db.add(metric)

    for field, value in payload.model_dump().items():
        setattr(metric, field, value)

    await db.commit()
    await db.refresh(metric)
    return metric


@router.delete("/metrics/{metric_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_metric(
    metric_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    metric = await db.get(WorkloadMetric, metric_id)
    if metric is None or metric.company_id != company_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workload metric not found")

    await db.delete(metric)
    await db.commit()
    return None


@router.get("/summary", response_model=WorkloadSummary)
async def workload_summary(
    start: date = Query(...),
    end: date = Query(...),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_reports),
):
    _check_range(start, end)
    return summarize(await _metrics_between(db, company_id, start, end))


# =========================================================
# TEMPLATES
# =========================================================
@router.get("/templates", response_model=List[WorkloadTemplateOut])
async def list_templates(
    active_only: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_reports),
):
    stmt = select(WorkloadTemplate).where(WorkloadTemplate.company_id == company_id)
    if active_only:
        stmt = stmt.where(WorkloadTemplate.is_active == True)  # noqa: E712
    res = await db.execute(stmt.order_by(WorkloadTemplate.name))
    return list(res.scalars().all())


@router.get("/templates/{template_id}", response_model=WorkloadTemplateOut)
async def get_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_reports),
):
    return await _load_template(db, company_id, template_id)


@router.post("/templates", response_model=WorkloadTemplateOut, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: WorkloadTemplateCreate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(_require_schedulers),
):
    template = WorkloadTemplate(company_id=company_id, created_by=perms.user_id, **payload.model_dump())
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


@router.patch("/templates/{template_id}", response_model=WorkloadTemplateOut)
async def update_template(
    template_id: uuid.UUID,
    payload: WorkloadTemplateUpdate,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    template = await _load_template(db, company_id, template_id)
    for field, value in data.items():
        setattr(template, field, value)

    await db.commit()
    await db.refresh(template)
    return template


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    _perms: SessionPermissions = Depends(_require_schedulers),
):
    template = await _load_template(db, company_id, template_id)
    await db.delete(template)
    await db.commit()
    return None


@router.post("/templates/{template_id}/apply", response_model=List[WorkloadMetricOut])
async def apply_template(
    template_id: uuid.UUID,
    payload: WorkloadTemplateApply,
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID = Depends(get_current_company_id),
    perms: SessionPermissions = Depends(_require_schedulers),
):
    """
    Set planned capacity and required staff from the template on each date.
    Scheduled and actual figures of existing rows are kept.
    """
    template = await _load_template(db, company_id, template_id)

    metrics: list[WorkloadMetric] = []
    for day in sorted(set(payload.dates)):
        metric = await _find_metric(db, company_id, day, template.department)
        if metric is None:
            metric = WorkloadMetric(
                company_id=company_id,
                date=day,
                department=template.department,
                scheduled_hours=0,
                scheduled_staff_count=0,
            )
            db.add(metric)
        metric.planned_capacity_hours = template.template_capacity_hours
        metric.required_staff_count = template.template_staff_count
        metric.notes = f"Applied from template: {template.name}"
        metrics.append(metric)

    await db.commit()
    for metric in metrics:
        await db.refresh(metric)

    logger.info("user %s applied workload template %s to %d day(s)", perms.user_id, template.id, len(metrics))
    return metrics
