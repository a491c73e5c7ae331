# backend/scaleflow/models/workload.py

import uuid
from datetime import date as date_type, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from scaleflow.db.base import Base

DEFAULT_DEPARTMENT = "General"


class WorkloadMetric(Base):
    """Planned vs. scheduled capacity for one company, day and department."""

    __tablename__ = "workload_metrics"
    __table_args__ = (
        UniqueConstraint("company_id", "date", "department", name="uq_workload_metrics_company_date_department"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False, default=DEFAULT_DEPARTMENT)

    planned_capacity_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    scheduled_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    required_staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scheduled_staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    actual_staff_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def utilization_rate(self) -> float:
        # Percent of planned capacity that is scheduled
        if not self.planned_capacity_hours:
            return 0.0
        return round(self.scheduled_hours / self.planned_capacity_hours * 100, 2)

    @property
    def staffing_gap(self) -> int:
        # < 0 => understaffed
        return self.scheduled_staff_count - self.required_staff_count


class WorkloadTemplate(Base):
    __tablename__ = "workload_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    department: Mapped[str] = mapped_column(String(100), nullable=False, default=DEFAULT_DEPARTMENT)

    template_capacity_hours: Mapped[float] = mapped_column(Float, nullable=False)
    template_staff_count: Mapped[int] = mapped_column(Integer, nullable=False)

    # ["monday", ...] and [1..12]; empty => every day / month
    applies_to_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    applies_to_months: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
