"""add workload metrics and templates

Revision ID: 4d2e8a7c5b31
Revises: 0b1f3c2a9d10
Create Date: 2026-10-20 10:00:00
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4d2e8a7c5b31"
down_revision: Union[str, None] = "0b1f3c2a9d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "workload_metrics",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False, server_default="General"),
        sa.Column("planned_capacity_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("scheduled_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("actual_hours", sa.Float(), nullable=True),
        sa.Column("required_staff_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scheduled_staff_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actual_staff_count", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("company_id", "date", "department", name="uq_workload_metrics_company_date_department"),
    )

    op.create_table(
        "workload_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=False, server_default="General"),
        sa.Column("template_capacity_hours", sa.Float(), nullable=False),
        sa.Column("template_staff_count", sa.Integer(), nullable=False),
        sa.Column("applies_to_days", sa.JSON(), nullable=False),
        sa.Column("applies_to_months", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_workload_templates_company_id", "workload_templates", ["company_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_workload_templates_company_id", table_name="workload_templates")
    op.drop_table("workload_templates")
    op.drop_table("workload_metrics")
