"""initial scheduling schema (companies, users, shifts, templates, preferences, swaps, invitations)

Revision ID: 0b1f3c2a9d10
Revises:
Create Date: 2026-10-19 09:00:00
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0b1f3c2a9d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        # FK to users is added once users exists
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("magic_code", sa.String(length=64), nullable=True),
        sa.Column("magic_code_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="employee"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_company_id", "users", ["company_id"], unique=False)

    with op.batch_alter_table("companies") as batch:
        batch.create_foreign_key(
            "fk_companies_owner_id_users", "users", ["owner_id"], ["id"], ondelete="SET NULL"
        )

    op.create_table(
        "shifts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("role", sa.String(length=30), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_shifts_company_start_time", "shifts", ["company_id", "start_time"], unique=False)
    op.create_index("ix_shifts_employee_start_time", "shifts", ["employee_id", "start_time"], unique=False)

    op.create_table(
        "shift_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=True),
        sa.Column("duration_hours", sa.Float(), nullable=False),
        sa.Column("default_start_time", sa.String(length=5), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_shift_templates_company_id", "shift_templates", ["company_id"], unique=False)

    op.create_table(
        "preferences",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("preference_type", sa.String(length=30), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_preferences_employee_id", "preferences", ["employee_id"], unique=False)
    op.create_index("ix_preferences_company_created_at", "preferences", ["company_id", "created_at"], unique=False)

    op.create_table(
        "swap_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requesting_employee_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requested_shift_id", sa.Uuid(), sa.ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("target_employee_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("target_shift_id", sa.Uuid(), sa.ForeignKey("shifts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("request_notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="pending_manager_approval"),
        sa.Column("reviewed_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_swap_requests_company_created_at", "swap_requests", ["company_id", "created_at"], unique=False)

    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("token", sa.String(length=200), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("invited_by_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_by_user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("token", name="uq_invitations_token"),
    )
    op.create_index("ix_invitations_company_email", "invitations", ["company_id", "email"], unique=False)
    op.create_index("ix_invitations_company_created_at", "invitations", ["company_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_invitations_company_created_at", table_name="invitations")
    op.drop_index("ix_invitations_company_email", table_name="invitations")
    op.drop_table("invitations")

    op.drop_index("ix_swap_requests_company_created_at", table_name="swap_requests")
    op.drop_table("swap_requests")

    op.drop_index("ix_preferences_company_created_at", table_name="preferences")
    op.drop_index("ix_preferences_employee_id", table_name="preferences")
    op.drop_table("preferences")

    op.drop_index("ix_shift_templates_company_id", table_name="shift_templates")
    op.drop_table("shift_templates")

    op.drop_index("ix_shifts_employee_start_time", table_name="shifts")
    op.drop_index("ix_shifts_company_start_time", table_name="shifts")
    op.drop_table("shifts")

    with op.batch_alter_table("companies") as batch:
        batch.drop_constraint("fk_companies_owner_id_users", type_="foreignkey")

    op.drop_index("ix_users_company_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("companies")
