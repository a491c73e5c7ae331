# backend/scaleflow/models/swap_request.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from scaleflow.db.base import Base

SWAP_PENDING_EMPLOYEE = "pending_employee_approval"
SWAP_PENDING_MANAGER = "pending_manager_approval"
SWAP_APPROVED = "approved"
SWAP_REJECTED = "rejected"
SWAP_CANCELLED = "cancelled"

SWAP_PENDING_STATUSES = {SWAP_PENDING_EMPLOYEE, SWAP_PENDING_MANAGER}


class SwapRequest(Base):
    __tablename__ = "swap_requests"
    __table_args__ = (
        Index("ix_swap_requests_company_created_at", "company_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )

    requesting_employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    requested_shift_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("shifts.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Both NULL => "give away" request, decided by a scheduler only
    target_employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    target_shift_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("shifts.id", ondelete="SET NULL"),
        nullable=True,
    )

    request_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(40), nullable=False, default=SWAP_PENDING_MANAGER)

    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
