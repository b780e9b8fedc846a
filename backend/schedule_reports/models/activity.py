"""
Schedule Reports - Activity Progress Model
One scheduled occurrence of an activity for a student
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schedule_reports.core.database import Base

if TYPE_CHECKING:
    from schedule_reports.models.user import Student


class ProgressStatus(str, Enum):
    """Lifecycle of a scheduled activity occurrence."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ActivityProgress(Base):
    """
    Created when a schedule instance is generated, updated when the
    student completes or skips it. Rows are never deleted; retired rows
    get is_active = False.
    """

    __tablename__ = "activity_progress"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    student_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("students.id", ondelete="CASCADE"),
        index=True
    )
    schedule_instance_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    activity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # When it was scheduled
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    day_of_week: Mapped[int] = mapped_column(Integer)  # 0 = Monday ... 6 = Sunday

    # Activity definition as it was at assignment time ({"type": ..., "title": ...})
    activity_snapshot: Mapped[dict | None] = mapped_column(JSON, default=dict, nullable=True)

    # Outcome
    status: Mapped[ProgressStatus] = mapped_column(String(20), default=ProgressStatus.PENDING)
    points_earned: Mapped[float] = mapped_column(Float, default=0.0)
    time_spent: Mapped[float | None] = mapped_column(Float, nullable=True)  # minutes
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="activity_progress")
