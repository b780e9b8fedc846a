"""
Schedule Reports - Student Model
SQLAlchemy model for the student profile read by the report engine
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schedule_reports.core.database import Base

if TYPE_CHECKING:
    from schedule_reports.models.activity import ActivityProgress


class Student(Base):
    """Student profile with the lifetime gamification counters."""

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Profile
    name: Mapped[str] = mapped_column(String(200))
    school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Gamification - kept in sync by the student app, never by reports
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)
    streak: Mapped[int] = mapped_column(Integer, default=0)

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
    activity_progress: Mapped[list["ActivityProgress"]] = relationship(
        "ActivityProgress",
        back_populates="student",
        cascade="all, delete-orphan"
    )
