"""
Schedule Reports - Report Data Sources
Where the report engine reads student profiles and activity-progress records from.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schedule_reports.models.activity import ActivityProgress
from schedule_reports.models.user import Student
from schedule_reports.schemas.report import (
    ActivityProgressRecord,
    ActivitySnapshot,
    StudentProfile,
)


class ReportSourceError(Exception):
    """Base error for report data sources."""
    pass


class StudentNotFoundError(ReportSourceError):
    """No student exists with the requested id."""
    pass


class ReportDataSource(ABC):
    """Read-only access to the data a student report is built from."""

    @abstractmethod
    async def fetch_student_profile(self, student_id: str) -> StudentProfile:
        """
        Load a student's profile.

        Raises:
            StudentNotFoundError: If the student does not exist
        """

    @abstractmethod
    async def fetch_recent_activity_records(
        self,
        student_id: str,
        since: datetime,
        max_count: int,
    ) -> List[ActivityProgressRecord]:
        """Active records scheduled at or after since, newest first."""


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are UTC (SQLite drops tzinfo)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlReportDataSource(ReportDataSource):
    """
    Data source backed by the async SQLAlchemy models.

    Each fetch opens its own session so the profile and activity queries
    can run concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def fetch_student_profile(self, student_id: str) -> StudentProfile:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Student).where(Student.id == student_id)
            )
            student = result.scalar_one_or_none()

        if not student:
            raise StudentNotFoundError(f"Student not found: {student_id}")

        return StudentProfile(
            name=student.name or "Student",
            school=student.school or "",
            grade=student.grade or "",
            total_points=student.total_points or 0,
            level=student.level or 1,
            streak=student.streak or 0,
        )

    async def fetch_recent_activity_records(
        self,
        student_id: str,
        since: datetime,
        max_count: int,
    ) -> List[ActivityProgressRecord]:
        query = (
            select(ActivityProgress)
            .where(
                ActivityProgress.student_id == student_id,
                ActivityProgress.is_active.is_(True),
                ActivityProgress.scheduled_date >= since,
            )
            .order_by(ActivityProgress.scheduled_date.desc())
            .limit(max_count)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            rows = result.scalars().all()

        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: ActivityProgress) -> ActivityProgressRecord:
        snapshot = row.activity_snapshot or {}
        return ActivityProgressRecord(
            id=row.id,
            student_id=row.student_id,
            schedule_instance_id=row.schedule_instance_id,
            activity_id=row.activity_id,
            scheduled_date=_as_utc(row.scheduled_date),
            day_of_week=row.day_of_week,
            status=row.status,
            points_earned=row.points_earned or 0.0,
            time_spent=row.time_spent or 0.0,
            started_at=_as_utc(row.started_at),
            completed_at=_as_utc(row.completed_at),
            activity_snapshot=ActivitySnapshot(
                type=snapshot.get("type") or "unknown",
                title=snapshot.get("title") or "",
            ),
            is_active=row.is_active,
        )


class InMemoryReportDataSource(ReportDataSource):
    """Dictionary-backed data source for tests and local tooling."""

    def __init__(
        self,
        profiles: Optional[Dict[str, StudentProfile]] = None,
        records: Optional[Iterable[ActivityProgressRecord]] = None,
    ):
        self.profiles: Dict[str, StudentProfile] = dict(profiles or {})
        self.records: List[ActivityProgressRecord] = list(records or [])

    def add_records(self, records: Iterable[ActivityProgressRecord]) -> None:
        self.records.extend(records)

    async def fetch_student_profile(self, student_id: str) -> StudentProfile:
        profile = self.profiles.get(student_id)
        if profile is None:
            raise StudentNotFoundError(f"Student not found: {student_id}")
        return profile

    async def fetch_recent_activity_records(
        self,
        student_id: str,
        since: datetime,
        max_count: int,
    ) -> List[ActivityProgressRecord]:
        since = _as_utc(since)
        matching = [
            r.model_copy(update={
                "scheduled_date": _as_utc(r.scheduled_date),
                "completed_at": _as_utc(r.completed_at),
            })
            for r in self.records
            if r.student_id == student_id and r.is_active
        ]
        matching = [r for r in matching if r.scheduled_date >= since]
        matching.sort(key=lambda r: r.scheduled_date, reverse=True)
        return matching[:max_count]
