"""
Schedule Reports - Test Configuration
Pytest fixtures and configuration for testing
"""
import itertools
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from schedule_reports.api.deps import get_report_service
from schedule_reports.core.database import Base
from schedule_reports.main import app
from schedule_reports.models.activity import ProgressStatus
from schedule_reports.schemas.report import (
    ActivityProgressRecord,
    ActivitySnapshot,
    StudentProfile,
)
from schedule_reports.services.report import ReportService
from schedule_reports.services.report_cache import TTLReportCache
from schedule_reports.services.report_source import InMemoryReportDataSource


# Friday of ISO week 12 (week of Monday 2026-03-16)
NOW = datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc)
CURRENT_WEEK_MONDAY = datetime(2026, 3, 16, 9, 0, tzinfo=timezone.utc)

_record_ids = itertools.count(1)


def make_record(
    scheduled: datetime,
    status: str = "completed",
    student_id: str = "student-1",
    points: float = 0.0,
    time_spent: float = 0.0,
    completed_at: Optional[datetime] = None,
    activity_type: str = "quiz",
    is_active: bool = True,
) -> ActivityProgressRecord:
    """Build a record; completed records finish on their scheduled day unless told otherwise."""
    status = ProgressStatus(status)
    if completed_at is None and status == ProgressStatus.COMPLETED:
        completed_at = scheduled + timedelta(hours=1)

    return ActivityProgressRecord(
        id=f"progress-{next(_record_ids)}",
        student_id=student_id,
        scheduled_date=scheduled,
        day_of_week=scheduled.weekday(),
        status=status,
        points_earned=points,
        time_spent=time_spent,
        completed_at=completed_at,
        activity_snapshot=ActivitySnapshot(type=activity_type, title=f"{activity_type} activity"),
        is_active=is_active,
    )


def week_monday(weeks_ago: int) -> datetime:
    """09:00 on the Monday of the week `weeks_ago` weeks before the current one."""
    return CURRENT_WEEK_MONDAY - timedelta(weeks=weeks_ago)


class FakeClock:
    """Monotonic clock the tests can move forward."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class CountingDataSource(InMemoryReportDataSource):
    """In-memory source that remembers how often it was queried."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.profile_calls = 0
        self.record_calls = 0

    async def fetch_student_profile(self, student_id: str) -> StudentProfile:
        self.profile_calls += 1
        return await super().fetch_student_profile(student_id)

    async def fetch_recent_activity_records(self, student_id, since, max_count):
        self.record_calls += 1
        return await super().fetch_recent_activity_records(student_id, since, max_count)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_profile() -> StudentProfile:
    """Sample student profile."""
    return StudentProfile(
        name="Sarah Student",
        school="Central School",
        grade="5th grade",
        total_points=340,
        level=4,
        streak=6,
    )


@pytest.fixture
def data_source(sample_profile: StudentProfile) -> CountingDataSource:
    return CountingDataSource(profiles={"student-1": sample_profile})


@pytest.fixture
def make_service(data_source: CountingDataSource, clock: FakeClock) -> Callable[..., ReportService]:
    """Factory for services that share the fixed clock and NOW."""

    def _make(source=None, **kwargs: Any) -> ReportService:
        return ReportService(
            source=source or data_source,
            cache=kwargs.pop("cache", TTLReportCache(ttl_seconds=300, clock=clock)),
            now=lambda: NOW,
            **kwargs,
        )

    return _make


@pytest.fixture
def report_service(make_service) -> ReportService:
    return make_service()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database per test, tables created from the models."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(report_service: ReportService) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client backed by the in-memory report service."""
    app.dependency_overrides[get_report_service] = lambda: report_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
