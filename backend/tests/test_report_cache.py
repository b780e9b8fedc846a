"""
Schedule Reports - Report Cache Tests
"""
from schedule_reports.schemas.report import OverallMetrics, StudentReport
from schedule_reports.services.report_cache import TTLReportCache

from conftest import NOW, FakeClock


def _report(student_id: str) -> StudentReport:
    return StudentReport(
        student_id=student_id,
        student_name="Student",
        school="School",
        grade="Grade",
        overall=OverallMetrics(),
        generated_at=NOW,
    )


def test_get_returns_stored_report(clock: FakeClock):
    cache = TTLReportCache(ttl_seconds=300, clock=clock)
    report = _report("student-1")

    cache.set("student-1", report)

    assert cache.get("student-1") is report
    assert cache.get("student-2") is None


def test_entry_expires_after_ttl(clock: FakeClock):
    cache = TTLReportCache(ttl_seconds=300, clock=clock)
    cache.set("student-1", _report("student-1"))

    clock.advance(299)
    assert cache.get("student-1") is not None

    clock.advance(1)
    assert cache.get("student-1") is None
    # Expired entries are dropped on read
    assert len(cache) == 0


def test_set_refreshes_timestamp(clock: FakeClock):
    cache = TTLReportCache(ttl_seconds=300, clock=clock)
    cache.set("student-1", _report("student-1"))
    clock.advance(200)
    cache.set("student-1", _report("student-1"))
    clock.advance(200)

    assert cache.get("student-1") is not None


def test_invalidate_and_clear(clock: FakeClock):
    cache = TTLReportCache(ttl_seconds=300, clock=clock)
    cache.set("student-1", _report("student-1"))
    cache.set("student-2", _report("student-2"))

    cache.invalidate("student-1")
    assert cache.get("student-1") is None
    assert cache.get("student-2") is not None

    cache.clear()
    assert len(cache) == 0
