"""
Schedule Reports - Report Cache
In-process memo table for generated student reports.
"""
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from schedule_reports.schemas.report import StudentReport


class ReportCache(Protocol):
    """Anything that can hold reports keyed by student id."""

    def get(self, student_id: str) -> Optional[StudentReport]: ...

    def set(self, student_id: str, report: StudentReport) -> None: ...

    def invalidate(self, student_id: str) -> None: ...

    def clear(self) -> None: ...


class TTLReportCache:
    """
    Report cache whose entries expire a fixed time after they were written.

    Expiry is checked on read; there is no background eviction. The clock
    is injectable so tests can move time forward.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[StudentReport, float]] = {}

    def get(self, student_id: str) -> Optional[StudentReport]:
        entry = self._entries.get(student_id)
        if entry is None:
            return None

        report, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            self._entries.pop(student_id, None)
            return None
        return report

    def set(self, student_id: str, report: StudentReport) -> None:
        self._entries[student_id] = (report, self._clock())

    def invalidate(self, student_id: str) -> None:
        self._entries.pop(student_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
