"""Schedule Reports - Services initialization."""
from schedule_reports.services.report import ReportService, StudentOutcome
from schedule_reports.services.report_cache import ReportCache, TTLReportCache
from schedule_reports.services.report_source import (
    InMemoryReportDataSource,
    ReportDataSource,
    ReportSourceError,
    SqlReportDataSource,
    StudentNotFoundError,
)

__all__ = [
    "ReportService",
    "StudentOutcome",
    "ReportCache",
    "TTLReportCache",
    "ReportDataSource",
    "SqlReportDataSource",
    "InMemoryReportDataSource",
    "ReportSourceError",
    "StudentNotFoundError",
]
