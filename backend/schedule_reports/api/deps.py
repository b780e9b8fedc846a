"""
Schedule Reports - API Dependencies
FastAPI dependencies for the report engine
"""
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from schedule_reports.core.config import settings
from schedule_reports.core.database import async_session_maker
from schedule_reports.services.report import ReportService
from schedule_reports.services.report_source import SqlReportDataSource


@lru_cache
def get_report_service() -> ReportService:
    """
    Process-wide report service.

    A single instance means a single report cache per process.
    """
    return ReportService(
        source=SqlReportDataSource(async_session_maker),
        settings=settings,
    )


ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
