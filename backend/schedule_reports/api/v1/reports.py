"""
Schedule Reports - Reports API Router
Endpoints for student performance and comparative reports
"""
from fastapi import APIRouter, Response, status

from schedule_reports.api.deps import ReportServiceDep
from schedule_reports.schemas.report import (
    ComparativeReport,
    ComparativeReportRequest,
    ReportSummary,
    StudentReport,
)


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/students/{student_id}", response_model=StudentReport)
async def get_student_report(student_id: str, service: ReportServiceDep):
    """
    Get the performance report for a student.

    Always answers 200; a report with data_freshness "stale" means the
    student's data could not be loaded.
    """
    return await service.generate_student_report(student_id)


@router.get("/students/{student_id}/summary", response_model=ReportSummary)
async def get_student_report_summary(student_id: str, service: ReportServiceDep):
    """Get the dashboard digest of a student's report."""
    return await service.get_report_summary(student_id)


@router.post("/comparative", response_model=ComparativeReport)
async def create_comparative_report(
    request: ComparativeReportRequest,
    service: ReportServiceDep,
):
    """Compare a group of students over a period."""
    return await service.generate_comparative_report(request.student_ids, request.period)


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_report_cache(service: ReportServiceDep):
    """Drop every cached report."""
    service.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/cache/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_student_report(student_id: str, service: ReportServiceDep):
    """Drop one student's cached report."""
    service.invalidate(student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
