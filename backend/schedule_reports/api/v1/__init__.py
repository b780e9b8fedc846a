"""Schedule Reports - API v1 Router."""
from fastapi import APIRouter

from schedule_reports.api.v1.reports import router as reports_router

api_router = APIRouter()

api_router.include_router(reports_router)
