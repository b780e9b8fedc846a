"""Schedule Reports - Models initialization."""
from schedule_reports.models.user import Student
from schedule_reports.models.activity import ActivityProgress, ProgressStatus


__all__ = [
    "Student",
    "ActivityProgress",
    "ProgressStatus",
]
