"""
Schedule Reports - Report Schemas
Pydantic schemas for activity-progress records and generated reports
"""
from datetime import date, datetime
from typing import Literal, NamedTuple, Optional, List, Dict

from pydantic import BaseModel, ConfigDict, Field

from schedule_reports.models.activity import ProgressStatus


TrendDirection = Literal["improving", "stable", "declining"]
TrendConfidence = Literal["high", "medium", "low"]
DataFreshness = Literal["realtime", "cached", "stale"]
ReportPeriod = Literal["week", "month", "quarter"]


# ============================================================================
# Source data
# ============================================================================

class ActivitySnapshot(BaseModel):
    """Activity definition captured when the activity was assigned."""
    type: str = "unknown"  # quick, text, quiz, video, checklist, file, app
    title: str = ""


class ActivityProgressRecord(BaseModel):
    """One scheduled occurrence of an activity for a student."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    schedule_instance_id: Optional[str] = None
    activity_id: Optional[str] = None
    scheduled_date: datetime
    day_of_week: int = Field(ge=0, le=6)  # 0 = Monday
    status: ProgressStatus = ProgressStatus.PENDING
    points_earned: float = 0.0
    time_spent: float = 0.0  # minutes
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    activity_snapshot: ActivitySnapshot = Field(default_factory=ActivitySnapshot)
    is_active: bool = True

    @property
    def is_completed(self) -> bool:
        return self.status == ProgressStatus.COMPLETED


class StudentProfile(BaseModel):
    """Profile fields the reports read; counters are owned by the student app."""
    name: str = "Student"
    school: str = ""
    grade: str = ""
    total_points: int = 0
    level: int = 1
    streak: int = 0


class WeekKey(NamedTuple):
    """Monday-to-Sunday calendar week."""
    week_start: date
    week_end: date


# ============================================================================
# Weekly report
# ============================================================================

class WeeklySummary(BaseModel):
    """Summary counters for one week bucket."""
    total_activities: int
    completed_activities: int
    skipped_activities: int
    completion_rate: float
    total_points: float
    average_score: float
    consistency_score: float
    average_time_per_activity: float
    adherence_score: float  # % completed on the scheduled day


class DayBreakdown(BaseModel):
    total: int = 0
    completed: int = 0
    skipped: int = 0
    average_score: float = 0.0
    average_time: float = 0.0


class ActivityTypeBreakdown(BaseModel):
    total: int = 0
    completed: int = 0
    average_score: float = 0.0
    average_time: float = 0.0


class WeeklyInsights(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    challenges: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    generated_at: datetime
    data_source: Literal["calculated", "cached"] = "calculated"


class WeeklyReportData(BaseModel):
    """Aggregate over one calendar week of activity-progress records."""
    week_number: int
    week_start_date: date
    week_end_date: date
    summary: WeeklySummary
    day_breakdown: Dict[int, DayBreakdown]
    activity_type_breakdown: Dict[str, ActivityTypeBreakdown]
    insights: WeeklyInsights


# ============================================================================
# Student report
# ============================================================================

class OverallMetrics(BaseModel):
    """Lifetime metrics; points, level and streak mirror the profile."""
    total_points: int = 0
    current_level: int = 0
    streak: int = 0
    total_activities_completed: int = 0
    average_completion_rate: float = 0.0
    total_time_spent: float = 0.0  # minutes
    last_activity_date: Optional[datetime] = None


class TrendResult(BaseModel):
    direction: TrendDirection = "stable"
    confidence: TrendConfidence = "low"


class StudentReport(BaseModel):
    """Full performance report for one student."""
    student_id: str
    student_name: str
    school: str
    grade: str
    overall: OverallMetrics
    weekly_reports: List[WeeklyReportData] = Field(default_factory=list)  # newest first
    trend: TrendDirection = "stable"
    trend_confidence: TrendConfidence = "low"
    generated_at: datetime
    data_freshness: DataFreshness = "realtime"


class WeeklyTrendPoint(BaseModel):
    """One week of the dashboard trend chart."""
    week_number: int
    completion_rate: float
    average_score: float


class ReportSummary(BaseModel):
    """Compact digest of a student report for dashboards."""
    student_id: str
    average_completion_rate: float
    total_weeks: int
    latest_week: int
    best_week: int
    trend: TrendDirection
    latest_recommendations: List[str] = Field(default_factory=list)
    weekly_trends: List[WeeklyTrendPoint] = Field(default_factory=list)
    data_freshness: DataFreshness


# ============================================================================
# Comparative report
# ============================================================================

class ComparativeStudentEntry(BaseModel):
    student_id: str
    student_name: str
    school: str
    grade: str
    completion_rate: float
    average_score: float
    consistency: float
    total_points: int
    streak: int
    trend: TrendDirection
    last_activity: Optional[datetime] = None


class GroupAverages(BaseModel):
    average_completion_rate: float = 0.0
    average_score: float = 0.0
    average_consistency: float = 0.0
    average_streak: float = 0.0


class ComparativeReport(BaseModel):
    """Side-by-side view of a group of students."""
    period: ReportPeriod
    start_date: datetime
    end_date: datetime
    students: List[ComparativeStudentEntry] = Field(default_factory=list)
    group_averages: GroupAverages = Field(default_factory=GroupAverages)
    generated_at: datetime
    student_count: int = 0


class ComparativeReportRequest(BaseModel):
    student_ids: List[str] = Field(min_length=1)
    period: ReportPeriod = "month"
