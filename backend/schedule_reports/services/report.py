"""
Schedule Reports - Report Service
Aggregates activity-progress records into weekly and overall performance reports
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from schedule_reports.core.config import Settings, get_settings
from schedule_reports.models.activity import ProgressStatus
from schedule_reports.schemas.report import (
    ActivityProgressRecord,
    ActivityTypeBreakdown,
    ComparativeReport,
    ComparativeStudentEntry,
    DayBreakdown,
    GroupAverages,
    OverallMetrics,
    ReportPeriod,
    ReportSummary,
    StudentProfile,
    StudentReport,
    TrendResult,
    WeekKey,
    WeeklyInsights,
    WeeklyReportData,
    WeeklySummary,
    WeeklyTrendPoint,
)
from schedule_reports.services.report_cache import ReportCache, TTLReportCache
from schedule_reports.services.report_source import ReportDataSource
from schedule_reports.utils.dates import (
    DAY_NAMES,
    is_same_day,
    iso_week_number,
    period_start,
    week_key,
)

logger = logging.getLogger(__name__)


# Insight thresholds (percentages, except scores which are points per activity)
HIGH_COMPLETION_RATE = 80
LOW_COMPLETION_RATE = 40
HIGH_CONSISTENCY = 70
LOW_CONSISTENCY = 30
HIGH_SCORE = 8
LOW_SCORE = 5
HIGH_ADHERENCE = 80
HIGH_DAY_RATE = 90
LOW_DAY_RATE = 20
MIN_DAY_ACTIVITIES = 3  # a weekday needs more than 2 activities to be judged
MIN_TYPE_ACTIVITIES = 3

MAX_STRENGTHS = 3
MAX_CHALLENGES = 2
MAX_RECOMMENDATIONS = 3

FALLBACK_TEXT = "Not available"
MISSING_PROFILE_TEXT = "Not provided"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _average(total: float, count: int) -> float:
    return total / count if count > 0 else 0.0


async def _gather_all(*aws):
    """Like asyncio.gather, but lets every awaitable finish before raising the first error."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


# ============================================================================
# Pure aggregation helpers
# ============================================================================

def group_records_by_week(
    records: Sequence[ActivityProgressRecord],
) -> Dict[WeekKey, List[ActivityProgressRecord]]:
    """Bucket records by the calendar week of their scheduled date, newest week first."""
    weeks: Dict[WeekKey, List[ActivityProgressRecord]] = defaultdict(list)
    for record in records:
        weeks[week_key(record.scheduled_date)].append(record)

    return {key: weeks[key] for key in sorted(weeks, key=lambda k: k.week_start, reverse=True)}


def _day_breakdown(records: Sequence[ActivityProgressRecord]) -> Dict[int, DayBreakdown]:
    breakdown: Dict[int, DayBreakdown] = {}
    for day in range(7):
        day_records = [r for r in records if r.day_of_week == day]
        day_completed = [r for r in day_records if r.is_completed]
        breakdown[day] = DayBreakdown(
            total=len(day_records),
            completed=len(day_completed),
            skipped=sum(1 for r in day_records if r.status == ProgressStatus.SKIPPED),
            average_score=_average(sum(r.points_earned for r in day_completed), len(day_completed)),
            average_time=_average(sum(r.time_spent for r in day_completed), len(day_completed)),
        )
    return breakdown


def _activity_type_breakdown(
    records: Sequence[ActivityProgressRecord],
) -> Dict[str, ActivityTypeBreakdown]:
    totals: Dict[str, Dict[str, float]] = {}
    for record in records:
        bucket = totals.setdefault(
            record.activity_snapshot.type or "unknown",
            {"total": 0, "completed": 0, "points": 0.0, "time": 0.0},
        )
        bucket["total"] += 1
        if record.is_completed:
            bucket["completed"] += 1
            bucket["points"] += record.points_earned
            bucket["time"] += record.time_spent

    return {
        activity_type: ActivityTypeBreakdown(
            total=int(data["total"]),
            completed=int(data["completed"]),
            average_score=_average(data["points"], int(data["completed"])),
            average_time=_average(data["time"], int(data["completed"])),
        )
        for activity_type, data in totals.items()
    }


def generate_insights(
    summary: WeeklySummary,
    day_breakdown: Dict[int, DayBreakdown],
    activity_type_breakdown: Dict[str, ActivityTypeBreakdown],
) -> Tuple[List[str], List[str], List[str]]:
    """
    Derive strengths, challenges and recommendations from fixed thresholds.

    Every rule is checked independently; the lists are truncated to
    3 strengths, 2 challenges and 3 recommendations in rule order.
    """
    strengths: List[str] = []
    challenges: List[str] = []
    recommendations: List[str] = []

    if summary.completion_rate >= HIGH_COMPLETION_RATE:
        strengths.append("Excellent engagement with activities")
    elif summary.completion_rate <= LOW_COMPLETION_RATE:
        challenges.append("Low completion rate")
        recommendations.append("Consider adjusting activity difficulty")

    if summary.consistency_score >= HIGH_CONSISTENCY:
        strengths.append("Well-established routine")
    elif summary.consistency_score <= LOW_CONSISTENCY:
        challenges.append("Little weekly consistency")
        recommendations.append("Setting fixed times may help")

    if summary.average_score >= HIGH_SCORE:
        strengths.append("Good performance on evaluations")
    elif summary.average_score <= LOW_SCORE:
        challenges.append("Difficulty with the content")
        recommendations.append("Review fundamental concepts")

    if summary.adherence_score >= HIGH_ADHERENCE:
        strengths.append("Meets deadlines")

    for day, data in sorted(day_breakdown.items()):
        if data.total < MIN_DAY_ACTIVITIES:
            continue
        day_rate = data.completed / data.total * 100
        if day_rate >= HIGH_DAY_RATE:
            strengths.append(f"High productivity on {DAY_NAMES[day]}s")
        elif day_rate <= LOW_DAY_RATE:
            challenges.append(f"Difficulty on {DAY_NAMES[day]}s")

    for activity_type, data in activity_type_breakdown.items():
        if data.total < MIN_TYPE_ACTIVITIES or data.completed == 0:
            continue
        if data.average_score >= HIGH_SCORE:
            strengths.append(f"Good performance on {activity_type} activities")
        elif data.average_score <= LOW_SCORE:
            challenges.append(f"Difficulty with {activity_type} activities")
            recommendations.append(f"Practice more {activity_type} activities")

    return (
        strengths[:MAX_STRENGTHS],
        challenges[:MAX_CHALLENGES],
        recommendations[:MAX_RECOMMENDATIONS],
    )


def generate_weekly_report(
    key: WeekKey,
    records: Sequence[ActivityProgressRecord],
    generated_at: Optional[datetime] = None,
) -> Optional[WeeklyReportData]:
    """Summarise one week bucket. Returns None for an empty bucket."""
    if not records:
        return None

    completed = [r for r in records if r.is_completed]
    completed_count = len(completed)
    total = len(records)

    total_points = sum(r.points_earned for r in completed)
    total_time = sum(r.time_spent for r in completed)
    completed_days = {r.day_of_week for r in completed}
    on_time = sum(
        1 for r in completed
        if r.completed_at is not None and is_same_day(r.completed_at, r.scheduled_date)
    )

    summary = WeeklySummary(
        total_activities=total,
        completed_activities=completed_count,
        skipped_activities=sum(1 for r in records if r.status == ProgressStatus.SKIPPED),
        completion_rate=completed_count / total * 100,
        total_points=total_points,
        average_score=_average(total_points, completed_count),
        consistency_score=min(100.0, len(completed_days) / 7 * 100),
        average_time_per_activity=_average(total_time, completed_count),
        adherence_score=_average(on_time * 100, completed_count),
    )
    day_breakdown = _day_breakdown(records)
    type_breakdown = _activity_type_breakdown(records)
    strengths, challenges, recommendations = generate_insights(
        summary, day_breakdown, type_breakdown
    )

    return WeeklyReportData(
        week_number=iso_week_number(key.week_start),
        week_start_date=key.week_start,
        week_end_date=key.week_end,
        summary=summary,
        day_breakdown=day_breakdown,
        activity_type_breakdown=type_breakdown,
        insights=WeeklyInsights(
            strengths=strengths,
            challenges=challenges,
            recommendations=recommendations,
            generated_at=generated_at or _utcnow(),
        ),
    )


def determine_trend(
    weekly_reports: Sequence[WeeklyReportData],
    window: int = 3,
    threshold: float = 0.8,
) -> TrendResult:
    """
    Classify the direction of the most recent weekly average scores.

    weekly_reports is newest first; weeks without a positive average
    score are ignored. The mean week-over-week change decides the
    direction.
    """
    recent = list(weekly_reports[:window])
    scores = [w.summary.average_score for w in reversed(recent) if w.summary.average_score > 0]

    if len(scores) < 2:
        return TrendResult(direction="stable", confidence="low")

    deltas = [later - earlier for earlier, later in zip(scores, scores[1:])]
    mean_delta = sum(deltas) / len(deltas)
    confidence = "high" if len(scores) >= window else "medium"

    if mean_delta > threshold:
        return TrendResult(direction="improving", confidence=confidence)
    if mean_delta < -threshold:
        return TrendResult(direction="declining", confidence=confidence)
    return TrendResult(direction="stable", confidence=confidence)


def calculate_overall_metrics(
    profile: StudentProfile,
    records: Sequence[ActivityProgressRecord],
    weekly_groups: Dict[WeekKey, List[ActivityProgressRecord]],
    completion_rate_weeks: int = 4,
) -> OverallMetrics:
    """Lifetime counters come from the profile, everything else from the records."""
    completed = [r for r in records if r.is_completed]
    completion_times = [r.completed_at for r in completed if r.completed_at is not None]

    recent_weeks = list(weekly_groups.values())[:completion_rate_weeks]
    rates = [
        sum(1 for r in week if r.is_completed) / len(week) * 100
        for week in recent_weeks
        if week
    ]

    return OverallMetrics(
        total_points=profile.total_points,
        current_level=profile.level,
        streak=profile.streak,
        total_activities_completed=len(completed),
        average_completion_rate=_average(sum(rates), len(rates)),
        total_time_spent=sum(r.time_spent for r in completed),
        last_activity_date=max(completion_times, default=None),
    )


def summarize_report(report: StudentReport) -> ReportSummary:
    """Dashboard digest of a report, with one trend point per week."""
    weeks = report.weekly_reports
    best_week = 0
    if weeks:
        best = weeks[0]
        for week in weeks[1:]:
            if week.summary.average_score > best.summary.average_score:
                best = week
        best_week = best.week_number

    return ReportSummary(
        student_id=report.student_id,
        average_completion_rate=report.overall.average_completion_rate,
        total_weeks=len(weeks),
        latest_week=weeks[0].week_number if weeks else 0,
        best_week=best_week,
        trend=report.trend,
        latest_recommendations=list(weeks[0].insights.recommendations) if weeks else [],
        weekly_trends=[
            WeeklyTrendPoint(
                week_number=week.week_number,
                completion_rate=week.summary.completion_rate,
                average_score=week.summary.average_score,
            )
            for week in weeks
        ],
        data_freshness=report.data_freshness,
    )


# ============================================================================
# Service
# ============================================================================

@dataclass
class StudentOutcome:
    """Result of one student's task in a comparative batch."""
    student_id: str
    profile: Optional[StudentProfile] = None
    report: Optional[StudentReport] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None


class ReportService:
    """
    Report aggregation engine.

    Builds student reports from a ReportDataSource and memoises them in a
    ReportCache. generate_student_report never raises: data failures turn
    into a zeroed report tagged "stale".
    """

    def __init__(
        self,
        source: ReportDataSource,
        cache: Optional[ReportCache] = None,
        settings: Optional[Settings] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else TTLReportCache(
            ttl_seconds=self.settings.REPORT_CACHE_TTL_SECONDS
        )
        self._now = now or _utcnow

    async def generate_student_report(self, student_id: str) -> StudentReport:
        """
        Get the performance report for a student.

        Returns the cached report (tagged "cached") while it is fresh,
        otherwise rebuilds it from the data source.
        """
        cached = self.cache.get(student_id)
        if cached is not None:
            logger.debug("Serving cached report for student %s", student_id)
            return cached.model_copy(update={"data_freshness": "cached"}, deep=True)

        logger.info("Generating report for student %s", student_id)
        try:
            report = await self._build_student_report(student_id)
        except Exception:
            logger.warning(
                "Report generation failed for student %s, returning fallback report",
                student_id,
                exc_info=True,
            )
            return self._fallback_report(student_id)

        self.cache.set(student_id, report.model_copy(deep=True))
        return report

    async def _build_student_report(self, student_id: str) -> StudentReport:
        now = self._now()
        since = now - timedelta(days=self.settings.REPORT_LOOKBACK_DAYS)

        profile, records = await _gather_all(
            self.source.fetch_student_profile(student_id),
            self.source.fetch_recent_activity_records(
                student_id, since, self.settings.REPORT_MAX_RECORDS
            ),
        )
        logger.debug("Loaded %d activity records for student %s", len(records), student_id)

        weekly_groups = group_records_by_week(records)
        recent_groups = list(weekly_groups.items())[:self.settings.REPORT_MAX_WEEKS]

        weekly_reports = [
            week for week in (
                generate_weekly_report(key, week_records, generated_at=now)
                for key, week_records in recent_groups
            )
            if week is not None
        ]
        weekly_reports.sort(key=lambda w: w.week_number, reverse=True)

        overall = calculate_overall_metrics(
            profile,
            records,
            weekly_groups,
            completion_rate_weeks=self.settings.REPORT_COMPLETION_RATE_WEEKS,
        )
        trend = determine_trend(
            weekly_reports,
            window=self.settings.REPORT_TREND_WEEKS,
            threshold=self.settings.REPORT_TREND_THRESHOLD,
        )

        return StudentReport(
            student_id=student_id,
            student_name=profile.name,
            school=profile.school or MISSING_PROFILE_TEXT,
            grade=profile.grade or MISSING_PROFILE_TEXT,
            overall=overall,
            weekly_reports=weekly_reports,
            trend=trend.direction,
            trend_confidence=trend.confidence,
            generated_at=now,
            data_freshness="realtime",
        )

    def _fallback_report(self, student_id: str) -> StudentReport:
        return StudentReport(
            student_id=student_id,
            student_name="Student",
            school=FALLBACK_TEXT,
            grade=FALLBACK_TEXT,
            overall=OverallMetrics(),
            weekly_reports=[],
            trend="stable",
            trend_confidence="low",
            generated_at=self._now(),
            data_freshness="stale",
        )

    async def _student_outcome(self, student_id: str) -> Tuple[StudentProfile, StudentReport]:
        profile, report = await _gather_all(
            self.source.fetch_student_profile(student_id),
            self.generate_student_report(student_id),
        )
        return profile, report

    async def collect_student_outcomes(self, student_ids: Sequence[str]) -> List[StudentOutcome]:
        """Run every student's profile+report task concurrently, keeping failures."""
        results = await asyncio.gather(
            *(self._student_outcome(student_id) for student_id in student_ids),
            return_exceptions=True,
        )

        outcomes: List[StudentOutcome] = []
        for student_id, result in zip(student_ids, results):
            if isinstance(result, BaseException):
                outcomes.append(StudentOutcome(student_id=student_id, error=result))
            else:
                profile, report = result
                outcomes.append(StudentOutcome(student_id=student_id, profile=profile, report=report))
        return outcomes

    async def generate_comparative_report(
        self,
        student_ids: Sequence[str],
        period: ReportPeriod = "month",
    ) -> ComparativeReport:
        """
        Compare a group of students on their most recent week.

        Students whose data could not be loaded, or who have no weekly
        data, are left out of both the list and the averages.

        Raises:
            ValueError: If period is not week, month or quarter
        """
        now = self._now()
        start_date = period_start(period, now)
        logger.info("Generating comparative report for %d students", len(student_ids))

        entries: List[ComparativeStudentEntry] = []
        for outcome in await self.collect_student_outcomes(student_ids):
            if not outcome.ok:
                logger.warning(
                    "Excluding student %s from comparative report: %s",
                    outcome.student_id,
                    outcome.error,
                )
                continue

            report = outcome.report
            if report.data_freshness == "stale" or not report.weekly_reports:
                logger.debug("No weekly data for student %s", outcome.student_id)
                continue

            latest = report.weekly_reports[0].summary
            entries.append(ComparativeStudentEntry(
                student_id=outcome.student_id,
                student_name=outcome.profile.name,
                school=outcome.profile.school,
                grade=outcome.profile.grade,
                completion_rate=latest.completion_rate,
                average_score=latest.average_score,
                consistency=latest.consistency_score,
                total_points=report.overall.total_points,
                streak=report.overall.streak,
                trend=report.trend,
                last_activity=report.overall.last_activity_date,
            ))

        count = len(entries)
        group_averages = GroupAverages()
        if count:
            group_averages = GroupAverages(
                average_completion_rate=sum(e.completion_rate for e in entries) / count,
                average_score=sum(e.average_score for e in entries) / count,
                average_consistency=sum(e.consistency for e in entries) / count,
                average_streak=sum(e.streak for e in entries) / count,
            )

        entries.sort(key=lambda e: e.completion_rate, reverse=True)

        return ComparativeReport(
            period=period,
            start_date=start_date,
            end_date=now,
            students=entries,
            group_averages=group_averages,
            generated_at=now,
            student_count=count,
        )

    async def get_report_summary(self, student_id: str) -> ReportSummary:
        return summarize_report(await self.generate_student_report(student_id))

    def invalidate(self, student_id: str) -> None:
        self.cache.invalidate(student_id)

    def clear_cache(self) -> None:
        """Drop every cached report."""
        self.cache.clear()
        logger.info("Report cache cleared")
