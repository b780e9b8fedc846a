"""
Schedule Reports - Trend Detection Tests
"""
from schedule_reports.services.report import determine_trend, generate_weekly_report
from schedule_reports.utils.dates import week_key

from conftest import make_record, week_monday


def _weeks_with_scores(*scores):
    """Weekly reports newest first; scores are given oldest first."""
    weeks = []
    for weeks_ago, score in enumerate(reversed(scores)):
        monday = week_monday(weeks_ago)
        status = "completed" if score > 0 else "skipped"
        records = [make_record(monday, status=status, points=score)]
        weeks.append(generate_weekly_report(week_key(monday), records))
    return weeks


def test_rising_scores_are_improving():
    trend = determine_trend(_weeks_with_scores(5.0, 6.0, 7.2))

    assert trend.direction == "improving"
    assert trend.confidence == "high"


def test_falling_scores_are_declining():
    trend = determine_trend(_weeks_with_scores(9.0, 7.5, 6.0))

    assert trend.direction == "declining"
    assert trend.confidence == "high"


def test_small_changes_are_stable():
    trend = determine_trend(_weeks_with_scores(6.0, 6.5, 7.0))

    assert trend.direction == "stable"
    assert trend.confidence == "high"


def test_two_scores_give_medium_confidence():
    trend = determine_trend(_weeks_with_scores(4.0, 6.0))

    assert trend.direction == "improving"
    assert trend.confidence == "medium"


def test_too_little_data_is_stable_with_low_confidence():
    assert determine_trend([]).confidence == "low"
    single = determine_trend(_weeks_with_scores(8.0))
    assert (single.direction, single.confidence) == ("stable", "low")


def test_weeks_without_score_are_ignored():
    # Only one usable score among the three most recent weeks
    trend = determine_trend(_weeks_with_scores(0, 7.0, 0))
    assert (trend.direction, trend.confidence) == ("stable", "low")

    # Zero in the middle: compare the two remaining weeks
    trend = determine_trend(_weeks_with_scores(4.0, 0, 6.0))
    assert (trend.direction, trend.confidence) == ("improving", "medium")


def test_only_three_most_recent_weeks_count():
    # The oldest week (2.0) falls outside the window
    trend = determine_trend(_weeks_with_scores(2.0, 7.0, 7.0, 7.0))

    assert trend.direction == "stable"
    assert trend.confidence == "high"


def test_trend_is_deterministic():
    weeks = _weeks_with_scores(5.0, 6.0, 7.2)
    assert determine_trend(weeks) == determine_trend(list(weeks))


def test_threshold_is_configurable():
    weeks = _weeks_with_scores(6.0, 6.5, 7.0)
    assert determine_trend(weeks, threshold=0.4).direction == "improving"


def test_custom_window():
    weeks = _weeks_with_scores(5.0, 6.0, 7.2)
    trend = determine_trend(weeks, window=2)
    # Window 2 uses 6.0 -> 7.2 only
    assert (trend.direction, trend.confidence) == ("improving", "high")
