"""Tests for services.hydration_aggregator."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from models.settings_schemas import GoalConfiguration
from models.water_schemas import WaterEntry
from services.errors import ConfigurationError
from services.hydration_aggregator import HydrationAggregator as agg

TODAY = date(2026, 3, 15)


def _entry(day: date, amount: int, training: bool = False, hour: int = 12) -> WaterEntry:
    return WaterEntry(
        user_id="u1",
        timestamp=datetime.combine(day, time(hour)),
        amount_ml=amount,
        is_training_day=training,
    )


def _days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


@pytest.fixture()
def config() -> GoalConfiguration:
    return GoalConfiguration(daily_goal_ml=2000, training_day_goal_ml=3000)


# ---- total_for_day ----


def test_total_for_day_sums_only_that_day():
    entries = [_entry(TODAY, 250), _entry(TODAY, 500), _entry(_days_ago(1), 1000)]
    assert agg.total_for_day(entries, TODAY) == 750


def test_total_for_day_order_invariant():
    entries = [_entry(TODAY, 250, hour=8), _entry(TODAY, 330, hour=23), _entry(TODAY, 120, hour=0)]
    assert agg.total_for_day(entries, TODAY) == agg.total_for_day(list(reversed(entries)), TODAY) == 700


def test_total_for_day_empty():
    assert agg.total_for_day([], TODAY) == 0


def test_total_for_day_midnight_boundary():
    entries = [
        WaterEntry(user_id="u1", timestamp=datetime.combine(TODAY, time(0, 0)), amount_ml=100),
        WaterEntry(user_id="u1", timestamp=datetime.combine(TODAY, time(23, 59, 59)), amount_ml=200),
        WaterEntry(user_id="u1", timestamp=datetime.combine(TODAY + timedelta(days=1), time(0, 0)), amount_ml=400),
    ]
    assert agg.total_for_day(entries, TODAY) == 300


# ---- progress_ratio / percentage ----


def test_progress_ratio_partial():
    assert agg.progress_ratio(500, 2000) == 0.25


def test_progress_ratio_capped_at_one():
    assert agg.progress_ratio(5000, 2000) == 1.0


def test_progress_ratio_zero_total():
    assert agg.progress_ratio(0, 2000) == 0.0


def test_progress_ratio_zero_goal_raises():
    with pytest.raises(ConfigurationError):
        agg.progress_ratio(100, 0)


def test_configuration_error_is_zero_division():
    with pytest.raises(ZeroDivisionError):
        agg.progress_ratio(100, 0)


def test_percentage_exceeds_hundred():
    assert agg.percentage(3000, 2000) == 150


def test_percentage_rounds_half_up():
    assert agg.percentage(1999, 2000) == 100
    assert agg.percentage(1, 200) == 1


def test_percentage_negative_goal_raises():
    with pytest.raises(ConfigurationError):
        agg.percentage(100, -5)


# ---- training day / goal_for_day ----


def test_today_training_follows_live_setting(config):
    live = config.model_copy(update={"is_training_day": True})
    entries = [_entry(TODAY, 500, training=False)]
    assert agg.is_training_day(TODAY, entries, live, TODAY) is True
    assert agg.goal_for_day(TODAY, entries, live, TODAY) == 3000


def test_past_day_training_if_any_entry_tagged(config):
    day = _days_ago(2)
    entries = [_entry(day, 500), _entry(day, 500, training=True)]
    assert agg.is_training_day(day, entries, config, TODAY) is True
    assert agg.goal_for_day(day, entries, config, TODAY) == 3000


def test_past_day_without_tagged_entries_uses_daily_goal(config):
    day = _days_ago(2)
    entries = [_entry(day, 500)]
    assert agg.goal_for_day(day, entries, config, TODAY) == 2000


# ---- group_by_day ----


def test_group_by_day_totals_and_flags():
    entries = [_entry(TODAY, 200), _entry(TODAY, 300, training=True), _entry(_days_ago(1), 700)]
    grouped = agg.group_by_day(entries)
    assert set(grouped) == {TODAY, _days_ago(1)}
    assert grouped[TODAY].total_ml == 500
    assert grouped[TODAY].is_training_day is True
    assert grouped[TODAY].entry_count == 2
    assert grouped[_days_ago(1)].is_training_day is False


# ---- current_streak ----


def test_streak_example_mixed_training(config):
    entries = [_entry(TODAY, 2000), _entry(_days_ago(1), 3000, training=True)]
    assert agg.current_streak(entries, config, TODAY) == 2


def test_streak_zero_when_today_empty(config):
    entries = [_entry(_days_ago(1), 5000), _entry(_days_ago(2), 5000)]
    assert agg.current_streak(entries, config, TODAY) == 0


def test_streak_zero_when_today_below_goal(config):
    entries = [_entry(TODAY, 1999), _entry(_days_ago(1), 5000)]
    assert agg.current_streak(entries, config, TODAY) == 0


def test_streak_stops_at_gap(config):
    entries = [_entry(TODAY, 2000), _entry(_days_ago(1), 2000), _entry(_days_ago(3), 2000)]
    assert agg.current_streak(entries, config, TODAY) == 2


def test_streak_stops_at_missed_training_goal(config):
    entries = [
        _entry(TODAY, 2000),
        _entry(_days_ago(1), 2500, training=True),
        _entry(_days_ago(2), 2000),
    ]
    assert agg.current_streak(entries, config, TODAY) == 1


def test_streak_counts_k_days(config):
    entries = [_entry(_days_ago(n), 2100) for n in range(5)] + [_entry(_days_ago(5), 100)]
    assert agg.current_streak(entries, config, TODAY) == 5


def test_streak_today_uses_live_training_goal(config):
    live = config.model_copy(update={"is_training_day": True})
    entries = [_entry(TODAY, 2500)]
    assert agg.current_streak(entries, live, TODAY) == 0


def test_streak_empty(config):
    assert agg.current_streak([], config, TODAY) == 0


# ---- average_percentage_for_month ----


def test_average_percentage_excludes_empty_days(config):
    entries = [_entry(date(2026, 3, 1), 2000), _entry(date(2026, 3, 10), 1000)]
    # mean 1500 / mean 2000
    assert agg.average_percentage_for_month(entries, config) == 75


def test_average_percentage_mixes_goals(config):
    entries = [_entry(date(2026, 3, 1), 3000, training=True), _entry(date(2026, 3, 2), 2000)]
    # mean 2500 / mean 2500
    assert agg.average_percentage_for_month(entries, config) == 100


def test_average_percentage_empty(config):
    assert agg.average_percentage_for_month([], config) == 0


# ---- month_stats / day_progress ----


def test_month_stats(config):
    entries = [
        _entry(date(2026, 2, 28), 2000),
        _entry(date(2026, 3, 14), 2000),
        _entry(TODAY, 1000),
        _entry(TODAY, 1200),
    ]
    stats = agg.month_stats(entries, config, 2026, 3, TODAY)
    assert stats.year == 2026 and stats.month == 3
    assert [d.day for d in stats.days] == [date(2026, 3, 14), TODAY]
    assert stats.days[1].total_ml == 2200
    assert stats.days[1].progress == 1.0
    assert stats.days[1].percentage == 110
    assert stats.current_streak == 2
    assert stats.average_percentage == 105


def test_day_progress_no_entries(config):
    progress = agg.day_progress(TODAY, [], config, TODAY)
    assert progress.total_ml == 0
    assert progress.goal_ml == 2000
    assert progress.percentage == 0
