# services/hydration_aggregator.py
# Pure aggregation over a snapshot of water entries. Nothing here reads
# settings or storage: callers pass the entries and the GoalConfiguration.
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from models.settings_schemas import GoalConfiguration
from models.water_schemas import WaterEntry, DailySummary, DayProgress, MonthStats
from services.errors import ConfigurationError

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def _check_goal(goal: int) -> None:
    if goal <= 0:
        raise ConfigurationError(f"Daily goal must be positive, got {goal}")

class HydrationAggregator:

    @staticmethod
    def entries_for_day(entries: Iterable[WaterEntry], day: date) -> List[WaterEntry]:
        return [e for e in entries if e.timestamp.date() == day]

    @staticmethod
    def entries_for_month(entries: Iterable[WaterEntry], year: int, month: int) -> List[WaterEntry]:
        return [e for e in entries if e.timestamp.year == year and e.timestamp.month == month]

    @staticmethod
    def total_for_day(entries: Iterable[WaterEntry], day: date) -> int:
        """Sum of amount_ml logged on `day` (local calendar day)"""
        return sum(e.amount_ml for e in entries if e.timestamp.date() == day)

    @staticmethod
    def progress_ratio(total: int, goal: int) -> float:
        """Fraction of the goal reached, capped at 1.0"""
        _check_goal(goal)
        return min(total / goal, 1.0)

    @staticmethod
    def percentage(total: int, goal: int) -> int:
        """Percent of goal, rounded. Can go above 100."""
        _check_goal(goal)
        return _round_half_up(total / goal * 100)

    @staticmethod
    def group_by_day(entries: Iterable[WaterEntry]) -> Dict[date, DailySummary]:
        """
        Group entries by calendar day. A day is a training day if any of
        its entries was logged as one. Days without entries are absent.
        """
        totals: Dict[date, int] = defaultdict(int)
        training: Dict[date, bool] = defaultdict(bool)
        counts: Dict[date, int] = defaultdict(int)

        for entry in entries:
            day = entry.timestamp.date()
            totals[day] += entry.amount_ml
            training[day] = training[day] or entry.is_training_day
            counts[day] += 1

        return {
            day: DailySummary(total_ml=totals[day], is_training_day=training[day], entry_count=counts[day])
            for day in totals
        }

    @staticmethod
    def is_training_day(
        day: date,
        entries: Iterable[WaterEntry],
        config: GoalConfiguration,
        today: date
    ) -> bool:
        """Today follows the live setting; past days follow what was logged"""
        if day == today:
            return config.is_training_day
        return any(e.is_training_day for e in entries if e.timestamp.date() == day)

    @staticmethod
    def goal_for_day(
        day: date,
        entries: Iterable[WaterEntry],
        config: GoalConfiguration,
        today: date
    ) -> int:
        training = HydrationAggregator.is_training_day(day, entries, config, today)
        return config.goal_for(training)

    @staticmethod
    def _summary_goal(day: date, summary: DailySummary, config: GoalConfiguration, today: date) -> int:
        if day == today:
            return config.goal_for(config.is_training_day)
        return config.goal_for(summary.is_training_day)

    @staticmethod
    def current_streak(entries: Iterable[WaterEntry], config: GoalConfiguration, today: date) -> int:
        """
        Consecutive days, ending today, that have at least one entry and
        met their goal. A day without entries ends the streak.
        """
        grouped = HydrationAggregator.group_by_day(entries)

        streak = 0
        day = today
        while True:
            summary = grouped.get(day)
            if summary is None or summary.entry_count == 0:
                break
            goal = HydrationAggregator._summary_goal(day, summary, config, today)
            if summary.total_ml < goal:
                break
            streak += 1
            day -= timedelta(days=1)

        return streak

    @staticmethod
    def average_percentage_for_month(entries: Iterable[WaterEntry], config: GoalConfiguration) -> int:
        """
        round(mean daily consumption / mean daily goal * 100) over the days
        that have entries. Days with no entries are left out, not counted as 0%.
        """
        grouped = HydrationAggregator.group_by_day(entries)
        if not grouped:
            return 0

        total_consumption = sum(s.total_ml for s in grouped.values())
        total_goal = sum(config.goal_for(s.is_training_day) for s in grouped.values())
        _check_goal(total_goal)

        # Equal day counts cancel out of mean/mean
        return _round_half_up(total_consumption / total_goal * 100)

    @staticmethod
    def day_progress(
        day: date,
        entries: Iterable[WaterEntry],
        config: GoalConfiguration,
        today: date
    ) -> DayProgress:
        entries = list(entries)
        total = HydrationAggregator.total_for_day(entries, day)
        training = HydrationAggregator.is_training_day(day, entries, config, today)
        goal = config.goal_for(training)

        return DayProgress(
            day=day,
            total_ml=total,
            goal_ml=goal,
            progress=HydrationAggregator.progress_ratio(total, goal),
            percentage=HydrationAggregator.percentage(total, goal),
            is_training_day=training
        )

    @staticmethod
    def month_stats(
        entries: Iterable[WaterEntry],
        config: GoalConfiguration,
        year: int,
        month: int,
        today: date,
        streak_entries: Optional[Iterable[WaterEntry]] = None
    ) -> MonthStats:
        """
        Calendar stats for a month. `streak_entries` lets the caller pass a
        wider window than the month so a streak can run across month boundaries.
        """
        entries = list(entries)
        month_entries = HydrationAggregator.entries_for_month(entries, year, month)
        grouped = HydrationAggregator.group_by_day(month_entries)

        days = [
            HydrationAggregator.day_progress(day, month_entries, config, today)
            for day in sorted(grouped)
        ]

        return MonthStats(
            year=year,
            month=month,
            average_percentage=HydrationAggregator.average_percentage_for_month(month_entries, config),
            current_streak=HydrationAggregator.current_streak(
                streak_entries if streak_entries is not None else entries, config, today
            ),
            days=days
        )
