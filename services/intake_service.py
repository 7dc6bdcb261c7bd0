# services/intake_service.py
from datetime import date, timedelta
from typing import List, Optional

from models.water_schemas import (
    ContainerPortion, DayProgress, MonthStats, WaterEntry, WaterEntryResponse
)
from services.container_catalog import describe_entry, find_container, portion_ml
from services.errors import EntryNotFoundError
from services.hydration_aggregator import HydrationAggregator
from services.reminder_scheduler import get_reminder_scheduler
from services.settings_provider import get_settings_provider
from services.supabase_service import get_supabase_service
from utils.timezone_utils import end_of_day, get_user_now, month_bounds

# How far back a streak is looked for
STREAK_LOOKBACK_DAYS = 365

class IntakeService:
    """Logging and reading water intake for a user"""

    def __init__(self, store=None, settings=None, scheduler_factory=None):
        self.store = store or get_supabase_service()
        self.settings = settings or get_settings_provider()
        self.scheduler_factory = scheduler_factory or get_reminder_scheduler

    async def _log(
        self,
        user_id: str,
        amount_ml: int,
        day: Optional[date],
        tz_offset: int,
        container_id: Optional[str] = None,
        portion: Optional[ContainerPortion] = None
    ) -> WaterEntry:
        now = get_user_now(tz_offset)
        today = now.date()
        target = day or today

        if target > today:
            raise ValueError("Cannot log water for a future day")

        config = await self.settings.get_goal_configuration(user_id)
        day_entries = await self.store.get_water_entries_in_range(user_id, target, target)
        training = HydrationAggregator.is_training_day(target, day_entries, config, today)

        entry = WaterEntry(
            user_id=user_id,
            # Backdated entries go at the very end of their day
            timestamp=now if target == today else end_of_day(target),
            amount_ml=amount_ml,
            is_training_day=training,
            container_id=container_id,
            fraction_numerator=portion.numerator if portion else None,
            fraction_denominator=portion.denominator if portion else None,
        )

        entry_id = await self.store.create_water_entry(entry)
        entry = entry.model_copy(update={"id": entry_id})
        print(f"💧 Logged {amount_ml} mL for user {user_id} on {target}")

        if target == today:
            goal = config.goal_for(config.is_training_day)
            before = HydrationAggregator.total_for_day(day_entries, today)
            if before < goal <= before + amount_ml:
                print(f"🎉 User {user_id} reached {goal} mL today")
                scheduler = self.scheduler_factory(user_id, tz_offset)
                await scheduler.on_goal_reached()

        return entry

    async def log_custom_amount(
        self,
        user_id: str,
        amount_ml: int,
        day: Optional[date] = None,
        tz_offset: int = 0
    ) -> WaterEntry:
        if amount_ml <= 0:
            raise ValueError("Amount must be positive")
        return await self._log(user_id, amount_ml, day, tz_offset)

    async def log_container_portion(
        self,
        user_id: str,
        container_id: str,
        portion: ContainerPortion,
        day: Optional[date] = None,
        tz_offset: int = 0
    ) -> WaterEntry:
        containers = await self.store.get_containers(user_id)
        container = find_container(containers, container_id)
        if container is None:
            raise EntryNotFoundError(f"Container {container_id} not found")

        amount = portion_ml(container, portion)
        if amount <= 0:
            raise ValueError(f"{portion.label} of {container.name} is less than 1 mL")

        return await self._log(user_id, amount, day, tz_offset, container.id, portion)

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        deleted = await self.store.delete_water_entry(user_id, entry_id)
        if not deleted:
            raise EntryNotFoundError(f"Water entry {entry_id} not found")
        print(f"🗑️ Water entry {entry_id} deleted")

    async def today_progress(self, user_id: str, tz_offset: int = 0) -> DayProgress:
        today = get_user_now(tz_offset).date()
        config = await self.settings.get_goal_configuration(user_id)
        entries = await self.store.get_water_entries_in_range(user_id, today, today)
        return HydrationAggregator.day_progress(today, entries, config, today)

    async def day_entries(self, user_id: str, day: date) -> List[WaterEntryResponse]:
        """Entries for a day, most recent first, with display labels"""
        entries = await self.store.get_water_entries_in_range(user_id, day, day)
        containers = await self.store.get_containers(user_id)

        ordered = sorted(entries, key=lambda e: e.timestamp, reverse=True)
        return [
            WaterEntryResponse(**e.model_dump(), label=describe_entry(e, containers))
            for e in ordered
        ]

    async def month_stats(self, user_id: str, year: int, month: int, tz_offset: int = 0) -> MonthStats:
        today = get_user_now(tz_offset).date()
        first, last = month_bounds(year, month)

        start = min(first, today - timedelta(days=STREAK_LOOKBACK_DAYS))
        end = max(last, today)

        config = await self.settings.get_goal_configuration(user_id)
        entries = await self.store.get_water_entries_in_range(user_id, start, end)

        return HydrationAggregator.month_stats(entries, config, year, month, today)

# Global instance
intake_service = None

def get_intake_service() -> IntakeService:
    global intake_service
    if intake_service is None:
        intake_service = IntakeService()
    return intake_service
