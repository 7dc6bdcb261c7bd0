# services/reminder_scheduler.py
# Turns a user's reminder settings into triggers on a NotificationSink.
#
# Every transition cancels what is pending and registers the new set from
# scratch. Trigger sets are small and the sink is the source of truth for
# what is pending, so there is no diffing against previous plans.

import asyncio
from datetime import datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.cron import CronTrigger

from models.reminder_schemas import (
    ReminderPlan, ScheduledReminder, SmartPhase, SmartPhaseName, TriggerSpec
)
from models.settings_schemas import GoalConfiguration, NotificationMode
from services.errors import (
    ConfigurationError, PermissionDeniedError, SchedulingLimitExceeded, SinkUnavailableError
)
from services.fcm_service import get_fcm_service
from services.notification_sink import (
    MAX_PENDING_TRIGGERS, NotificationSink, ScheduledPushSink, get_job_scheduler
)
from utils.timezone_utils import get_user_now, user_timezone

PERIODIC_PREFIX = "periodic-reminder-"

SMART_INITIAL_ID = "smart-initial"
SMART_INITIAL_BACKUP_ID = "smart-initial-backup"
SMART_FOLLOW_UP_ID = "smart-followup"
SMART_FOLLOW_UP_BACKUP_ID = "smart-followup-backup"

SMART_INITIAL_HOUR = 11
SMART_INITIAL_BACKUP_DELAY = timedelta(hours=3)
# No smart reminder fires at or after this hour
SMART_CUTOFF_HOUR = 21

ACTION_ON_PACE = "ON_PACE"
ACTION_BEHIND = "BEHIND"

# (delay until follow-up, extra delay until its backup)
ON_PACE_DELAYS = (timedelta(hours=4), timedelta(hours=3))
BEHIND_DELAYS = (timedelta(hours=2), timedelta(hours=2))

PERIODIC_TITLE = "Time to Hydrate! 💧"
PERIODIC_BODY = "Don't forget to drink water and stay healthy"
CHECK_TITLE = "Hydration Check 💧"
CHECK_BODY = "How's your water going today? Let us know if you're on pace."
FOLLOW_UP_TITLE = "Time for another sip 💧"
FOLLOW_UP_BODY = "Checking back in: are you still on pace with your water?"
BACKUP_TITLE = "Still with us? 💧"
BACKUP_BODY = "We haven't heard back. A glass of water now keeps you on track."

CATEGORY_PERIODIC = "PERIODIC_REMINDER"
CATEGORY_CHECK = "HYDRATION_CHECK"

def periodic_hours(start_hour: int, end_hour: int, interval_hours: int) -> List[int]:
    """Every interval from start through end, inclusive of end"""
    if interval_hours < 1:
        raise ConfigurationError(f"Reminder interval must be at least 1 hour, got {interval_hours}")
    if start_hour > end_hour:
        raise ConfigurationError(f"Reminder window starts after it ends ({start_hour} > {end_hour})")
    return list(range(start_hour, end_hour + 1, interval_hours))

def periodic_reminders(start_hour: int, end_hour: int, interval_hours: int) -> Tuple[List[ScheduledReminder], int]:
    """Daily reminders for the window, capped at the platform limit. Returns (reminders, truncated)."""
    hours = periodic_hours(start_hour, end_hour, interval_hours)
    kept = hours[:MAX_PENDING_TRIGGERS]

    reminders = [
        ScheduledReminder(
            identifier=f"{PERIODIC_PREFIX}{hour}",
            trigger=TriggerSpec.daily(hour),
            title=PERIODIC_TITLE,
            body=PERIODIC_BODY,
            category=CATEGORY_PERIODIC
        )
        for hour in kept
    ]
    return reminders, len(hours) - len(kept)

def _next_occurrence(now: datetime, at: time) -> datetime:
    candidate = datetime.combine(now.date(), at)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate

class ReminderScheduler:
    """
    Reminder state for one user: Off, Periodic or Smart.

    Transitions are serialized with a lock and always finish cancelling
    before they register anything, so old and new triggers are never
    pending at the same time.
    """

    def __init__(self, sink: NotificationSink, clock: Optional[Callable[[], datetime]] = None):
        self.sink = sink
        self.clock = clock or datetime.now
        self.mode = NotificationMode.OFF
        self.config: Optional[GoalConfiguration] = None
        self.phase: Optional[SmartPhase] = None
        self.goal_met = False
        self._lock = asyncio.Lock()

        sink.on_user_response(self.handle_user_response)

    # Sink helpers
    async def _cancel_all(self) -> None:
        try:
            await self.sink.cancel_all()
        except SinkUnavailableError as e:
            print(f"⚠️ Could not cancel pending reminders: {e}")

    async def _register_all(self, reminders: List[ScheduledReminder]) -> Tuple[List[ScheduledReminder], List[str]]:
        registered = []
        dropped = []

        for reminder in reminders:
            try:
                await self.sink.register(
                    reminder.identifier,
                    reminder.trigger,
                    reminder.title,
                    reminder.body,
                    reminder.category
                )
                registered.append(reminder)
            except (SinkUnavailableError, SchedulingLimitExceeded) as e:
                print(f"❌ Failed to schedule {reminder.identifier}: {e}")
                dropped.append(reminder.identifier)

        return registered, dropped

    async def _require_permission(self, mode: NotificationMode) -> None:
        if await self.sink.request_authorization():
            return
        if self.mode != NotificationMode.OFF:
            # Off never leaves the previous mode's triggers behind
            await self._cancel_all()
        self.mode = NotificationMode.OFF
        self.phase = None
        print(f"⚠️ Notification permission denied, {mode.value} reminders stay off")
        raise PermissionDeniedError("Notification permission has not been granted")

    # Transitions
    async def apply_mode(self, config: GoalConfiguration) -> ReminderPlan:
        """Run the entry transition for config.notification_mode"""
        self.config = config

        if config.notification_mode == NotificationMode.PERIODIC:
            return await self.enter_periodic(
                config.periodic_start_hour,
                config.periodic_end_hour,
                config.periodic_interval_hours
            )
        if config.notification_mode == NotificationMode.SMART:
            return await self.enter_smart()
        return await self.enter_off()

    async def enter_off(self) -> ReminderPlan:
        async with self._lock:
            await self._cancel_all()
            self.mode = NotificationMode.OFF
            self.phase = None
            print("🔕 Reminders off, all pending reminders cancelled")
            return ReminderPlan(mode=NotificationMode.OFF)

    async def enter_periodic(self, start_hour: int, end_hour: int, interval_hours: int) -> ReminderPlan:
        reminders, truncated = periodic_reminders(start_hour, end_hour, interval_hours)

        async with self._lock:
            await self._require_permission(NotificationMode.PERIODIC)
            await self._cancel_all()

            registered, dropped = await self._register_all(reminders)
            self.mode = NotificationMode.PERIODIC
            self.phase = None
            self.goal_met = False

            if truncated:
                print(f"⚠️ Reminder window needs {len(reminders) + truncated} triggers, "
                      f"only {MAX_PENDING_TRIGGERS} allowed; dropped {truncated}")
            print(f"✅ Scheduled {len(registered)} periodic reminders")

            return ReminderPlan(
                mode=NotificationMode.PERIODIC,
                reminders=registered,
                truncated=truncated,
                dropped=dropped
            )

    async def enter_smart(self) -> ReminderPlan:
        async with self._lock:
            await self._require_permission(NotificationMode.SMART)
            await self._cancel_all()

            reminders = [
                ScheduledReminder(
                    identifier=SMART_INITIAL_ID,
                    trigger=TriggerSpec.daily(SMART_INITIAL_HOUR),
                    title=CHECK_TITLE,
                    body=CHECK_BODY,
                    category=CATEGORY_CHECK
                )
            ]

            backup_hour = SMART_INITIAL_HOUR + int(SMART_INITIAL_BACKUP_DELAY.total_seconds() // 3600)
            if self._initial_backup_enabled() and backup_hour < SMART_CUTOFF_HOUR:
                backup_at = _next_occurrence(self.clock(), time(backup_hour))
                reminders.append(ScheduledReminder(
                    identifier=SMART_INITIAL_BACKUP_ID,
                    trigger=TriggerSpec.once(backup_at),
                    title=BACKUP_TITLE,
                    body=BACKUP_BODY,
                    category=CATEGORY_CHECK
                ))

            registered, dropped = await self._register_all(reminders)
            self.mode = NotificationMode.SMART
            self.phase = SmartPhase(name=SmartPhaseName.AWAITING_INITIAL_CHECK)
            self.goal_met = False
            print(f"✅ Smart reminders on ({len(registered)} scheduled)")

            return ReminderPlan(
                mode=NotificationMode.SMART,
                reminders=registered,
                dropped=dropped,
                phase=self.phase
            )

    def _initial_backup_enabled(self) -> bool:
        return self.config is None or self.config.smart_initial_backup

    def _follow_ups_enabled(self) -> bool:
        return self.config is None or self.config.smart_adaptive_follow_ups

    async def handle_user_response(self, identifier: str, action: str) -> Optional[ReminderPlan]:
        """
        The user answered a smart check. ON_PACE waits longer before the
        next check than BEHIND. Nothing is scheduled at or after the cutoff.
        """
        if self.mode != NotificationMode.SMART:
            print(f"⚠️ Ignoring response {action} to {identifier}: smart reminders are off")
            return None

        action = (action or "").upper()
        if action not in (ACTION_ON_PACE, ACTION_BEHIND):
            print(f"⚠️ Ignoring unknown reminder action {action!r}")
            return None

        on_pace = action == ACTION_ON_PACE

        async with self._lock:
            pending = await self.sink.pending_ids()
            stale = [i for i in pending if i != SMART_INITIAL_ID]
            if stale:
                try:
                    await self.sink.cancel(stale)
                except SinkUnavailableError as e:
                    print(f"⚠️ Could not cancel smart follow-ups: {e}")

            if self.goal_met:
                print(f"🎉 {action} after today's goal was met: no more checks today")
                self.phase = SmartPhase(name=SmartPhaseName.AWAITING_INITIAL_CHECK)
                return ReminderPlan(mode=NotificationMode.SMART, phase=self.phase)

            now = self.clock()
            delay, backup_delay = ON_PACE_DELAYS if on_pace else BEHIND_DELAYS
            delay_hours = int(delay.total_seconds() // 3600)
            reminders = []
            due_at = None
            backup_at = None

            if self._follow_ups_enabled() and now.hour + delay_hours < SMART_CUTOFF_HOUR:
                due_at = now + delay
                reminders.append(ScheduledReminder(
                    identifier=SMART_FOLLOW_UP_ID,
                    trigger=TriggerSpec.once(due_at),
                    title=FOLLOW_UP_TITLE,
                    body=FOLLOW_UP_BODY,
                    category=CATEGORY_CHECK
                ))

                cutoff = datetime.combine(now.date(), time(SMART_CUTOFF_HOUR))
                if due_at + backup_delay < cutoff:
                    backup_at = due_at + backup_delay
                    reminders.append(ScheduledReminder(
                        identifier=SMART_FOLLOW_UP_BACKUP_ID,
                        trigger=TriggerSpec.once(backup_at),
                        title=BACKUP_TITLE,
                        body=BACKUP_BODY,
                        category=CATEGORY_CHECK
                    ))
            else:
                print(f"🌙 {action} at {now:%H:%M}: no more checks today")

            registered, dropped = await self._register_all(reminders)

            if any(r.identifier == SMART_FOLLOW_UP_ID for r in registered):
                self.phase = SmartPhase(
                    name=SmartPhaseName.AWAITING_FOLLOW_UP,
                    due_at=due_at,
                    backup_at=backup_at if SMART_FOLLOW_UP_BACKUP_ID not in dropped else None
                )
            else:
                self.phase = SmartPhase(name=SmartPhaseName.AWAITING_INITIAL_CHECK)

            return ReminderPlan(
                mode=NotificationMode.SMART,
                reminders=registered,
                dropped=dropped,
                phase=self.phase
            )

    async def on_goal_reached(self) -> ReminderPlan:
        """Stop reminding for today. The mode is kept for start_new_day."""
        async with self._lock:
            await self._cancel_all()
            self.goal_met = True
            if self.mode == NotificationMode.SMART:
                self.phase = SmartPhase(name=SmartPhaseName.AWAITING_INITIAL_CHECK)
            print("🎉 Daily goal reached, pending reminders cancelled")
            return ReminderPlan(mode=self.mode, phase=self.phase)

    async def start_new_day(self) -> Optional[ReminderPlan]:
        """Re-apply the current mode, restoring anything cancelled yesterday"""
        if self.config is None or self.mode == NotificationMode.OFF:
            return None
        try:
            return await self.apply_mode(self.config)
        except PermissionDeniedError as e:
            print(f"⚠️ Could not restore reminders for the new day: {e}")
            return None

    async def pending(self) -> List[str]:
        return sorted(await self.sink.pending_ids())

# Per-user schedulers for this process
schedulers: Dict[str, ReminderScheduler] = {}

def _schedule_rollover(job_scheduler, user_id: str, scheduler: ReminderScheduler, tz_offset: int) -> None:
    """Daily 00:01 job in the user's timezone that starts the new reminder day"""
    try:
        job_scheduler.remove_job(f"rollover:{user_id}")
    except JobLookupError:
        # First rollover for this user
        pass
    job_scheduler.add_job(
        scheduler.start_new_day,
        CronTrigger(hour=0, minute=1, timezone=user_timezone(tz_offset)),
        id=f"rollover:{user_id}",
        replace_existing=True,
    )

def get_reminder_scheduler(user_id: str, tz_offset: int = 0) -> ReminderScheduler:
    """Get (or create) the reminder scheduler for a user"""
    scheduler = schedulers.get(user_id)
    if scheduler is not None:
        if scheduler.sink.tz_offset != tz_offset:
            print(f"🌍 User {user_id} moved to UTC offset {tz_offset} min, moving day rollover")
            scheduler.sink.tz_offset = tz_offset
            _schedule_rollover(scheduler.sink.job_scheduler, user_id, scheduler, tz_offset)
        return scheduler

    job_scheduler = get_job_scheduler()
    sink = ScheduledPushSink(user_id, job_scheduler, get_fcm_service(), tz_offset)
    scheduler = ReminderScheduler(sink, clock=lambda: get_user_now(sink.tz_offset))
    schedulers[user_id] = scheduler

    _schedule_rollover(job_scheduler, user_id, scheduler, tz_offset)
    print(f"✅ Reminder scheduler created for user {user_id}")
    return scheduler
