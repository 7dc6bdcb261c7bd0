# services/notification_sink.py
# Where reminder triggers end up. The reminder scheduler only talks to the
# NotificationSink interface; ScheduledPushSink keeps the triggers as
# APScheduler jobs that push through FCM when they fire.

from abc import ABC, abstractmethod

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.jobstores.base import JobLookupError
from typing import Awaitable, Callable, List, Optional

from models.reminder_schemas import TriggerSpec
from services.errors import SchedulingLimitExceeded, SinkUnavailableError
from utils.timezone_utils import user_timezone

# Most pending local notifications a device will hold per app
MAX_PENDING_TRIGGERS = 20

ResponseCallback = Callable[[str, str], Awaitable[None]]

class NotificationSink(ABC):
    """Interface the reminder scheduler programs"""

    def __init__(self):
        self._response_callbacks: List[ResponseCallback] = []

    @abstractmethod
    async def request_authorization(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def cancel_all(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def cancel(self, identifiers: List[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def register(self, identifier: str, trigger: TriggerSpec, title: str, body: str, category: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def pending_ids(self) -> List[str]:
        raise NotImplementedError

    def on_user_response(self, callback: ResponseCallback) -> None:
        """Subscribe to taps on notification actions"""
        self._response_callbacks.append(callback)

    async def dispatch_user_response(self, identifier: str, action: str) -> None:
        """Deliver a notification action to every subscriber, in order"""
        for callback in self._response_callbacks:
            await callback(identifier, action)

class ScheduledPushSink(NotificationSink):
    """
    Triggers for one user, kept as jobs on a shared AsyncIOScheduler.

    Job ids are "<user_id>:<identifier>" so users never see each other's
    triggers. Daily triggers become cron jobs and one-shot triggers become
    date jobs, both evaluated in the user's UTC offset.
    """

    def __init__(self, user_id: str, job_scheduler: AsyncIOScheduler, fcm, tz_offset: int = 0):
        super().__init__()
        self.user_id = user_id
        self.job_scheduler = job_scheduler
        self.fcm = fcm
        self.tz_offset = tz_offset
        self._prefix = f"{user_id}:"

    def _job_id(self, identifier: str) -> str:
        return self._prefix + identifier

    def _own_jobs(self):
        return [job for job in self.job_scheduler.get_jobs() if job.id.startswith(self._prefix)]

    def _build_trigger(self, trigger: TriggerSpec):
        tz = user_timezone(self.tz_offset)
        if trigger.repeats:
            return CronTrigger(hour=trigger.hour, minute=trigger.minute, timezone=tz)
        return DateTrigger(run_date=trigger.fire_at, timezone=tz)

    async def request_authorization(self) -> bool:
        return await self.fcm.has_permission(self.user_id)

    async def cancel_all(self) -> None:
        for job in self._own_jobs():
            try:
                self.job_scheduler.remove_job(job.id)
            except JobLookupError:
                # Already fired (one-shot) or removed
                continue

    async def cancel(self, identifiers: List[str]) -> None:
        wanted = {self._job_id(i) for i in identifiers}
        for job in self._own_jobs():
            if job.id in wanted:
                try:
                    self.job_scheduler.remove_job(job.id)
                except JobLookupError:
                    continue

    async def register(self, identifier: str, trigger: TriggerSpec, title: str, body: str, category: str) -> None:
        pending = await self.pending_ids()
        if identifier in pending:
            await self.cancel([identifier])
        elif len(pending) >= MAX_PENDING_TRIGGERS:
            raise SchedulingLimitExceeded(len(pending) + 1, MAX_PENDING_TRIGGERS)

        try:
            self.job_scheduler.add_job(
                self._fire,
                self._build_trigger(trigger),
                args=[identifier, title, body, category],
                id=self._job_id(identifier),
                name=f"{category} reminder for {self.user_id}",
                replace_existing=True,
            )
        except Exception as e:
            raise SinkUnavailableError(f"Could not schedule {identifier}: {e}") from e

    async def pending_ids(self) -> List[str]:
        return [job.id[len(self._prefix):] for job in self._own_jobs()]

    async def _fire(self, identifier: str, title: str, body: str, category: str) -> None:
        print(f"🔔 Firing {identifier} for user {self.user_id}")
        await self.fcm.send_notification_to_user(
            user_id=self.user_id,
            title=title,
            body=body,
            data={"identifier": identifier, "category": category}
        )

# Global job scheduler - started in main.py
job_scheduler: Optional[AsyncIOScheduler] = None

def get_job_scheduler() -> AsyncIOScheduler:
    global job_scheduler
    if job_scheduler is None:
        job_scheduler = AsyncIOScheduler()
    return job_scheduler
