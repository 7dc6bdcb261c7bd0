"""Tests for services.notification_sink.ScheduledPushSink (scheduler not started)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from models.reminder_schemas import TriggerSpec
from services import reminder_scheduler
from services.errors import SchedulingLimitExceeded
from services.notification_sink import MAX_PENDING_TRIGGERS, NotificationSink, ScheduledPushSink


class FakeFCM:
    def __init__(self, permitted: set[str] | None = None):
        self.permitted = permitted or set()
        self.sent: list[dict] = []

    async def has_permission(self, user_id: str) -> bool:
        return user_id in self.permitted

    async def send_notification_to_user(self, user_id, title, body, data=None) -> bool:
        self.sent.append({"user_id": user_id, "title": title, "body": body, "data": data})
        return True


@pytest.fixture()
def job_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler()


@pytest.fixture()
def fcm() -> FakeFCM:
    return FakeFCM(permitted={"alice"})


def _register(sink, identifier, trigger):
    asyncio.run(sink.register(identifier, trigger, "Title", "Body", "CATEGORY"))


# ---- register / pending ----


def test_daily_trigger_becomes_cron_job(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm, tz_offset=-300)
    _register(sink, "periodic-reminder-9", TriggerSpec.daily(9))
    job = job_scheduler.get_jobs()[0]
    assert job.id == "alice:periodic-reminder-9"
    assert isinstance(job.trigger, CronTrigger)
    assert asyncio.run(sink.pending_ids()) == ["periodic-reminder-9"]


def test_one_shot_trigger_becomes_date_job(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    _register(sink, "smart-followup", TriggerSpec.once(datetime(2030, 1, 1, 14, 0)))
    assert isinstance(job_scheduler.get_jobs()[0].trigger, DateTrigger)


def test_register_same_identifier_replaces(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    _register(sink, "smart-initial", TriggerSpec.daily(11))
    _register(sink, "smart-initial", TriggerSpec.daily(12))
    assert asyncio.run(sink.pending_ids()) == ["smart-initial"]


def test_register_over_limit_raises(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    for i in range(MAX_PENDING_TRIGGERS):
        _register(sink, f"r-{i}", TriggerSpec.daily(i % 24))
    with pytest.raises(SchedulingLimitExceeded) as err:
        _register(sink, "one-too-many", TriggerSpec.daily(23))
    assert err.value.truncated == 1


# ---- cancel ----


def test_users_do_not_see_each_other(job_scheduler, fcm):
    alice = ScheduledPushSink("alice", job_scheduler, fcm)
    bob = ScheduledPushSink("bob", job_scheduler, fcm)
    _register(alice, "periodic-reminder-9", TriggerSpec.daily(9))
    _register(bob, "periodic-reminder-10", TriggerSpec.daily(10))

    asyncio.run(alice.cancel_all())

    assert asyncio.run(alice.pending_ids()) == []
    assert asyncio.run(bob.pending_ids()) == ["periodic-reminder-10"]


def test_cancel_selected(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    _register(sink, "smart-initial", TriggerSpec.daily(11))
    _register(sink, "smart-followup", TriggerSpec.once(datetime(2030, 1, 1, 14, 0)))
    asyncio.run(sink.cancel(["smart-followup", "not-there"]))
    assert asyncio.run(sink.pending_ids()) == ["smart-initial"]


def test_cancel_all_twice(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    _register(sink, "smart-initial", TriggerSpec.daily(11))
    asyncio.run(sink.cancel_all())
    asyncio.run(sink.cancel_all())
    assert asyncio.run(sink.pending_ids()) == []


# ---- authorization / firing / responses ----


def test_authorization_follows_fcm_token(job_scheduler, fcm):
    assert asyncio.run(ScheduledPushSink("alice", job_scheduler, fcm).request_authorization()) is True
    assert asyncio.run(ScheduledPushSink("bob", job_scheduler, fcm).request_authorization()) is False


def test_fire_sends_push_with_identifier(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    asyncio.run(sink._fire("smart-initial", "Hydration Check 💧", "How's it going?", "HYDRATION_CHECK"))
    assert fcm.sent == [{
        "user_id": "alice",
        "title": "Hydration Check 💧",
        "body": "How's it going?",
        "data": {"identifier": "smart-initial", "category": "HYDRATION_CHECK"},
    }]


def test_dispatch_user_response_reaches_subscribers(job_scheduler, fcm):
    sink = ScheduledPushSink("alice", job_scheduler, fcm)
    received = []

    async def callback(identifier, action):
        received.append((identifier, action))

    sink.on_user_response(callback)
    asyncio.run(sink.dispatch_user_response("smart-initial", "ON_PACE"))
    assert received == [("smart-initial", "ON_PACE")]


def test_sink_interface_cannot_be_used_directly():
    with pytest.raises(TypeError):
        NotificationSink()


# ---- per-user registry ----


@pytest.fixture()
def registry(job_scheduler, fcm, monkeypatch):
    monkeypatch.setattr(reminder_scheduler, "schedulers", {})
    monkeypatch.setattr(reminder_scheduler, "get_job_scheduler", lambda: job_scheduler)
    monkeypatch.setattr(reminder_scheduler, "get_fcm_service", lambda: fcm)
    return reminder_scheduler.get_reminder_scheduler


def _rollover_jobs(job_scheduler, user_id):
    return [job for job in job_scheduler.get_jobs() if job.id == f"rollover:{user_id}"]


def test_registry_reuses_scheduler_per_user(registry):
    assert registry("alice") is registry("alice")
    assert registry("alice") is not registry("bob")


def test_rollover_follows_timezone_changes(registry, job_scheduler):
    registry("alice", 0)
    scheduler = registry("alice", 300)

    jobs = _rollover_jobs(job_scheduler, "alice")
    assert len(jobs) == 1
    assert jobs[0].trigger.timezone.utcoffset(None) == timedelta(minutes=300)
    assert scheduler.sink.tz_offset == 300
