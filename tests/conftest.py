"""Shared fakes for the hydration backend tests."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import pytest

from models.water_schemas import WaterEntry
from services.container_catalog import containers_from_json, containers_to_json
from services.errors import SinkUnavailableError
from services.notification_sink import NotificationSink
from utils.timezone_utils import day_bounds


class FakeSink(NotificationSink):
    """In-memory notification sink that records every call in order."""

    def __init__(self, authorized: bool = True, failing: set[str] | None = None):
        super().__init__()
        self.authorized = authorized
        self.failing = failing or set()
        self.pending: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple] = []

    async def request_authorization(self) -> bool:
        self.calls.append(("authorize",))
        return self.authorized

    async def cancel_all(self) -> None:
        self.calls.append(("cancel_all",))
        self.pending.clear()

    async def cancel(self, identifiers) -> None:
        self.calls.append(("cancel", tuple(identifiers)))
        for identifier in identifiers:
            self.pending.pop(identifier, None)

    async def register(self, identifier, trigger, title, body, category) -> None:
        self.calls.append(("register", identifier))
        if identifier in self.failing:
            raise SinkUnavailableError(f"{identifier} rejected")
        self.pending[identifier] = {
            "trigger": trigger,
            "title": title,
            "body": body,
            "category": category,
        }

    async def pending_ids(self) -> list[str]:
        return list(self.pending)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeStore:
    """Stands in for SupabaseService."""

    def __init__(self):
        self.entries: list[WaterEntry] = []
        self.settings: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, str] = {}
        self.notifications: list[dict[str, Any]] = []

    async def create_water_entry(self, entry: WaterEntry) -> str:
        self.entries.append(entry)
        return entry.id

    async def delete_water_entry(self, user_id: str, entry_id: str) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if not (e.user_id == user_id and e.id == entry_id)]
        return len(self.entries) < before

    async def get_water_entries_in_range(self, user_id: str, start_day: date, end_day: date):
        start, end = day_bounds(start_day, end_day)
        return [e for e in self.entries if e.user_id == user_id and start <= e.timestamp < end]

    async def get_containers(self, user_id: str):
        return containers_from_json(self.settings.get(user_id, {}).get("containers_json"))

    async def save_containers(self, user_id: str, containers):
        await self.save_settings(user_id, {"containers_json": containers_to_json(containers)})
        return containers

    async def get_settings(self, user_id: str) -> dict[str, Any]:
        return dict(self.settings.get(user_id, {}))

    async def save_settings(self, user_id: str, settings: dict[str, Any]) -> dict[str, Any]:
        row = self.settings.setdefault(user_id, {"user_id": user_id})
        row.update(settings)
        return dict(row)

    async def get_fcm_token(self, user_id: str):
        return self.tokens.get(user_id)

    async def log_notification(self, data: dict[str, Any]) -> None:
        self.notifications.append(data)


@pytest.fixture()
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()
