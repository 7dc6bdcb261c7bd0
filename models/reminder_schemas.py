# models/reminder_schemas.py
from pydantic import BaseModel, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

from models.settings_schemas import NotificationMode

class TriggerSpec(BaseModel):
    """
    When a reminder fires.
    - repeats=True: every day at hour:minute (local)
    - repeats=False: once, at fire_at (naive local wall-clock)
    """
    repeats: bool = True
    hour: int = 0
    minute: int = 0
    fire_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_fire_at(self):
        if not self.repeats and self.fire_at is None:
            raise ValueError("One-shot triggers need fire_at")
        return self

    @classmethod
    def daily(cls, hour: int, minute: int = 0) -> "TriggerSpec":
        return cls(repeats=True, hour=hour, minute=minute)

    @classmethod
    def once(cls, fire_at: datetime) -> "TriggerSpec":
        return cls(repeats=False, hour=fire_at.hour, minute=fire_at.minute, fire_at=fire_at)

class ScheduledReminder(BaseModel):
    identifier: str
    trigger: TriggerSpec
    title: str
    body: str
    category: str

class SmartPhaseName(str, Enum):
    AWAITING_INITIAL_CHECK = "awaiting_initial_check"
    AWAITING_FOLLOW_UP = "awaiting_follow_up"

class SmartPhase(BaseModel):
    name: SmartPhaseName = SmartPhaseName.AWAITING_INITIAL_CHECK
    due_at: Optional[datetime] = None
    backup_at: Optional[datetime] = None

class ReminderPlan(BaseModel):
    mode: NotificationMode
    reminders: List[ScheduledReminder] = []
    truncated: int = 0
    dropped: List[str] = []
    phase: Optional[SmartPhase] = None

    @property
    def identifiers(self) -> List[str]:
        return [r.identifier for r in self.reminders]

class ReminderResponse(BaseModel):
    identifier: str
    action: str
