# models/settings_schemas.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from enum import Enum

class NotificationMode(str, Enum):
    OFF = "off"
    PERIODIC = "periodic"
    SMART = "smart"

class GoalConfiguration(BaseModel):
    """Per-user settings the aggregator and reminder scheduler read through"""
    daily_goal_ml: int = 2000
    training_day_goal_ml: int = 3000
    is_training_day: bool = False

    notification_mode: NotificationMode = NotificationMode.OFF
    periodic_start_hour: int = Field(default=9, ge=0, le=23)
    periodic_end_hour: int = Field(default=21, ge=0, le=23)
    periodic_interval_hours: int = Field(default=2, ge=1, le=23)

    # Smart mode toggles
    smart_initial_backup: bool = True
    smart_adaptive_follow_ups: bool = True

    def goal_for(self, is_training_day: bool) -> int:
        return self.training_day_goal_ml if is_training_day else self.daily_goal_ml

class GoalConfigurationUpdate(BaseModel):
    daily_goal_ml: Optional[int] = None
    training_day_goal_ml: Optional[int] = None
    is_training_day: Optional[bool] = None

class ReminderModeUpdate(BaseModel):
    mode: NotificationMode
    start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    end_hour: Optional[int] = Field(default=None, ge=0, le=23)
    interval_hours: Optional[int] = Field(default=None, ge=1, le=23)
    smart_initial_backup: Optional[bool] = None
    smart_adaptive_follow_ups: Optional[bool] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start_hour is not None and self.end_hour is not None:
            if self.start_hour > self.end_hour:
                raise ValueError("start_hour must not be after end_hour")
        return self
