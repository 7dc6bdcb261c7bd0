# services/settings_provider.py
from typing import Dict, Any

from pydantic import ValidationError

from models.settings_schemas import GoalConfiguration
from services.errors import ConfigurationError
from services.supabase_service import get_supabase_service

SETTINGS_KEYS = list(GoalConfiguration.model_fields.keys())

class SettingsProvider:
    """Reads and writes a user's GoalConfiguration through the settings store"""

    def __init__(self, store=None):
        self.store = store or get_supabase_service()

    async def get_goal_configuration(self, user_id: str) -> GoalConfiguration:
        row = await self.store.get_settings(user_id)
        values = {k: row[k] for k in SETTINGS_KEYS if row.get(k) is not None}
        try:
            return GoalConfiguration(**values)
        except ValidationError as e:
            print(f"⚠️ Stored settings for {user_id} are invalid, using defaults: {e}")
            return GoalConfiguration()

    async def update_goal_configuration(self, user_id: str, changes: Dict[str, Any]) -> GoalConfiguration:
        """Apply changes on top of the current settings, validate, persist"""
        current = await self.get_goal_configuration(user_id)
        merged = current.model_dump()
        merged.update({k: v for k, v in changes.items() if v is not None and k in SETTINGS_KEYS})

        try:
            config = GoalConfiguration(**merged)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

        if config.daily_goal_ml <= 0 or config.training_day_goal_ml <= 0:
            raise ConfigurationError("Goals must be positive")
        if config.periodic_start_hour > config.periodic_end_hour:
            raise ConfigurationError("Reminder start hour must not be after end hour")

        await self.store.save_settings(user_id, config.model_dump(mode="json"))
        print(f"✅ Settings saved for user {user_id}")
        return config

# Global instance
settings_provider = None

def get_settings_provider() -> SettingsProvider:
    global settings_provider
    if settings_provider is None:
        settings_provider = SettingsProvider()
    return settings_provider
