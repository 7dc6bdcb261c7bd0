# api/settings.py
from fastapi import APIRouter, HTTPException

from models.settings_schemas import GoalConfigurationUpdate
from services.errors import ConfigurationError
from services.settings_provider import get_settings_provider

router = APIRouter(prefix="/api/settings", tags=["settings"])

@router.get("/{user_id}")
async def get_settings(user_id: str):
    """Daily goal, training-day goal and reminder settings"""
    try:
        config = await get_settings_provider().get_goal_configuration(user_id)
        return {"success": True, "settings": config.model_dump(mode="json")}
    except Exception as e:
        print(f"❌ Error getting settings: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.put("/{user_id}/goals")
async def update_goals(user_id: str, data: GoalConfigurationUpdate):
    """Update goals or toggle today's training-day flag"""
    try:
        config = await get_settings_provider().update_goal_configuration(user_id, data.model_dump())
        print(f"🎯 Goals for {user_id}: {config.daily_goal_ml} mL / training {config.training_day_goal_ml} mL")
        return {"success": True, "settings": config.model_dump(mode="json")}
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error updating goals: {e}")
        raise HTTPException(status_code=500, detail=str(e))
