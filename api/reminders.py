# api/reminders.py
from fastapi import APIRouter, HTTPException, Depends

from models.reminder_schemas import ReminderResponse
from models.settings_schemas import NotificationMode, ReminderModeUpdate
from services.errors import ConfigurationError, PermissionDeniedError
from services.reminder_scheduler import ReminderScheduler, get_reminder_scheduler
from services.settings_provider import get_settings_provider
from utils.timezone_utils import get_timezone_offset

router = APIRouter(prefix="/api/reminders", tags=["reminders"])

async def _restore_scheduler(user_id: str, tz_offset: int) -> ReminderScheduler:
    """Scheduler for the user, re-applying saved settings if this process has not seen them yet"""
    scheduler = get_reminder_scheduler(user_id, tz_offset)
    if scheduler.config is None:
        config = await get_settings_provider().get_goal_configuration(user_id)
        if config.notification_mode != NotificationMode.OFF:
            print(f"🔄 Restoring {config.notification_mode.value} reminders for user {user_id}")
            await scheduler.apply_mode(config)
        else:
            scheduler.config = config
    return scheduler

@router.put("/{user_id}/mode")
async def set_reminder_mode(user_id: str, data: ReminderModeUpdate, tz_offset: int = Depends(get_timezone_offset)):
    """Switch reminder mode or change its parameters. Always rebuilds the full schedule."""
    provider = get_settings_provider()
    try:
        config = await provider.update_goal_configuration(user_id, {
            'notification_mode': data.mode,
            'periodic_start_hour': data.start_hour,
            'periodic_end_hour': data.end_hour,
            'periodic_interval_hours': data.interval_hours,
            'smart_initial_backup': data.smart_initial_backup,
            'smart_adaptive_follow_ups': data.smart_adaptive_follow_ups,
        })

        scheduler = get_reminder_scheduler(user_id, tz_offset)
        plan = await scheduler.apply_mode(config)

        return {
            "success": True,
            "plan": plan.model_dump(mode="json"),
            "truncated": plan.truncated
        }

    except PermissionDeniedError as e:
        await provider.update_goal_configuration(user_id, {'notification_mode': NotificationMode.OFF})
        raise HTTPException(
            status_code=403,
            detail=f"{e}. Reminders were turned off; enable notifications on the device and try again."
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error setting reminder mode: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/{user_id}/response")
async def respond_to_reminder(user_id: str, data: ReminderResponse, tz_offset: int = Depends(get_timezone_offset)):
    """A notification action (ON_PACE / BEHIND) tapped on the device"""
    try:
        scheduler = await _restore_scheduler(user_id, tz_offset)
        print(f"📲 User {user_id} answered {data.identifier} with {data.action}")

        await scheduler.sink.dispatch_user_response(data.identifier, data.action)

        return {
            "success": True,
            "mode": scheduler.mode.value,
            "phase": scheduler.phase.model_dump(mode="json") if scheduler.phase else None,
            "pending": await scheduler.pending()
        }

    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        print(f"❌ Error handling reminder response: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/{user_id}/goal-reached")
async def goal_reached(user_id: str, tz_offset: int = Depends(get_timezone_offset)):
    """Stop today's reminders once the goal is met"""
    try:
        scheduler = get_reminder_scheduler(user_id, tz_offset)
        plan = await scheduler.on_goal_reached()
        return {"success": True, "plan": plan.model_dump(mode="json")}
    except Exception as e:
        print(f"❌ Error cancelling reminders: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{user_id}/pending")
async def get_pending_reminders(user_id: str, tz_offset: int = Depends(get_timezone_offset)):
    try:
        scheduler = get_reminder_scheduler(user_id, tz_offset)
        return {
            "success": True,
            "mode": scheduler.mode.value,
            "goal_met": scheduler.goal_met,
            "pending": await scheduler.pending()
        }
    except Exception as e:
        print(f"❌ Error getting pending reminders: {e}")
        raise HTTPException(status_code=500, detail=str(e))
