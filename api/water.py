# api/water.py
from fastapi import APIRouter, HTTPException, Depends
from typing import Optional

from models.water_schemas import ContainerPortion, WaterEntryCreate
from services.errors import ConfigurationError, EntryNotFoundError
from services.intake_service import get_intake_service
from utils.timezone_utils import get_timezone_offset, get_user_today, parse_user_date

router = APIRouter(prefix="/api/water", tags=["water"])

@router.post("/{user_id}/entries")
async def log_water(user_id: str, data: WaterEntryCreate, tz_offset: int = Depends(get_timezone_offset)):
    """Log a custom amount or a portion of a container, optionally backdated"""
    try:
        intake = get_intake_service()
        day = parse_user_date(data.date, tz_offset) if data.date else None

        if data.container_id:
            portion = ContainerPortion(numerator=data.numerator, denominator=data.denominator)
            entry = await intake.log_container_portion(user_id, data.container_id, portion, day, tz_offset)
        else:
            entry = await intake.log_custom_amount(user_id, data.amount_ml, day, tz_offset)

        progress = await intake.today_progress(user_id, tz_offset)
        return {"success": True, "entry": entry.model_dump(), "today": progress.model_dump()}

    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ConfigurationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error logging water: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{user_id}/entries/{entry_id}")
async def delete_water(user_id: str, entry_id: str):
    try:
        await get_intake_service().delete_entry(user_id, entry_id)
        return {"success": True, "message": "Water entry deleted"}
    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        print(f"❌ Error deleting water entry: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{user_id}/today")
async def get_today(user_id: str, tz_offset: int = Depends(get_timezone_offset)):
    """Today's total, goal and progress"""
    try:
        progress = await get_intake_service().today_progress(user_id, tz_offset)
        return {"success": True, "today": progress.model_dump()}
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error getting today's water: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{user_id}/day/{day}")
async def get_day(user_id: str, day: str, tz_offset: int = Depends(get_timezone_offset)):
    """Entries logged on a day, most recent first"""
    try:
        entries = await get_intake_service().day_entries(user_id, parse_user_date(day, tz_offset))
        return {"success": True, "entries": [e.model_dump() for e in entries], "count": len(entries)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error getting day entries: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{user_id}/history")
async def get_history(
    user_id: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
    tz_offset: int = Depends(get_timezone_offset)
):
    """Calendar month stats: per-day progress, average percentage, current streak"""
    try:
        today = get_user_today(tz_offset)
        year = year or today.year
        month = month or today.month
        if not 1 <= month <= 12:
            raise HTTPException(status_code=400, detail="month must be 1-12")

        stats = await get_intake_service().month_stats(user_id, year, month, tz_offset)
        return {"success": True, "stats": stats.model_dump()}

    except HTTPException:
        raise
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        print(f"❌ Error getting water history: {e}")
        raise HTTPException(status_code=500, detail=str(e))
