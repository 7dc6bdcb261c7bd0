# api/fcm.py
# Firebase Cloud Messaging API endpoints

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from datetime import datetime, timezone

from services.fcm_service import get_fcm_service
from services.supabase_service import get_supabase_service

router = APIRouter(prefix="/api/fcm", tags=["fcm"])

class FCMTokenRegister(BaseModel):
    user_id: str
    fcm_token: str
    platform: str = "ios"

class FCMTestNotification(BaseModel):
    user_id: str

@router.post("/register")
async def register_fcm_token(data: FCMTokenRegister):
    """Register the device token. This is what grants reminder permission."""
    try:
        print(f"📱 Registering FCM token for user: {data.user_id}")

        result = await get_supabase_service().save_fcm_token(data.user_id, data.fcm_token, data.platform)

        return {
            "success": True,
            "message": "FCM token registered successfully",
            "data": result
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/test")
async def send_test_notification(data: FCMTestNotification):
    """Send a test notification to a user"""
    print(f"🧪 Sending test notification to user: {data.user_id}")

    success = await get_fcm_service().send_notification_to_user(
        user_id=data.user_id,
        title="🧪 Test Notification",
        body="If you see this, hydration reminders will reach you!",
        data={"category": "test", "timestamp": datetime.now(timezone.utc).isoformat()}
    )

    if not success:
        raise HTTPException(status_code=404, detail="No FCM token found for user")

    return {
        "success": True,
        "message": "Test notification sent successfully"
    }
