# services/fcm_service.py
# Firebase Cloud Messaging delivery for hydration reminders

import firebase_admin
from firebase_admin import credentials, messaging
from datetime import datetime, timezone
from typing import Optional, Dict
import os

from services.supabase_service import get_supabase_service

def initialize_firebase() -> bool:
    """Initialize Firebase Admin SDK. Returns False when no credentials are configured."""
    try:
        # Check if already initialized
        firebase_admin.get_app()
        print("✅ Firebase already initialized")
        return True
    except ValueError:
        pass

    cred_path = os.getenv('FIREBASE_CREDENTIALS_PATH', 'firebase-credentials.json')

    if os.path.exists(cred_path):
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred)
        print("✅ Firebase Admin initialized with credentials file")
        return True

    print("⚠️ Firebase credentials file not found, trying environment variables")
    cred_dict = {
        "type": "service_account",
        "project_id": os.getenv('FIREBASE_PROJECT_ID'),
        "private_key_id": os.getenv('FIREBASE_PRIVATE_KEY_ID'),
        "private_key": os.getenv('FIREBASE_PRIVATE_KEY', '').replace('\\n', '\n'),
        "client_email": os.getenv('FIREBASE_CLIENT_EMAIL'),
        "client_id": os.getenv('FIREBASE_CLIENT_ID'),
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
    }

    if cred_dict['project_id']:
        cred = credentials.Certificate(cred_dict)
        firebase_admin.initialize_app(cred)
        print("✅ Firebase Admin initialized with environment variables")
        return True

    print("❌ Firebase credentials not found!")
    return False

class FCMService:
    def __init__(self, store=None):
        self.store = store or get_supabase_service()

    async def has_permission(self, user_id: str) -> bool:
        """A user has granted notification permission once their device registered a token"""
        token = await self.store.get_fcm_token(user_id)
        return bool(token)

    def _build_message(self, token: str, title: str, body: str, data: Dict[str, str]) -> messaging.Message:
        return messaging.Message(
            notification=messaging.Notification(
                title=title,
                body=body,
            ),
            data=data,
            token=token,
            android=messaging.AndroidConfig(
                priority='high',
                notification=messaging.AndroidNotification(
                    sound='default',
                    channel_id='hydration_reminders',
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        alert=messaging.ApsAlert(
                            title=title,
                            body=body,
                        ),
                        sound='default',
                        category=data.get('category'),
                    ),
                ),
            ),
        )

    async def send_notification_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None
    ) -> bool:
        """Send FCM notification to a specific user"""
        try:
            fcm_token = await self.store.get_fcm_token(user_id)

            if not fcm_token:
                print(f"⚠️ No FCM token found for user: {user_id}")
                return False

            message = self._build_message(fcm_token, title, body, data or {})
            response = messaging.send(message)
            print(f"✅ Notification sent to user {user_id}: {response}")

            await self.log_notification_sent(user_id, title, body, (data or {}).get('category', 'hydration'))
            return True

        except Exception as e:
            print(f"❌ Error sending notification to user {user_id}: {e}")
            return False

    async def log_notification_sent(self, user_id: str, title: str, body: str, notification_type: str):
        """Log notification to database"""
        try:
            await self.store.log_notification({
                'user_id': user_id,
                'title': title,
                'message': body,
                'type': notification_type,
                'created_at': datetime.now(timezone.utc).isoformat()
            })
        except Exception as e:
            print(f"⚠️ Error logging notification: {e}")

# Global instance
fcm_service = None

def get_fcm_service() -> FCMService:
    """Get the global FCM service instance"""
    global fcm_service
    if fcm_service is None:
        fcm_service = FCMService()
    return fcm_service

def init_fcm_service():
    """Initialize Firebase and the global FCM service"""
    global fcm_service
    initialize_firebase()
    fcm_service = FCMService()
    return fcm_service
