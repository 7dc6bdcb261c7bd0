# services/supabase_service.py
from supabase import create_client, Client
import os
from typing import Dict, List, Optional, Any
from datetime import datetime, date, timezone

from models.water_schemas import WaterEntry, Container
from services.container_catalog import containers_from_json, containers_to_json
from utils.timezone_utils import day_bounds

class SupabaseService:
    """Entry store, container list and settings row, backed by Supabase tables"""

    def __init__(self, client: Optional[Client] = None):
        if client is not None:
            self.client = client
            return

        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_KEY")

        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment variables")

        self.client: Client = create_client(url, key)
        print("✅ Supabase client initialized")

    # Water entries
    @staticmethod
    def _row_to_entry(row: Dict[str, Any]) -> WaterEntry:
        return WaterEntry(
            id=row['id'],
            user_id=row['user_id'],
            timestamp=datetime.fromisoformat(row['timestamp']),
            amount_ml=int(row['amount_ml']),
            is_training_day=bool(row.get('is_training_day', False)),
            container_id=row.get('container_id'),
            fraction_numerator=row.get('fraction_numerator'),
            fraction_denominator=row.get('fraction_denominator'),
        )

    async def create_water_entry(self, entry: WaterEntry) -> str:
        """Insert a water entry and return its id"""
        try:
            data = entry.model_dump()
            data['timestamp'] = entry.timestamp.isoformat()
            data['created_at'] = datetime.now(timezone.utc).isoformat()

            response = self.client.table('water_entries').insert(data).execute()
            if response.data:
                return response.data[0]['id']
            else:
                raise Exception("No data returned from Supabase")
        except Exception as e:
            print(f"❌ Error creating water entry: {e}")
            raise

    async def delete_water_entry(self, user_id: str, entry_id: str) -> bool:
        """Delete water entry. Returns False when nothing matched."""
        try:
            response = self.client.table('water_entries')\
                .delete()\
                .eq('user_id', user_id)\
                .eq('id', entry_id)\
                .execute()

            return bool(response.data)
        except Exception as e:
            print(f"❌ Error deleting water entry: {e}")
            raise

    async def get_water_entries_in_range(self, user_id: str, start_day: date, end_day: date) -> List[WaterEntry]:
        """Entries logged from start_day through end_day (local calendar days), in insertion order"""
        try:
            start, end = day_bounds(start_day, end_day)

            response = self.client.table('water_entries')\
                .select('*')\
                .eq('user_id', user_id)\
                .gte('timestamp', start.isoformat())\
                .lt('timestamp', end.isoformat())\
                .order('created_at')\
                .execute()

            return [self._row_to_entry(row) for row in (response.data or [])]
        except Exception as e:
            print(f"❌ Error getting water entries in range: {e}")
            raise

    # Containers (JSON-encoded list in the settings row)
    async def get_containers(self, user_id: str) -> List[Container]:
        """User's containers in display order; defaults when none are saved"""
        settings = await self.get_settings(user_id)
        return containers_from_json(settings.get('containers_json'))

    async def save_containers(self, user_id: str, containers: List[Container]) -> List[Container]:
        """Replace the user's container list"""
        await self.save_settings(user_id, {'containers_json': containers_to_json(containers)})
        print(f"✅ Saved {len(containers)} containers for user {user_id}")
        return containers

    # Settings (flat key/value row per user)
    async def get_settings(self, user_id: str) -> Dict[str, Any]:
        try:
            response = self.client.table('hydration_settings')\
                .select('*')\
                .eq('user_id', user_id)\
                .execute()

            return response.data[0] if response.data else {}
        except Exception as e:
            print(f"❌ Error getting settings: {e}")
            raise

    async def save_settings(self, user_id: str, settings: Dict[str, Any]) -> Dict[str, Any]:
        try:
            data = dict(settings)
            data['user_id'] = user_id
            data['updated_at'] = datetime.now(timezone.utc).isoformat()

            response = self.client.table('hydration_settings')\
                .upsert(data, on_conflict='user_id')\
                .execute()

            return response.data[0] if response.data else data
        except Exception as e:
            print(f"❌ Error saving settings: {e}")
            raise

    # Push tokens and notification log
    async def get_fcm_token(self, user_id: str) -> Optional[str]:
        try:
            response = self.client.table('fcm_tokens')\
                .select('fcm_token')\
                .eq('user_id', user_id)\
                .execute()

            return response.data[0]['fcm_token'] if response.data else None
        except Exception as e:
            print(f"❌ Error getting FCM token: {e}")
            return None

    async def save_fcm_token(self, user_id: str, fcm_token: str, platform: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.table('fcm_tokens').upsert({
                'user_id': user_id,
                'fcm_token': fcm_token,
                'platform': platform,
                'updated_at': datetime.now(timezone.utc).isoformat()
            }, on_conflict='user_id').execute()

            return response.data[0] if response.data else None
        except Exception as e:
            print(f"❌ Error saving FCM token: {e}")
            raise

    async def log_notification(self, data: Dict[str, Any]) -> None:
        self.client.table('notifications').insert(data).execute()

    async def health_check(self) -> Dict[str, Any]:
        try:
            self.client.table('hydration_settings').select('user_id').limit(1).execute()
            return {"status": "healthy", "message": "Supabase connection OK"}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

# Global instance - we'll initialize this in main.py
supabase_service = None

def get_supabase_service() -> SupabaseService:
    """Get the global Supabase service instance"""
    global supabase_service
    if supabase_service is None:
        supabase_service = SupabaseService()
    return supabase_service

def init_supabase_service():
    """Initialize the global Supabase service"""
    global supabase_service
    supabase_service = SupabaseService()
    return supabase_service
