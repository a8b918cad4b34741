"""Supabase repository for key-value app settings."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from macroscan.services.settings import SettingsRepository

SETTINGS_TABLE = "app_settings"


@dataclass
class SupabaseSettingsRepository(SettingsRepository):
    """Supabase implementation for app settings."""

    client: Client

    def get_setting(self, key: str) -> str | None:
        """Return the stored value for a key."""
        response = (
            self.client.table(SETTINGS_TABLE)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def set_setting(self, key: str, value: str) -> None:
        """Insert or replace the value for a key."""
        self.client.table(SETTINGS_TABLE).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="key",
        ).execute()

    def get_all_settings(self) -> dict[str, str]:
        """Return every stored setting."""
        response = self.client.table(SETTINGS_TABLE).select("key, value").execute()
        return {str(row["key"]): str(row["value"]) for row in response.data or []}
