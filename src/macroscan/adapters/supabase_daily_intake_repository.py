"""Supabase repository for daily intake totals."""

from dataclasses import dataclass
from datetime import date, datetime

from supabase import Client

from macroscan.adapters.supabase_scan_repository import (
    SCAN_COLUMNS,
    SCANS_TABLE,
    parse_scan_row,
)
from macroscan.domain.daily import DailyIntake
from macroscan.domain.scans import ScanRecord
from macroscan.services.daily_intake import DailyIntakeRepository

DAILY_TABLE = "daily_intake"


@dataclass
class SupabaseDailyIntakeRepository(DailyIntakeRepository):
    """Supabase implementation for daily intake summaries."""

    client: Client

    def list_scans_between(self, start: datetime, end: datetime) -> list[ScanRecord]:
        """Return scans captured within the window."""
        response = (
            self.client.table(SCANS_TABLE)
            .select(SCAN_COLUMNS)
            .gte("captured_at", start.isoformat())
            .lte("captured_at", end.isoformat())
            .order("captured_at", desc=False)
            .execute()
        )
        return [parse_scan_row(row) for row in response.data or []]

    def get_daily_intake(self, day: date) -> DailyIntake | None:
        """Return the stored summary for a day."""
        response = (
            self.client.table(DAILY_TABLE)
            .select("*")
            .eq("day", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_intake(response.data[0])

    def upsert_daily_intake(self, intake: DailyIntake) -> None:
        """Insert or replace the summary row for its day."""
        self.client.table(DAILY_TABLE).upsert(
            {
                "day": intake.day.isoformat(),
                "total_calories": intake.total_calories,
                "carb_calories": intake.carb_calories,
                "protein_calories": intake.protein_calories,
                "fat_calories": intake.fat_calories,
                "total_carb_g": intake.total_carb_g,
                "total_protein_g": intake.total_protein_g,
                "total_fat_g": intake.total_fat_g,
                "has_estimated_data": intake.has_estimated_data,
                "scan_count": intake.scan_count,
                "updated_at": (
                    intake.updated_at.isoformat() if intake.updated_at else None
                ),
            },
            on_conflict="day",
        ).execute()

    def list_daily_intakes(self, start: date, end: date) -> list[DailyIntake]:
        """Return stored summaries in the range, newest first."""
        response = (
            self.client.table(DAILY_TABLE)
            .select("*")
            .gte("day", start.isoformat())
            .lte("day", end.isoformat())
            .order("day", desc=True)
            .execute()
        )
        return [_parse_intake(row) for row in response.data or []]


def _parse_intake(row: dict[str, object]) -> DailyIntake:
    updated_at = row.get("updated_at")
    return DailyIntake(
        day=date.fromisoformat(str(row["day"])),
        total_calories=int(row.get("total_calories") or 0),
        carb_calories=int(row.get("carb_calories") or 0),
        protein_calories=int(row.get("protein_calories") or 0),
        fat_calories=int(row.get("fat_calories") or 0),
        total_carb_g=float(row.get("total_carb_g") or 0.0),
        total_protein_g=float(row.get("total_protein_g") or 0.0),
        total_fat_g=float(row.get("total_fat_g") or 0.0),
        has_estimated_data=bool(row.get("has_estimated_data")),
        scan_count=int(row.get("scan_count") or 0),
        updated_at=datetime.fromisoformat(str(updated_at)) if updated_at else None,
    )
