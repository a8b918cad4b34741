"""Supabase repository for scan records."""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from macroscan.domain.nutrition import NutritionReading
from macroscan.domain.ratio import RatioTriple
from macroscan.domain.scans import RawPayload, ScanRecord
from macroscan.domain.validation import ValidationStatus
from macroscan.services.confidence import flatten_classified, parse_classified
from macroscan.services.scans import ScanRepository

SCANS_TABLE = "scan_results"
SCAN_COLUMNS = (
    "id, captured_at, carb_ratio, protein_ratio, fat_ratio, image_ref, nutrition, "
    "classified_data, raw_payload, validation_status, advice, display_name, "
    "image_quality, language_detected, data_source"
)
MAX_CLEANUP_BATCH = 1000


@dataclass
class SupabaseScanRepository(ScanRepository):
    """Supabase implementation for scan records."""

    client: Client

    def insert_scan(self, record: ScanRecord) -> None:
        """Create a scan row."""
        response = self.client.table(SCANS_TABLE).insert(scan_to_row(record)).execute()
        if not response.data:
            raise RuntimeError("Failed to create scan record")

    def get_scan(self, scan_id: UUID) -> ScanRecord | None:
        """Return a scan by id."""
        response = (
            self.client.table(SCANS_TABLE)
            .select(SCAN_COLUMNS)
            .eq("id", str(scan_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_scan_row(response.data[0])

    def update_scan(self, record: ScanRecord) -> None:
        """Update the user-editable columns of a scan."""
        self.client.table(SCANS_TABLE).update(
            {
                "display_name": record.display_name,
                "nutrition": record.nutrition.as_payload(),
            }
        ).eq("id", str(record.scan_id)).execute()

    def delete_scan(self, scan_id: UUID) -> None:
        """Delete a scan row."""
        self.client.table(SCANS_TABLE).delete().eq("id", str(scan_id)).execute()

    def list_recent(self, limit: int) -> list[ScanRecord]:
        """Return the newest scans."""
        response = (
            self.client.table(SCANS_TABLE)
            .select(SCAN_COLUMNS)
            .order("captured_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [parse_scan_row(row) for row in response.data or []]

    def list_by_status(self, status: ValidationStatus, limit: int) -> list[ScanRecord]:
        """Return the newest scans with a validation status."""
        response = (
            self.client.table(SCANS_TABLE)
            .select(SCAN_COLUMNS)
            .eq("validation_status", status.value)
            .order("captured_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [parse_scan_row(row) for row in response.data or []]

    def count_by_status(self) -> dict[ValidationStatus, int]:
        """Return scan counts per validation status."""
        response = self.client.table(SCANS_TABLE).select("validation_status").execute()
        counts = Counter(
            ValidationStatus(row["validation_status"]) for row in response.data or []
        )
        return dict(counts)

    def list_older_than_newest(self, keep_count: int) -> list[ScanRecord]:
        """Return up to one batch of scans beyond the newest ``keep_count``."""
        response = (
            self.client.table(SCANS_TABLE)
            .select(SCAN_COLUMNS)
            .order("captured_at", desc=True)
            .range(keep_count, keep_count + MAX_CLEANUP_BATCH - 1)
            .execute()
        )
        return [parse_scan_row(row) for row in response.data or []]


def scan_to_row(record: ScanRecord) -> dict[str, object]:
    """Convert a scan record to a table row."""
    return {
        "id": str(record.scan_id),
        "captured_at": record.captured_at.isoformat(),
        "carb_ratio": record.ratio.carb,
        "protein_ratio": record.ratio.protein,
        "fat_ratio": record.ratio.fat,
        "image_ref": record.image_ref,
        "nutrition": record.nutrition.as_payload(),
        "classified_data": flatten_classified(record.classified),
        "raw_payload": record.raw.data,
        "validation_status": record.validation_status.value,
        "advice": record.advice,
        "display_name": record.display_name,
        "image_quality": record.image_quality,
        "language_detected": record.language_detected,
        "data_source": record.data_source,
    }


def parse_scan_row(row: dict[str, object]) -> ScanRecord:
    """Convert a table row back into a scan record."""
    return ScanRecord(
        scan_id=UUID(str(row["id"])),
        captured_at=datetime.fromisoformat(str(row["captured_at"])),
        ratio=RatioTriple(
            carb=int(row["carb_ratio"]),
            protein=int(row["protein_ratio"]),
            fat=int(row["fat_ratio"]),
        ),
        image_ref=str(row.get("image_ref") or ""),
        nutrition=NutritionReading.from_payload(row.get("nutrition")),
        classified=parse_classified(row.get("classified_data")),
        raw=RawPayload(data=row.get("raw_payload") or {}),
        validation_status=ValidationStatus(
            row.get("validation_status") or ValidationStatus.PENDING.value
        ),
        advice=row.get("advice"),
        display_name=row.get("display_name"),
        image_quality=row.get("image_quality"),
        language_detected=row.get("language_detected"),
        data_source=row.get("data_source"),
    )
