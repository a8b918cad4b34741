"""Supabase repository for validation reports."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from macroscan.domain.validation import ValidationReport
from macroscan.services.scans import ValidationReportRepository

REPORTS_TABLE = "validation_reports"


@dataclass
class SupabaseValidationReportRepository(ValidationReportRepository):
    """Supabase implementation for validation reports."""

    client: Client

    def insert_report(self, report: ValidationReport) -> None:
        """Create a report row."""
        response = (
            self.client.table(REPORTS_TABLE)
            .insert(
                {
                    "id": str(report.report_id),
                    "scan_id": str(report.scan_id),
                    "created_at": report.created_at.isoformat(),
                    "level1_pass": report.level1_pass,
                    "level1_missing_fields": list(report.level1_missing_fields),
                    "level2_warnings": list(report.level2_warnings),
                    "level3_ratio_sum_valid": report.level3_ratio_sum_valid,
                    "level3_calorie_diff_percent": report.level3_calorie_diff_percent,
                    "level4_anomalies": list(report.level4_anomalies),
                    "level5_low_confidence_count": report.level5_low_confidence_count,
                    "level5_details": report.level5_details,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create validation report")

    def get_report(self, scan_id: UUID) -> ValidationReport | None:
        """Return the newest report for a scan."""
        response = (
            self.client.table(REPORTS_TABLE)
            .select("*")
            .eq("scan_id", str(scan_id))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_report(response.data[0])

    def delete_reports(self, scan_id: UUID) -> None:
        """Delete every report for a scan."""
        self.client.table(REPORTS_TABLE).delete().eq("scan_id", str(scan_id)).execute()


def _parse_report(row: dict[str, object]) -> ValidationReport:
    diff = row.get("level3_calorie_diff_percent")
    return ValidationReport(
        report_id=UUID(str(row["id"])),
        scan_id=UUID(str(row["scan_id"])),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        level1_pass=bool(row.get("level1_pass")),
        level1_missing_fields=tuple(row.get("level1_missing_fields") or ()),
        level2_warnings=tuple(row.get("level2_warnings") or ()),
        level3_ratio_sum_valid=row.get("level3_ratio_sum_valid"),
        level3_calorie_diff_percent=float(diff) if diff is not None else None,
        level4_anomalies=tuple(row.get("level4_anomalies") or ()),
        level5_low_confidence_count=int(row.get("level5_low_confidence_count") or 0),
        level5_details={
            str(key): float(value)
            for key, value in (row.get("level5_details") or {}).items()
        },
    )
