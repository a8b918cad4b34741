"""Scan workflow: analyze, validate, normalize, filter, persist, aggregate."""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from macroscan.domain.alternatives import AlternativeFood
from macroscan.domain.nutrition import NutritionReading
from macroscan.domain.ratio import RatioTriple, ratio_from_grams
from macroscan.domain.scans import RawPayload, ScanRecord
from macroscan.domain.validation import ValidationReport, ValidationStatus
from macroscan.services.advice import build_advice
from macroscan.services.alternatives import AlternativesService
from macroscan.services.confidence import filter_classified, parse_classified
from macroscan.services.daily_intake import DailyIntakeService
from macroscan.services.settings import ALTERNATIVES_ENABLED, SettingsService
from macroscan.services.validation import ValidationPipeline
from macroscan.services.validators import CONFIDENCE_THRESHOLD
from macroscan.services.vision import VisionService

DEFAULT_KEEP_COUNT = 1000
DEFAULT_LIST_LIMIT = 100

_logger = logging.getLogger(__name__)


class ScanRepository(Protocol):
    """Persistence interface for scan records."""

    def insert_scan(self, record: ScanRecord) -> None:
        """Store a new scan record."""

    def get_scan(self, scan_id: UUID) -> ScanRecord | None:
        """Return a scan by id."""

    def update_scan(self, record: ScanRecord) -> None:
        """Replace the editable fields of a stored scan."""

    def delete_scan(self, scan_id: UUID) -> None:
        """Delete a scan by id."""

    def list_recent(self, limit: int) -> list[ScanRecord]:
        """Return the newest scans first."""

    def list_by_status(self, status: ValidationStatus, limit: int) -> list[ScanRecord]:
        """Return the newest scans with a given validation status."""

    def count_by_status(self) -> dict[ValidationStatus, int]:
        """Return the number of stored scans per validation status."""

    def list_older_than_newest(self, keep_count: int) -> list[ScanRecord]:
        """Return every scan beyond the newest ``keep_count``."""


class ValidationReportRepository(Protocol):
    """Persistence interface for validation reports."""

    def insert_report(self, report: ValidationReport) -> None:
        """Store a validation report."""

    def get_report(self, scan_id: UUID) -> ValidationReport | None:
        """Return the report stored for a scan, if any."""

    def delete_reports(self, scan_id: UUID) -> None:
        """Delete the reports stored for a scan."""


class ImageStore(Protocol):
    """Storage interface for scanned images."""

    def save(self, scan_id: UUID, image_bytes: bytes) -> str:
        """Store image bytes and return a reference to them."""

    def delete(self, image_ref: str) -> None:
        """Remove a stored image."""


@dataclass(frozen=True)
class ScanOutcome:
    """Everything produced by one scan."""

    record: ScanRecord
    report: ValidationReport
    alternatives: list[AlternativeFood]


@dataclass
class ScanService:
    """Runs the scan workflow and manages stored scans."""

    vision_service: VisionService
    pipeline: ValidationPipeline
    scan_repository: ScanRepository
    report_repository: ValidationReportRepository
    image_store: ImageStore
    daily_intake_service: DailyIntakeService
    settings_service: SettingsService
    alternatives_service: AlternativesService
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    persist_all_reports: bool = False

    async def scan(
        self, image_bytes: bytes, captured_at: datetime | None = None
    ) -> ScanOutcome:
        """Analyze an image and store the resulting scan.

        Nothing is written until analysis, validation and advice are done, so
        a failed vision call leaves no partial records behind. A failed write
        removes the image and scan row stored before it.
        """
        payload = await self.vision_service.analyze(image_bytes)
        captured_at = captured_at or datetime.now(tz=UTC)

        scan_id = uuid4()
        report = self.pipeline.validate(scan_id, payload, created_at=captured_at)
        status = self.pipeline.status(report)

        nutrition = NutritionReading.from_payload(payload.get("nutrition"))
        ratio = ratio_from_grams(
            _non_negative(nutrition.carbohydrates_g),
            _non_negative(nutrition.protein_g),
            _non_negative(nutrition.fat_g),
        )
        classified = filter_classified(
            parse_classified(payload.get("classified_data")),
            self.confidence_threshold,
        )
        metadata = payload.get("metadata")
        metadata = metadata if isinstance(metadata, Mapping) else {}
        product_name = classified.value("product_name")
        food_category = classified.value("food_category")

        alternatives: list[AlternativeFood] = []
        advice: str | None = None
        if self.settings_service.is_enabled(ALTERNATIVES_ENABLED):
            alternatives, advice = await self._advise(
                product_name if isinstance(product_name, str) else "",
                food_category if isinstance(food_category, str) else None,
                ratio,
            )

        image_ref = self.image_store.save(scan_id, image_bytes)
        record = ScanRecord(
            scan_id=scan_id,
            captured_at=captured_at,
            ratio=ratio,
            image_ref=image_ref,
            nutrition=nutrition,
            classified=classified,
            raw=RawPayload(data=copy.deepcopy(dict(payload))),
            validation_status=status,
            advice=advice,
            display_name=product_name if isinstance(product_name, str) else None,
            image_quality=_text(metadata.get("image_quality")),
            language_detected=_text(metadata.get("language_detected")),
            data_source=_text(metadata.get("data_source")),
        )
        self._persist(record, report)
        _logger.info(
            "Stored scan %s with status %s and ratio %s",
            scan_id,
            status.value,
            ratio.compact,
        )

        self.daily_intake_service.recompute_for(captured_at)
        return ScanOutcome(record=record, report=report, alternatives=alternatives)

    def get(self, scan_id: UUID) -> ScanRecord | None:
        """Return a stored scan."""
        return self.scan_repository.get_scan(scan_id)

    def get_report(self, scan_id: UUID) -> ValidationReport | None:
        """Return the validation report stored for a scan."""
        return self.report_repository.get_report(scan_id)

    def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> list[ScanRecord]:
        """Return the newest scans."""
        return self.scan_repository.list_recent(limit)

    def list_by_status(
        self, status: ValidationStatus, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[ScanRecord]:
        """Return the newest scans with a given status."""
        return self.scan_repository.list_by_status(status, limit)

    def count_by_status(self) -> dict[ValidationStatus, int]:
        """Return scan counts for every status, including zero counts."""
        counts = self.scan_repository.count_by_status()
        return {status: counts.get(status, 0) for status in ValidationStatus}

    def update_display_fields(
        self,
        scan_id: UUID,
        name: str | None = None,
        serving_size: str | None = None,
    ) -> ScanRecord | None:
        """Edit a scan's display name or serving size."""
        record = self.scan_repository.get_scan(scan_id)
        if record is None:
            return None
        updated = record.with_display_fields(name, serving_size)
        self.scan_repository.update_scan(updated)
        self.daily_intake_service.recompute_for(updated.captured_at)
        return updated

    def delete(self, scan_id: UUID) -> bool:
        """Delete a scan, its report and image. Return False if it did not exist."""
        record = self.scan_repository.get_scan(scan_id)
        if record is None:
            return False
        self._remove(record)
        self.daily_intake_service.recompute_for(record.captured_at)
        return True

    def cleanup_old(self, keep_count: int = DEFAULT_KEEP_COUNT) -> int:
        """Delete all but the newest ``keep_count`` scans and return how many went."""
        stale = self.scan_repository.list_older_than_newest(keep_count)
        days = set()
        for record in stale:
            self._remove(record)
            days.add(self.daily_intake_service.local_day(record.captured_at))
        for day in sorted(days):
            self.daily_intake_service.recompute(day)
        if stale:
            _logger.info("Cleaned up %s old scans", len(stale))
        return len(stale)

    async def _advise(
        self, food_name: str, food_category: str | None, ratio: RatioTriple
    ) -> tuple[list[AlternativeFood], str | None]:
        try:
            alternatives = await self.alternatives_service.find(
                food_name, food_category, ratio
            )
            advice = build_advice(
                ratio, self.settings_service.get_target_ratio(), alternatives
            )
        except Exception:
            _logger.exception("Failed to build advice for %s", food_name or "scan")
            return [], None
        return alternatives, advice

    def _persist(self, record: ScanRecord, report: ValidationReport) -> None:
        """Store the scan and its report, undoing earlier writes if one fails."""
        try:
            self.scan_repository.insert_scan(record)
            try:
                if (
                    record.validation_status is not ValidationStatus.PASSED
                    or self.persist_all_reports
                ):
                    self.report_repository.insert_report(report)
            except Exception:
                self.scan_repository.delete_scan(record.scan_id)
                raise
        except Exception:
            _logger.exception("Failed to store scan %s", record.scan_id)
            self._delete_image(record.image_ref)
            raise

    def _remove(self, record: ScanRecord) -> None:
        self.report_repository.delete_reports(record.scan_id)
        self.scan_repository.delete_scan(record.scan_id)
        self._delete_image(record.image_ref)

    def _delete_image(self, image_ref: str) -> None:
        try:
            self.image_store.delete(image_ref)
        except Exception as exc:
            _logger.warning("Failed to delete image %s: %s", image_ref, exc)


def _non_negative(value: float | None) -> float:
    return max(value or 0.0, 0.0)


def _text(value: object) -> str | None:
    return value if isinstance(value, str) and value else None
