"""Shared test fixtures."""

import copy
import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

import pytest

from macroscan.config import Settings
from macroscan.containers import AppContainer
from macroscan.domain.daily import DailyIntake
from macroscan.domain.ratio import RatioTriple
from macroscan.domain.scans import ScanRecord
from macroscan.domain.validation import ValidationReport, ValidationStatus
from macroscan.services.alternatives import AlternativesClient, AlternativesService
from macroscan.services.daily_intake import DailyIntakeRepository, DailyIntakeService
from macroscan.services.profile import ProfileService
from macroscan.services.retry import RetryPolicy
from macroscan.services.scans import (
    ImageStore,
    ScanRepository,
    ScanService,
    ValidationReportRepository,
)
from macroscan.services.settings import SettingsRepository, SettingsService
from macroscan.services.validation import ValidationPipeline
from macroscan.services.vision import VisionClient, VisionService

TODAY = date(2026, 3, 1)

SAMPLE_PAYLOAD: dict[str, object] = {
    "nutrition": {
        "serving_size": "100g",
        "calories": 250,
        "calories_confidence": 0.95,
        "carbohydrates_g": 30.5,
        "carbohydrates_confidence": 0.92,
        "protein_g": 10,
        "protein_confidence": 0.9,
        "fat_g": 5.2,
        "fat_confidence": 0.91,
        "sodium_mg": 320,
        "sodium_confidence": 0.88,
    },
    "ratio": {"carb_ratio": 60, "protein_ratio": 20, "fat_ratio": 20},
    "raw_data": {
        "ocr_full_text": "Nutrition Facts 250 kcal",
        "nutrition_table_text": "",
        "ingredients_text": "",
        "package_text_all": "",
    },
    "classified_data": {
        "product_name": "Oat Crackers",
        "product_name_confidence": 0.93,
        "brand": "Acme",
        "brand_confidence": 0.6,
        "food_category": "snack",
        "category_confidence": 0.9,
    },
    "metadata": {
        "image_quality": "high",
        "language_detected": "en",
        "data_source": "label",
    },
}


def make_payload(**sections: object) -> dict[str, object]:
    """Return a copy of the sample payload with whole sections replaced."""
    payload = copy.deepcopy(SAMPLE_PAYLOAD)
    for name, value in sections.items():
        if value is None:
            payload.pop(name, None)
        else:
            payload[name] = value
    return payload


async def no_sleep(_seconds: float) -> None:
    return None


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client replaying queued answers or errors."""

    payload: dict[str, object] = field(default_factory=make_payload)
    answers: list[object] = field(default_factory=list)
    calls: int = 0

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        prompt: str,
    ) -> str:
        self.calls += 1
        if self.answers:
            answer = self.answers.pop(0)
            if isinstance(answer, Exception):
                raise answer
            return str(answer)
        return json.dumps(self.payload)


@dataclass
class FakeAlternativesClient(AlternativesClient):
    """Fake warehouse client returning fixed rows."""

    rows: list[dict[str, object]] = field(
        default_factory=lambda: [
            {
                "description": "Whole grain crackers",
                "food_category": "Snacks",
                "carb_ratio": 50,
                "protein_ratio": 28,
                "fat_ratio": 22,
                "who_compliant": True,
                "energy_kcal": 180.0,
            }
        ]
    )
    error: Exception | None = None
    calls: list[tuple[str, str | None, RatioTriple, int]] = field(default_factory=list)

    async def find_alternatives(
        self,
        food_name: str,
        food_category: str | None,
        ratio: RatioTriple,
        limit: int,
    ) -> list[dict[str, object]]:
        self.calls.append((food_name, food_category, ratio, limit))
        if self.error is not None:
            raise self.error
        return self.rows


@dataclass
class InMemoryScanRepository(ScanRepository):
    """In-memory scan repository for tests."""

    records: dict[UUID, ScanRecord] = field(default_factory=dict)

    def insert_scan(self, record: ScanRecord) -> None:
        self.records[record.scan_id] = record

    def get_scan(self, scan_id: UUID) -> ScanRecord | None:
        return self.records.get(scan_id)

    def update_scan(self, record: ScanRecord) -> None:
        self.records[record.scan_id] = record

    def delete_scan(self, scan_id: UUID) -> None:
        self.records.pop(scan_id, None)

    def list_recent(self, limit: int) -> list[ScanRecord]:
        return self._newest_first()[:limit]

    def list_by_status(self, status: ValidationStatus, limit: int) -> list[ScanRecord]:
        matching = [
            record
            for record in self._newest_first()
            if record.validation_status is status
        ]
        return matching[:limit]

    def count_by_status(self) -> dict[ValidationStatus, int]:
        return dict(
            Counter(record.validation_status for record in self.records.values())
        )

    def list_older_than_newest(self, keep_count: int) -> list[ScanRecord]:
        return self._newest_first()[keep_count:]

    def _newest_first(self) -> list[ScanRecord]:
        return sorted(
            self.records.values(), key=lambda record: record.captured_at, reverse=True
        )


@dataclass
class InMemoryValidationReportRepository(ValidationReportRepository):
    """In-memory report repository for tests."""

    reports: dict[UUID, ValidationReport] = field(default_factory=dict)

    def insert_report(self, report: ValidationReport) -> None:
        self.reports[report.scan_id] = report

    def get_report(self, scan_id: UUID) -> ValidationReport | None:
        return self.reports.get(scan_id)

    def delete_reports(self, scan_id: UUID) -> None:
        self.reports.pop(scan_id, None)


@dataclass
class InMemoryImageStore(ImageStore):
    """In-memory image store for tests."""

    images: dict[str, bytes] = field(default_factory=dict)

    def save(self, scan_id: UUID, image_bytes: bytes) -> str:
        ref = f"scans/{scan_id}.jpg"
        self.images[ref] = image_bytes
        return ref

    def delete(self, image_ref: str) -> None:
        self.images.pop(image_ref, None)


@dataclass
class InMemoryDailyIntakeRepository(DailyIntakeRepository):
    """In-memory daily repository reading scans from a scan repository."""

    scans: InMemoryScanRepository
    intakes: dict[date, DailyIntake] = field(default_factory=dict)
    upserts: list[DailyIntake] = field(default_factory=list)

    def list_scans_between(self, start: datetime, end: datetime) -> list[ScanRecord]:
        return [
            record
            for record in self.scans.records.values()
            if start <= record.captured_at <= end
        ]

    def get_daily_intake(self, day: date) -> DailyIntake | None:
        return self.intakes.get(day)

    def upsert_daily_intake(self, intake: DailyIntake) -> None:
        self.intakes[intake.day] = intake
        self.upserts.append(intake)

    def list_daily_intakes(self, start: date, end: date) -> list[DailyIntake]:
        return sorted(
            (intake for day, intake in self.intakes.items() if start <= day <= end),
            key=lambda intake: intake.day,
            reverse=True,
        )


@dataclass
class InMemorySettingsRepository(SettingsRepository):
    """In-memory settings repository for tests."""

    values: dict[str, str] = field(default_factory=dict)

    def get_setting(self, key: str) -> str | None:
        return self.values.get(key)

    def set_setting(self, key: str, value: str) -> None:
        self.values[key] = value

    def get_all_settings(self) -> dict[str, str]:
        return dict(self.values)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        timezone="UTC",
    )


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def alternatives_client() -> FakeAlternativesClient:
    return FakeAlternativesClient()


@pytest.fixture
def scan_repository() -> InMemoryScanRepository:
    return InMemoryScanRepository()


@pytest.fixture
def daily_repository(
    scan_repository: InMemoryScanRepository,
) -> InMemoryDailyIntakeRepository:
    return InMemoryDailyIntakeRepository(scans=scan_repository)


@pytest.fixture
def daily_intake_service(
    daily_repository: InMemoryDailyIntakeRepository,
) -> DailyIntakeService:
    return DailyIntakeService(daily_repository)


@pytest.fixture
def settings_repository() -> InMemorySettingsRepository:
    return InMemorySettingsRepository()


@pytest.fixture
def profile_service(settings_repository: InMemorySettingsRepository) -> ProfileService:
    return ProfileService(settings_repository, today=lambda: TODAY)


@pytest.fixture
def settings_service(
    settings_repository: InMemorySettingsRepository, profile_service: ProfileService
) -> SettingsService:
    return SettingsService(settings_repository, profile_service=profile_service)


@pytest.fixture
def scan_service(
    vision_client: FakeVisionClient,
    alternatives_client: FakeAlternativesClient,
    scan_repository: InMemoryScanRepository,
    daily_intake_service: DailyIntakeService,
    settings_service: SettingsService,
) -> ScanService:
    vision_service = VisionService(
        client=vision_client,
        model="gpt-5.2",
        reasoning_effort=None,
        store=False,
        retry_policy=RetryPolicy(sleep=no_sleep),
    )
    return ScanService(
        vision_service=vision_service,
        pipeline=ValidationPipeline(),
        scan_repository=scan_repository,
        report_repository=InMemoryValidationReportRepository(),
        image_store=InMemoryImageStore(),
        daily_intake_service=daily_intake_service,
        settings_service=settings_service,
        alternatives_service=AlternativesService(alternatives_client),
    )


@pytest.fixture
def container(
    settings: Settings, scan_service: ScanService, profile_service: ProfileService
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        vision_service=scan_service.vision_service,
        validation_pipeline=scan_service.pipeline,
        daily_intake_service=scan_service.daily_intake_service,
        settings_service=scan_service.settings_service,
        profile_service=profile_service,
        alternatives_service=scan_service.alternatives_service,
        scan_service=scan_service,
        close_resources=close_resources,
    )
