"""Tests for daily intake aggregation."""

import asyncio
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest

from macroscan.domain.daily import DailyIntake
from macroscan.domain.nutrition import NutritionReading
from macroscan.domain.ratio import RatioTriple
from macroscan.domain.scans import ClassifiedPayload, RawPayload, ScanRecord
from macroscan.domain.validation import ValidationStatus
from macroscan.services.daily_intake import (
    LOCK_STRIPES,
    DailyIntakeService,
    aggregate_daily_intake,
)
from macroscan.services.scans import ScanService
from tests.conftest import (
    FakeVisionClient,
    InMemoryDailyIntakeRepository,
    InMemoryScanRepository,
    make_payload,
)


def _record(
    captured_at: datetime,
    calories: int | None = 200,
    carbs: float | None = 20.0,
    protein: float | None = 10.0,
    fat: float | None = 5.0,
    confidences: dict[str, float] | None = None,
) -> ScanRecord:
    return ScanRecord(
        scan_id=uuid4(),
        captured_at=captured_at,
        ratio=RatioTriple(50, 25, 25),
        image_ref="scans/test.jpg",
        nutrition=NutritionReading(
            calories=calories,
            carbohydrates_g=carbs,
            protein_g=protein,
            fat_g=fat,
            confidences=confidences or {},
        ),
        classified=ClassifiedPayload(),
        raw=RawPayload(),
        validation_status=ValidationStatus.PASSED,
    )


def test_aggregate_sums_grams_and_rounds_calories_once() -> None:
    day = date(2026, 3, 1)
    records = [
        _record(datetime(2026, 3, 1, 8, tzinfo=UTC), 200, 20.1, 10.1, 5.05),
        _record(datetime(2026, 3, 1, 12, tzinfo=UTC), 300, 30.1, 10.1, 5.05),
    ]

    intake = aggregate_daily_intake(day, records)

    assert intake.total_calories == 500
    assert intake.total_carb_g == pytest.approx(50.2)
    assert intake.carb_calories == 201
    assert intake.protein_calories == 81
    assert intake.fat_calories == 91
    assert intake.scan_count == 2
    assert intake.updated_at == datetime(2026, 3, 1, 12, tzinfo=UTC)
    assert intake.ratio.carb + intake.ratio.protein + intake.ratio.fat == 100


def test_aggregate_skips_incomplete_scans() -> None:
    day = date(2026, 3, 1)
    records = [
        _record(datetime(2026, 3, 1, 8, tzinfo=UTC)),
        _record(datetime(2026, 3, 1, 9, tzinfo=UTC), calories=None),
        _record(datetime(2026, 3, 1, 10, tzinfo=UTC), fat=None),
    ]

    intake = aggregate_daily_intake(day, records)

    assert intake.scan_count == 1
    assert intake.total_calories == 200


def test_aggregate_flags_estimated_data() -> None:
    day = date(2026, 3, 1)
    sure = _record(datetime(2026, 3, 1, 8, tzinfo=UTC), confidences={"fat": 0.9})
    unsure = _record(datetime(2026, 3, 1, 9, tzinfo=UTC), confidences={"fat": 0.5})

    assert not aggregate_daily_intake(day, [sure]).has_estimated_data
    assert aggregate_daily_intake(day, [sure, unsure]).has_estimated_data


def test_aggregate_is_order_independent() -> None:
    day = date(2026, 3, 1)
    records = [
        _record(
            datetime(2026, 3, 1, hour, tzinfo=UTC), 100 + hour, 10.1 * hour, 3.3, 1.7
        )
        for hour in range(1, 6)
    ]

    assert aggregate_daily_intake(day, records) == aggregate_daily_intake(
        day, list(reversed(records))
    )


def test_empty_day_yields_zero_record() -> None:
    day = date(2026, 3, 1)

    intake = aggregate_daily_intake(day, [])

    assert intake == DailyIntake.empty(day)
    assert intake.ratio == RatioTriple(33, 33, 34)
    assert intake.completion_percentage(2000) == 0


def test_recompute_is_idempotent_and_upserts() -> None:
    scans = InMemoryScanRepository()
    repository = InMemoryDailyIntakeRepository(scans=scans)
    service = DailyIntakeService(repository)
    record = _record(datetime(2026, 3, 1, 8, tzinfo=UTC))
    scans.insert_scan(record)

    first = service.recompute(date(2026, 3, 1))
    second = service.recompute(date(2026, 3, 1))

    assert first == second
    assert repository.intakes[date(2026, 3, 1)] == first
    assert len(repository.upserts) == 2


def test_recompute_uses_local_day_window() -> None:
    scans = InMemoryScanRepository()
    repository = InMemoryDailyIntakeRepository(scans=scans)
    service = DailyIntakeService(repository, timezone_name="Asia/Seoul")
    # 23:30 UTC on 1 March is 08:30 on 2 March in Seoul.
    scans.insert_scan(_record(datetime(2026, 3, 1, 23, 30, tzinfo=UTC)))

    intake = service.recompute_for(datetime(2026, 3, 1, 23, 30, tzinfo=UTC))

    assert intake.day == date(2026, 3, 2)
    assert intake.scan_count == 1
    assert service.recompute(date(2026, 3, 1)).scan_count == 0


def test_get_returns_empty_for_unknown_day() -> None:
    service = DailyIntakeService(
        InMemoryDailyIntakeRepository(scans=InMemoryScanRepository())
    )

    assert service.get(date(2026, 1, 1)) == DailyIntake.empty(date(2026, 1, 1))


def test_average_over_stored_days() -> None:
    scans = InMemoryScanRepository()
    service = DailyIntakeService(InMemoryDailyIntakeRepository(scans=scans))
    scans.insert_scan(_record(datetime(2026, 3, 1, 8, tzinfo=UTC), calories=100))
    scans.insert_scan(_record(datetime(2026, 3, 2, 8, tzinfo=UTC), calories=300))
    service.recompute(date(2026, 3, 1))
    service.recompute(date(2026, 3, 2))

    averages = service.average(date(2026, 3, 1), date(2026, 3, 31))

    assert averages.days == 2
    assert averages.avg_calories == 200
    assert service.average(date(2025, 1, 1), date(2025, 1, 2)).days == 0


def test_completion_percentage_is_clamped() -> None:
    intake = aggregate_daily_intake(
        date(2026, 3, 1), [_record(datetime(2026, 3, 1, tzinfo=UTC), calories=900)]
    )

    assert intake.completion_percentage(2000) == 45
    assert intake.completion_percentage(10) == 999
    assert intake.completion_percentage(0) == 0


def test_aggregate_counts_negative_values_as_zero() -> None:
    day = date(2026, 3, 1)
    records = [
        _record(datetime(2026, 3, 1, 8, tzinfo=UTC), 100, 20.0, 5.0, -20.0),
        _record(datetime(2026, 3, 1, 9, tzinfo=UTC), -50, 10.0, 5.0, 2.0),
    ]

    intake = aggregate_daily_intake(day, records)

    assert intake.total_calories == 100
    assert intake.total_fat_g == 2.0
    assert intake.fat_calories == 18
    assert intake.ratio == RatioTriple(67, 23, 10)
    assert intake.scan_count == 2


def test_negative_scan_does_not_break_daily_reads(
    scan_service: ScanService,
    vision_client: FakeVisionClient,
    daily_intake_service: DailyIntakeService,
) -> None:
    vision_client.payload = make_payload(
        nutrition={
            "calories": 100,
            "carbohydrates_g": 20,
            "protein_g": 5,
            "fat_g": -20,
        }
    )

    outcome = asyncio.run(
        scan_service.scan(b"\xff\xd8\xff", datetime(2026, 3, 1, 8, tzinfo=UTC))
    )

    assert outcome.record.validation_status is not ValidationStatus.FAILED
    intake = daily_intake_service.get(date(2026, 3, 1))
    assert intake.fat_calories == 0
    assert intake.ratio == RatioTriple(80, 20, 0)


def test_lock_set_is_fixed_and_stable_per_day() -> None:
    service = DailyIntakeService(
        InMemoryDailyIntakeRepository(scans=InMemoryScanRepository())
    )
    start = date(2026, 1, 1)

    for offset in range(100):
        service.recompute(start + timedelta(days=offset))

    assert len(service._locks) == LOCK_STRIPES
    assert service._lock_for(start) is service._lock_for(date(2026, 1, 1))
