"""Daily intake aggregation over stored scans."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Protocol
from zoneinfo import ZoneInfo

from macroscan.domain.daily import DailyIntake, IntakeAverages
from macroscan.domain.ratio import (
    CARB_KCAL_PER_G,
    FAT_KCAL_PER_G,
    PROTEIN_KCAL_PER_G,
    round_half_away,
)
from macroscan.domain.scans import ScanRecord
from macroscan.services.validators import CONFIDENCE_THRESHOLD

LOCK_STRIPES = 32

_logger = logging.getLogger(__name__)


class DailyIntakeRepository(Protocol):
    """Persistence interface for daily totals and their source scans."""

    def list_scans_between(self, start: datetime, end: datetime) -> list[ScanRecord]:
        """Return scans captured within [start, end]."""

    def get_daily_intake(self, day: date) -> DailyIntake | None:
        """Return the stored summary for a day, if any."""

    def upsert_daily_intake(self, intake: DailyIntake) -> None:
        """Insert or replace the summary row for its day."""

    def list_daily_intakes(self, start: date, end: date) -> list[DailyIntake]:
        """Return stored summaries for days in [start, end], newest first."""


def aggregate_daily_intake(
    day: date,
    records: Iterable[ScanRecord],
    confidence_threshold: float = CONFIDENCE_THRESHOLD,
) -> DailyIntake:
    """Fold one day's scans into a summary.

    Scans missing calories or any macro grams are skipped. Negative values
    count as zero. Macro calories are rounded once from the summed grams.
    Summation order is fixed by capture time and id, so the same scans always
    give an identical summary.
    """
    included = sorted(
        (record for record in records if record.nutrition.has_core_values),
        key=lambda record: (record.captured_at, str(record.scan_id)),
    )
    if not included:
        return DailyIntake.empty(day)

    total_calories = 0
    total_carb_g = 0.0
    total_protein_g = 0.0
    total_fat_g = 0.0
    has_estimated = False
    for record in included:
        nutrition = record.nutrition
        total_calories += max(nutrition.calories, 0)
        total_carb_g += max(nutrition.carbohydrates_g, 0.0)
        total_protein_g += max(nutrition.protein_g, 0.0)
        total_fat_g += max(nutrition.fat_g, 0.0)
        if nutrition.has_low_core_confidence(confidence_threshold):
            has_estimated = True

    return DailyIntake(
        day=day,
        total_calories=total_calories,
        carb_calories=round_half_away(total_carb_g * CARB_KCAL_PER_G),
        protein_calories=round_half_away(total_protein_g * PROTEIN_KCAL_PER_G),
        fat_calories=round_half_away(total_fat_g * FAT_KCAL_PER_G),
        total_carb_g=total_carb_g,
        total_protein_g=total_protein_g,
        total_fat_g=total_fat_g,
        has_estimated_data=has_estimated,
        scan_count=len(included),
        updated_at=included[-1].captured_at,
    )


@dataclass
class DailyIntakeService:
    """Recomputes and serves per-day totals in the user's timezone."""

    repository: DailyIntakeRepository
    timezone_name: str = "UTC"
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    _locks: tuple[threading.Lock, ...] = field(
        default_factory=lambda: tuple(threading.Lock() for _ in range(LOCK_STRIPES)),
        init=False,
        repr=False,
    )

    @property
    def tz(self) -> ZoneInfo:
        """Return the configured timezone."""
        return ZoneInfo(self.timezone_name)

    def local_day(self, moment: datetime) -> date:
        """Return the local calendar day a timestamp falls on."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        return moment.astimezone(self.tz).date()

    def recompute(self, day: date) -> DailyIntake:
        """Rebuild and store the summary for a day from its scans."""
        with self._lock_for(day):
            start = datetime.combine(day, time.min, tzinfo=self.tz)
            end = datetime.combine(day, time.max, tzinfo=self.tz)
            records = self.repository.list_scans_between(
                start.astimezone(UTC), end.astimezone(UTC)
            )
            intake = aggregate_daily_intake(day, records, self.confidence_threshold)
            self.repository.upsert_daily_intake(intake)
        _logger.info(
            "Recalculated daily intake for %s: %s kcal from %s scans",
            day.isoformat(),
            intake.total_calories,
            intake.scan_count,
        )
        return intake

    def recompute_for(self, moment: datetime) -> DailyIntake:
        """Recompute the day a timestamp falls on."""
        return self.recompute(self.local_day(moment))

    def get(self, day: date) -> DailyIntake:
        """Return the stored summary, or an empty one if the day has none."""
        return self.repository.get_daily_intake(day) or DailyIntake.empty(day)

    def today(self) -> DailyIntake:
        """Return today's stored summary."""
        return self.get(datetime.now(tz=self.tz).date())

    def list_range(self, start: date, end: date) -> list[DailyIntake]:
        """Return stored summaries between two days inclusive."""
        return self.repository.list_daily_intakes(start, end)

    def average(self, start: date, end: date) -> IntakeAverages:
        """Return average intake over the stored days in a range."""
        intakes = self.list_range(start, end)
        if not intakes:
            return IntakeAverages(
                days=0,
                avg_calories=0.0,
                avg_carb_g=0.0,
                avg_protein_g=0.0,
                avg_fat_g=0.0,
            )
        count = len(intakes)
        return IntakeAverages(
            days=count,
            avg_calories=sum(intake.total_calories for intake in intakes) / count,
            avg_carb_g=sum(intake.total_carb_g for intake in intakes) / count,
            avg_protein_g=sum(intake.total_protein_g for intake in intakes) / count,
            avg_fat_g=sum(intake.total_fat_g for intake in intakes) / count,
        )

    def _lock_for(self, day: date) -> threading.Lock:
        # A date always maps to the same stripe.
        return self._locks[day.toordinal() % len(self._locks)]
