"""Domain models for daily intake totals."""

from dataclasses import dataclass
from datetime import date, datetime

from macroscan.domain.ratio import RatioTriple, ratio_from_calories, round_half_away

MAX_COMPLETION_PERCENT = 999


@dataclass(frozen=True)
class DailyIntake:
    """Totals derived from all scans captured on one calendar day."""

    day: date
    total_calories: int
    carb_calories: int
    protein_calories: int
    fat_calories: int
    total_carb_g: float
    total_protein_g: float
    total_fat_g: float
    has_estimated_data: bool
    scan_count: int
    updated_at: datetime | None

    @classmethod
    def empty(cls, day: date) -> "DailyIntake":
        """Return the zero-valued record for a day without scans."""
        return cls(
            day=day,
            total_calories=0,
            carb_calories=0,
            protein_calories=0,
            fat_calories=0,
            total_carb_g=0.0,
            total_protein_g=0.0,
            total_fat_g=0.0,
            has_estimated_data=False,
            scan_count=0,
            updated_at=None,
        )

    @property
    def ratio(self) -> RatioTriple:
        """Return the day's calorie ratio."""
        return ratio_from_calories(
            self.carb_calories, self.protein_calories, self.fat_calories
        )

    def completion_percentage(self, target_calories: int) -> int:
        """Return consumed calories as a percentage of a daily target."""
        if target_calories <= 0:
            return 0
        percent = round_half_away(self.total_calories / target_calories * 100)
        return max(0, min(percent, MAX_COMPLETION_PERCENT))


@dataclass(frozen=True)
class IntakeAverages:
    """Average daily intake over a period of stored days."""

    days: int
    avg_calories: float
    avg_carb_g: float
    avg_protein_g: float
    avg_fat_g: float
