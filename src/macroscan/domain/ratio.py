"""Carbohydrate:protein:fat calorie ratio model and calculator."""

import math
from dataclasses import dataclass

CARB_KCAL_PER_G = 4
PROTEIN_KCAL_PER_G = 4
FAT_KCAL_PER_G = 9

RATIO_TOTAL = 100


class InvalidRatio(ValueError):
    """Raised when a ratio triple would violate its invariants."""


@dataclass(frozen=True)
class RatioTriple:
    """Macro percentages of total calories, always summing to exactly 100."""

    carb: int
    protein: int
    fat: int

    def __post_init__(self) -> None:
        for name in ("carb", "protein", "fat"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRatio(f"{name} must be an integer, got {value!r}")
            if value < 0 or value > RATIO_TOTAL:
                raise InvalidRatio(f"{name} must be 0-100, got {value}")
        total = self.carb + self.protein + self.fat
        if total != RATIO_TOTAL:
            raise InvalidRatio(f"Ratios must sum to 100, got {total}")

    @property
    def compact(self) -> str:
        """Return the ratio as ``carb/protein/fat``."""
        return f"{self.carb}/{self.protein}/{self.fat}"

    def as_dict(self) -> dict[str, int]:
        """Return the ratio keyed the way the vision payload names it."""
        return {
            "carb_ratio": self.carb,
            "protein_ratio": self.protein,
            "fat_ratio": self.fat,
        }


FALLBACK_RATIO = RatioTriple(carb=33, protein=33, fat=34)
WHO_TARGET_RATIO = RatioTriple(carb=50, protein=30, fat=20)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def ratio_from_grams(carb_g: float, protein_g: float, fat_g: float) -> RatioTriple:
    """Convert macro grams to a normalized calorie ratio."""
    if min(carb_g, protein_g, fat_g) < 0:
        raise InvalidRatio("Macro grams must be non-negative")
    return ratio_from_calories(
        carb_g * CARB_KCAL_PER_G,
        protein_g * PROTEIN_KCAL_PER_G,
        fat_g * FAT_KCAL_PER_G,
    )


def ratio_from_calories(
    carb_kcal: float, protein_kcal: float, fat_kcal: float
) -> RatioTriple:
    """Distribute 100 percentage points over macro calories.

    Each share is floored, then the shortfall is handed out one point at a
    time to the macros that lost the largest fraction. Exact ties keep the
    carb, protein, fat order.
    """
    calories = (carb_kcal, protein_kcal, fat_kcal)
    if min(calories) < 0:
        raise InvalidRatio("Macro calories must be non-negative")
    total = sum(calories)
    if total == 0:
        return FALLBACK_RATIO

    percents = [value / total * RATIO_TOTAL for value in calories]
    floors = [math.floor(percent) for percent in percents]
    remainder = RATIO_TOTAL - sum(floors)
    by_fraction = sorted(
        range(len(percents)),
        key=lambda index: percents[index] - floors[index],
        reverse=True,
    )
    for index in by_fraction[:remainder]:
        floors[index] += 1

    return RatioTriple(carb=floors[0], protein=floors[1], fat=floors[2])
