"""Field-level checks used by the validation pipeline."""

from collections.abc import Iterable

from macroscan.domain.ratio import (
    CARB_KCAL_PER_G,
    FAT_KCAL_PER_G,
    PROTEIN_KCAL_PER_G,
    RATIO_TOTAL,
    round_half_away,
)

CONFIDENCE_THRESHOLD = 0.85
RATIO_SUM_TOLERANCE = 5
MIN_CALORIES = 0
MAX_CALORIES = 900
MIN_RATIO_VALUE = 0
MAX_RATIO_VALUE = 100
ANOMALY_CALORIE_THRESHOLD = 25.0


def is_ratio_sum_valid(
    ratios: Iterable[float], tolerance: float = RATIO_SUM_TOLERANCE
) -> bool:
    """Return True if externally supplied ratios sum to 100 within tolerance."""
    return abs(sum(ratios) - RATIO_TOTAL) <= tolerance


def calories_from_macros(carb_g: float, protein_g: float, fat_g: float) -> int:
    """Return the energy implied by macro grams."""
    return round_half_away(
        carb_g * CARB_KCAL_PER_G
        + protein_g * PROTEIN_KCAL_PER_G
        + fat_g * FAT_KCAL_PER_G
    )


def calorie_discrepancy_percent(
    reported_kcal: float, carb_g: float, protein_g: float, fat_g: float
) -> float:
    """Return how far reported calories are from the macro-derived value."""
    computed = calories_from_macros(carb_g, protein_g, fat_g)
    if computed == 0:
        return 100.0
    return abs(reported_kcal - computed) / computed * 100


def in_range(value: float, minimum: float, maximum: float) -> bool:
    """Return True if value lies within [minimum, maximum]."""
    return minimum <= value <= maximum


def are_calories_valid(calories: float) -> bool:
    """Return True for a plausible calorie value."""
    return in_range(calories, MIN_CALORIES, MAX_CALORIES)


def is_ratio_value_valid(ratio: float) -> bool:
    """Return True for a percentage between 0 and 100."""
    return in_range(ratio, MIN_RATIO_VALUE, MAX_RATIO_VALUE)


def meets_confidence_threshold(
    confidence: float | None, threshold: float = CONFIDENCE_THRESHOLD
) -> bool:
    """Return True if a confidence is present and at least the threshold."""
    return confidence is not None and confidence >= threshold


def has_calorie_anomaly(
    reported_kcal: float | None,
    carb_g: float | None,
    protein_g: float | None,
    fat_g: float | None,
    threshold: float,
) -> bool:
    """Return True if the calorie discrepancy exceeds the threshold percent."""
    if reported_kcal is None or carb_g is None or protein_g is None or fat_g is None:
        return False
    diff = calorie_discrepancy_percent(reported_kcal, carb_g, protein_g, fat_g)
    return diff > threshold
