"""Five-level validation pipeline for vision analysis payloads.

Every level runs on every payload and the results are collected into one
report, so a consumer can show all warnings even when required fields are
missing:

1. Required fields: macro grams and ratio values are present.
2. Value validation: ranges, signs and serving-size format (warnings only).
3. Logical consistency: ratio sum and calorie arithmetic.
4. Anomaly detection: implausible but well-formed combinations.
5. Confidence measurement: fields extracted below the confidence threshold.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

from macroscan.domain.nutrition import (
    CONFIDENCE_SUFFIX,
    extract_confidences,
    parse_float,
)
from macroscan.domain.validation import ValidationReport, ValidationStatus
from macroscan.services.validators import (
    ANOMALY_CALORIE_THRESHOLD,
    CONFIDENCE_THRESHOLD,
    MAX_CALORIES,
    MIN_CALORIES,
    RATIO_SUM_TOLERANCE,
    are_calories_valid,
    calorie_discrepancy_percent,
    has_calorie_anomaly,
    is_ratio_sum_valid,
    is_ratio_value_valid,
    meets_confidence_threshold,
)

REQUIRED_NUTRITION_FIELDS = ("carbohydrates_g", "protein_g", "fat_g")
REQUIRED_RATIO_FIELDS = ("carb_ratio", "protein_ratio", "fat_ratio")
NUMERIC_NUTRITION_FIELDS = (
    "calories",
    "carbohydrates_g",
    "protein_g",
    "fat_g",
    "sodium_mg",
    "sugars_g",
    "saturated_fat_g",
    "trans_fat_g",
    "cholesterol_mg",
    "dietary_fiber_g",
)
SERVING_SIZE_PATTERN = re.compile(
    r"^\d+(\.\d+)?\s*(g|ml|mg|L|kg|회|개|인분|servings?|pieces?)"
)

HIGH_FAT_RATIO = 50
LOW_CALORIES = 150
ROUND_NUMBER_STEP = 5
LOW_CONFIDENCE_WARNING_COUNT = 3


@dataclass
class ValidationPipeline:
    """Validates a raw vision payload and derives an overall status."""

    confidence_threshold: float = CONFIDENCE_THRESHOLD
    ratio_sum_tolerance: float = RATIO_SUM_TOLERANCE
    anomaly_calorie_threshold: float = ANOMALY_CALORIE_THRESHOLD
    low_confidence_warning_count: int = LOW_CONFIDENCE_WARNING_COUNT

    def validate(
        self,
        scan_id: UUID,
        payload: Mapping[str, object],
        created_at: datetime | None = None,
    ) -> ValidationReport:
        """Run all five levels and return the combined report."""
        nutrition = _section(payload, "nutrition")
        ratio = _section(payload, "ratio")
        classified = _section(payload, "classified_data")

        missing = _missing_required_fields(nutrition, ratio)
        warnings = _value_warnings(nutrition, ratio)
        ratio_sum_valid, calorie_diff = self._consistency(nutrition, ratio)
        anomalies = self._anomalies(nutrition, ratio)
        low_confidence_count, low_confidence = self._low_confidence_fields(
            nutrition, classified
        )

        return ValidationReport(
            report_id=uuid4(),
            scan_id=scan_id,
            created_at=created_at or datetime.now(tz=UTC),
            level1_pass=not missing,
            level1_missing_fields=tuple(missing),
            level2_warnings=tuple(warnings),
            level3_ratio_sum_valid=ratio_sum_valid,
            level3_calorie_diff_percent=calorie_diff,
            level4_anomalies=tuple(anomalies),
            level5_low_confidence_count=low_confidence_count,
            level5_details=low_confidence,
        )

    def status(self, report: ValidationReport) -> ValidationStatus:
        """Derive the overall status, failed taking priority over warning."""
        if report.has_critical_failure:
            return ValidationStatus.FAILED
        if (
            report.level2_warnings
            or report.level4_anomalies
            or report.level5_low_confidence_count > self.low_confidence_warning_count
        ):
            return ValidationStatus.WARNING
        return ValidationStatus.PASSED

    def _consistency(
        self, nutrition: Mapping[str, object] | None, ratio: Mapping[str, object] | None
    ) -> tuple[bool | None, float | None]:
        ratio_sum_valid: bool | None = None
        if ratio is not None:
            values = [parse_float(ratio.get(name)) for name in REQUIRED_RATIO_FIELDS]
            if None not in values:
                ratio_sum_valid = is_ratio_sum_valid(values, self.ratio_sum_tolerance)

        calorie_diff: float | None = None
        if nutrition is not None:
            calories = parse_float(nutrition.get("calories"))
            carbs, protein, fat = _macro_grams(nutrition)
            if None not in (calories, carbs, protein, fat):
                calorie_diff = calorie_discrepancy_percent(
                    calories, carbs, protein, fat
                )
        return ratio_sum_valid, calorie_diff

    def _anomalies(
        self, nutrition: Mapping[str, object] | None, ratio: Mapping[str, object] | None
    ) -> list[str]:
        if nutrition is None:
            return []
        anomalies: list[str] = []
        calories = parse_float(nutrition.get("calories"))
        carbs, protein, fat = _macro_grams(nutrition)

        fat_ratio = parse_float(ratio.get("fat_ratio")) if ratio is not None else None
        if fat_ratio is not None and calories is not None:
            if fat_ratio > HIGH_FAT_RATIO and calories < LOW_CALORIES:
                anomalies.append(
                    f"High fat ratio ({fat_ratio:g}%) with low calories "
                    f"({calories:g}kcal) - unusual combination"
                )

        if has_calorie_anomaly(
            calories, carbs, protein, fat, threshold=self.anomaly_calorie_threshold
        ):
            anomalies.append(
                "Calorie calculation inconsistency exceeds "
                f"{self.anomaly_calorie_threshold:g}% - possible OCR error"
            )

        if carbs is not None and protein is not None and fat is not None:
            if all(value % ROUND_NUMBER_STEP == 0 for value in (carbs, protein, fat)):
                anomalies.append(
                    "All macronutrient values are round numbers - may indicate "
                    "estimation rather than actual label"
                )
        return anomalies

    def _low_confidence_fields(
        self,
        nutrition: Mapping[str, object] | None,
        classified: Mapping[str, object] | None,
    ) -> tuple[int, dict[str, float]]:
        # Sections are counted separately even when they share a field stem.
        count = 0
        details: dict[str, float] = {}
        for section in (nutrition, classified):
            if section is None:
                continue
            for name, confidence in extract_confidences(section).items():
                if not meets_confidence_threshold(
                    confidence, self.confidence_threshold
                ):
                    count += 1
                    details[name] = confidence
        return count, details


def _section(payload: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = payload.get(name)
    return value if isinstance(value, Mapping) else None


def _macro_grams(
    nutrition: Mapping[str, object],
) -> tuple[float | None, float | None, float | None]:
    carbs, protein, fat = (
        parse_float(nutrition.get(name)) for name in REQUIRED_NUTRITION_FIELDS
    )
    return carbs, protein, fat


def _missing_required_fields(
    nutrition: Mapping[str, object] | None, ratio: Mapping[str, object] | None
) -> list[str]:
    missing: list[str] = []
    if nutrition is None:
        missing.append("nutrition")
    else:
        missing.extend(
            f"nutrition.{name}"
            for name in REQUIRED_NUTRITION_FIELDS
            if nutrition.get(name) is None
        )
    if ratio is None:
        missing.append("ratio")
    else:
        missing.extend(
            f"ratio.{name}" for name in REQUIRED_RATIO_FIELDS if ratio.get(name) is None
        )
    return missing


def _value_warnings(
    nutrition: Mapping[str, object] | None, ratio: Mapping[str, object] | None
) -> list[str]:
    if nutrition is None:
        return ["Missing nutrition section"]
    warnings: list[str] = []

    for key, value in nutrition.items():
        if key.endswith(CONFIDENCE_SUFFIX) or isinstance(value, bool):
            continue
        if isinstance(value, int | float) and value < 0:
            warnings.append(f"{key} is negative: {value}")

    for name in NUMERIC_NUTRITION_FIELDS:
        value = nutrition.get(name)
        if value is not None and parse_float(value) is None:
            warnings.append(f"{name} is not numeric: {value!r}")

    calories = parse_float(nutrition.get("calories"))
    if calories is not None and not are_calories_valid(calories):
        warnings.append(
            f"Calories out of range: {calories:g} "
            f"(expected {MIN_CALORIES}-{MAX_CALORIES})"
        )

    if ratio is not None:
        for name in REQUIRED_RATIO_FIELDS:
            raw_value = ratio.get(name)
            if raw_value is None:
                continue
            value = parse_float(raw_value)
            if value is None:
                warnings.append(f"{name} is not numeric: {raw_value!r}")
            elif not is_ratio_value_valid(value):
                warnings.append(f"{name} out of range: {value:g} (expected 0-100)")

    serving_size = nutrition.get("serving_size")
    if serving_size is not None and (
        not isinstance(serving_size, str)
        or not SERVING_SIZE_PATTERN.match(serving_size.strip())
    ):
        warnings.append(f"Invalid serving size format: {serving_size}")

    return warnings
