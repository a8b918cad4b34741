"""Pydantic request models and response serializers for the HTTP API."""

from pydantic import BaseModel, Field

from macroscan.domain.daily import DailyIntake, IntakeAverages
from macroscan.domain.profile import ActivityLevel, Gender, HealthGoal
from macroscan.domain.ratio import RatioTriple
from macroscan.domain.scans import ScanRecord
from macroscan.domain.validation import ValidationReport
from macroscan.services.confidence import flatten_classified
from macroscan.services.profile import ProfileSummary
from macroscan.services.scans import ScanOutcome


class ScanUpdate(BaseModel):
    """Editable display fields of a scan."""

    name: str | None = Field(default=None, max_length=200)
    serving_size: str | None = Field(default=None, max_length=100)


class TargetRatioUpdate(BaseModel):
    """Target macro ratio; range and sum are checked by the domain model."""

    carb: int
    protein: int
    fat: int


class ToggleUpdate(BaseModel):
    """Feature toggle value."""

    enabled: bool


class ProfileUpdate(BaseModel):
    """Profile fields to change; omitted fields keep their stored value."""

    gender: Gender | None = None
    birth_year: int | None = Field(default=None, ge=1900, le=2100)
    birth_month: int | None = Field(default=None, ge=1, le=12)
    height_cm: float | None = Field(default=None, gt=0, le=300)
    weight_kg: float | None = Field(default=None, gt=0, le=500)
    activity_level: ActivityLevel | None = None
    health_goal: HealthGoal | None = None
    dietary_restriction: str | None = Field(default=None, max_length=50)
    health_condition: str | None = Field(default=None, max_length=50)


def ratio_to_response(ratio: RatioTriple) -> dict[str, int]:
    return {"carb": ratio.carb, "protein": ratio.protein, "fat": ratio.fat}


def scan_to_response(record: ScanRecord) -> dict[str, object]:
    """Serialize a scan without its raw payload."""
    return {
        "id": str(record.scan_id),
        "captured_at": record.captured_at.isoformat(),
        "ratio": ratio_to_response(record.ratio),
        "image_ref": record.image_ref,
        "nutrition": record.nutrition.as_payload(),
        "classified_data": flatten_classified(record.classified),
        "validation_status": record.validation_status.value,
        "advice": record.advice,
        "display_name": record.display_name,
        "image_quality": record.image_quality,
        "language_detected": record.language_detected,
        "data_source": record.data_source,
    }


def report_to_response(report: ValidationReport) -> dict[str, object]:
    return {
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


def outcome_to_response(outcome: ScanOutcome) -> dict[str, object]:
    return {
        "scan": scan_to_response(outcome.record),
        "report": report_to_response(outcome.report),
        "status": outcome.record.validation_status.value,
        "alternatives": [
            alternative.model_dump() for alternative in outcome.alternatives
        ],
    }


def intake_to_response(
    intake: DailyIntake, target_calories: int | None = None
) -> dict[str, object]:
    """Serialize a daily summary, with progress when a calorie target is given."""
    response: dict[str, object] = {
        "day": intake.day.isoformat(),
        "total_calories": intake.total_calories,
        "carb_calories": intake.carb_calories,
        "protein_calories": intake.protein_calories,
        "fat_calories": intake.fat_calories,
        "total_carb_g": intake.total_carb_g,
        "total_protein_g": intake.total_protein_g,
        "total_fat_g": intake.total_fat_g,
        "ratio": ratio_to_response(intake.ratio),
        "has_estimated_data": intake.has_estimated_data,
        "scan_count": intake.scan_count,
        "updated_at": intake.updated_at.isoformat() if intake.updated_at else None,
    }
    if target_calories is not None:
        response["target_calories"] = target_calories
        response["completion_percentage"] = intake.completion_percentage(
            target_calories
        )
    return response


def averages_to_response(averages: IntakeAverages) -> dict[str, object]:
    return {
        "days": averages.days,
        "avg_calories": averages.avg_calories,
        "avg_carb_g": averages.avg_carb_g,
        "avg_protein_g": averages.avg_protein_g,
        "avg_fat_g": averages.avg_fat_g,
    }


def profile_to_response(summary: ProfileSummary) -> dict[str, object]:
    """Serialize a profile with its derived targets."""
    return {
        "profile": summary.profile.as_payload(),
        "basic_complete": summary.profile.is_basic_complete,
        "full_complete": summary.profile.is_full_complete,
        "age": summary.age,
        "age_group": summary.age_group,
        "bmi": _rounded(summary.bmi),
        "bmi_category": summary.bmi_category,
        "bmr": _rounded(summary.bmr),
        "tdee": _rounded(summary.tdee),
        "target_calories": summary.target_calories,
        "recommended_protein_g": _rounded(summary.recommended_protein_g),
        "recommended_ratio": ratio_to_response(summary.recommended_ratio),
    }


def _rounded(value: float | None) -> float | None:
    return round(value, 1) if value is not None else None
