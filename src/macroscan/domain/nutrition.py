"""Nutrition facts extracted from a single scan."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

CONFIDENCE_SUFFIX = "_confidence"

CORE_CONFIDENCE_FIELDS = ("calories", "carbohydrates", "protein", "fat")

PAYLOAD_FIELDS = (
    "serving_size",
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


@dataclass(frozen=True)
class NutritionReading:
    """Nutrition values of one scan with their per-field confidences.

    Confidences are keyed by the field stem used in the vision payload
    (``calories``, ``carbohydrates``, ``protein``, ``fat``, ``sodium`` ...).
    """

    serving_size: str | None = None
    calories: int | None = None
    carbohydrates_g: float | None = None
    protein_g: float | None = None
    fat_g: float | None = None
    sodium_mg: int | None = None
    sugars_g: float | None = None
    saturated_fat_g: float | None = None
    trans_fat_g: float | None = None
    cholesterol_mg: int | None = None
    dietary_fiber_g: float | None = None
    confidences: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, nutrition: object) -> "NutritionReading":
        """Build a reading from the ``nutrition`` section of a vision payload."""
        if not isinstance(nutrition, Mapping):
            return cls()
        serving_size = nutrition.get("serving_size")
        return cls(
            serving_size=serving_size if isinstance(serving_size, str) else None,
            calories=parse_int(nutrition.get("calories")),
            carbohydrates_g=parse_float(nutrition.get("carbohydrates_g")),
            protein_g=parse_float(nutrition.get("protein_g")),
            fat_g=parse_float(nutrition.get("fat_g")),
            sodium_mg=parse_int(nutrition.get("sodium_mg")),
            sugars_g=parse_float(nutrition.get("sugars_g")),
            saturated_fat_g=parse_float(nutrition.get("saturated_fat_g")),
            trans_fat_g=parse_float(nutrition.get("trans_fat_g")),
            cholesterol_mg=parse_int(nutrition.get("cholesterol_mg")),
            dietary_fiber_g=parse_float(nutrition.get("dietary_fiber_g")),
            confidences=extract_confidences(nutrition),
        )

    @property
    def has_core_values(self) -> bool:
        """Return True when calories and all three macro grams are present."""
        return None not in (
            self.calories,
            self.carbohydrates_g,
            self.protein_g,
            self.fat_g,
        )

    def confidence_for(self, stem: str) -> float | None:
        """Return the confidence recorded for a field stem, if any."""
        return self.confidences.get(stem)

    def has_low_core_confidence(self, threshold: float) -> bool:
        """Return True if any core field is below the confidence threshold.

        A core field without a recorded confidence counts as certain.
        """
        for stem in CORE_CONFIDENCE_FIELDS:
            confidence = self.confidences.get(stem)
            if confidence is not None and confidence < threshold:
                return True
        return False

    def with_serving_size(self, serving_size: str | None) -> "NutritionReading":
        """Return a copy with an edited serving size."""
        return replace(self, serving_size=serving_size)

    def as_payload(self) -> dict[str, object]:
        """Return the reading in the ``nutrition`` section layout."""
        payload: dict[str, object] = {
            name: getattr(self, name) for name in PAYLOAD_FIELDS
        }
        for stem, confidence in self.confidences.items():
            payload[f"{stem}{CONFIDENCE_SUFFIX}"] = confidence
        return payload


def extract_confidences(section: Mapping[str, object]) -> dict[str, float]:
    """Collect ``<stem>_confidence`` numbers from a payload section."""
    scores: dict[str, float] = {}
    for key, value in section.items():
        if not key.endswith(CONFIDENCE_SUFFIX):
            continue
        if isinstance(value, bool) or not isinstance(value, int | float):
            continue
        scores[key.removesuffix(CONFIDENCE_SUFFIX)] = float(value)
    return scores


def parse_float(value: object) -> float | None:
    """Parse an untrusted numeric value into a float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_int(value: object) -> int | None:
    """Parse an untrusted numeric value into an int, truncating decimals."""
    parsed = parse_float(value)
    if parsed is None:
        return None
    return int(parsed)
