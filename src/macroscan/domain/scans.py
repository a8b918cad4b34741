"""Domain models for persisted scans."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID

from macroscan.domain.nutrition import NutritionReading
from macroscan.domain.ratio import RatioTriple
from macroscan.domain.validation import ValidationStatus


@dataclass(frozen=True)
class ClassifiedField:
    """A classified value and the confidence it was extracted with."""

    value: object
    confidence: float | None


@dataclass(frozen=True)
class ClassifiedPayload:
    """Product identity fields that are subject to confidence redaction."""

    fields: dict[str, ClassifiedField] = field(default_factory=dict)

    def value(self, name: str) -> object | None:
        """Return the value of a field if it is present."""
        entry = self.fields.get(name)
        return entry.value if entry else None


@dataclass(frozen=True)
class RawPayload:
    """Unfiltered vision response, kept for audit and debugging."""

    data: dict[str, object] = field(default_factory=dict)

    @property
    def ocr_full_text(self) -> str | None:
        """Return the OCR text captured with the response, if any."""
        raw_data = self.data.get("raw_data")
        if isinstance(raw_data, dict):
            text = raw_data.get("ocr_full_text")
            return text if isinstance(text, str) else None
        return None


@dataclass(frozen=True)
class ScanRecord:
    """A stored scan with its trusted ratio and filtered nutrition data."""

    scan_id: UUID
    captured_at: datetime
    ratio: RatioTriple
    image_ref: str
    nutrition: NutritionReading
    classified: ClassifiedPayload
    raw: RawPayload
    validation_status: ValidationStatus
    advice: str | None = None
    display_name: str | None = None
    image_quality: str | None = None
    language_detected: str | None = None
    data_source: str | None = None

    def with_display_fields(
        self, name: str | None, serving_size: str | None
    ) -> "ScanRecord":
        """Return a copy with user-edited name and serving size."""
        return replace(
            self,
            display_name=name if name is not None else self.display_name,
            nutrition=(
                self.nutrition.with_serving_size(serving_size)
                if serving_size is not None
                else self.nutrition
            ),
        )
