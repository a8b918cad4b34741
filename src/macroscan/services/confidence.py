"""Confidence-based redaction of classified product fields."""

from collections.abc import Mapping

from macroscan.domain.nutrition import CONFIDENCE_SUFFIX, parse_float
from macroscan.domain.scans import ClassifiedField, ClassifiedPayload
from macroscan.services.validators import (
    CONFIDENCE_THRESHOLD,
    meets_confidence_threshold,
)

# Classified fields whose confidence key does not follow ``<field>_confidence``.
CONFIDENCE_KEY_ALIASES = {"food_category": "category_confidence"}


def confidence_key(field_name: str) -> str:
    """Return the sibling key holding a field's confidence."""
    return CONFIDENCE_KEY_ALIASES.get(field_name, f"{field_name}{CONFIDENCE_SUFFIX}")


def parse_classified(data: object) -> ClassifiedPayload:
    """Pair each classified value with its sibling confidence.

    Fields without a sibling confidence key are left out.
    """
    if not isinstance(data, Mapping):
        return ClassifiedPayload()
    fields: dict[str, ClassifiedField] = {}
    for name, value in data.items():
        if name.endswith(CONFIDENCE_SUFFIX):
            continue
        key = confidence_key(name)
        if key not in data:
            continue
        fields[name] = ClassifiedField(value=value, confidence=parse_float(data[key]))
    return ClassifiedPayload(fields=fields)


def filter_classified(
    payload: ClassifiedPayload, threshold: float = CONFIDENCE_THRESHOLD
) -> ClassifiedPayload:
    """Keep only fields extracted with at least the threshold confidence."""
    return ClassifiedPayload(
        fields={
            name: entry
            for name, entry in payload.fields.items()
            if meets_confidence_threshold(entry.confidence, threshold)
        }
    )


def flatten_classified(payload: ClassifiedPayload) -> dict[str, object]:
    """Render a classified payload back into its flat key layout."""
    flat: dict[str, object] = {}
    for name, entry in payload.fields.items():
        flat[name] = entry.value
        flat[confidence_key(name)] = entry.confidence
    return flat


def filter_by_confidence(
    data: Mapping[str, object] | None, threshold: float = CONFIDENCE_THRESHOLD
) -> dict[str, object]:
    """Return the flat map with low-confidence fields and their scores removed."""
    return flatten_classified(filter_classified(parse_classified(data), threshold))
