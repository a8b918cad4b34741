"""Plain-text nutrition advice for a scanned food."""

from macroscan.domain.alternatives import AlternativeFood
from macroscan.domain.ratio import WHO_TARGET_RATIO, RatioTriple

HIGH_CARB_RATIO = 60
LOW_PROTEIN_RATIO = 20
SHOWN_ALTERNATIVES = 3


def build_advice(
    ratio: RatioTriple,
    target: RatioTriple | None,
    alternatives: list[AlternativeFood],
) -> str:
    """Compare a scan's ratio to the target and suggest alternatives."""
    lines: list[str] = []
    if target is None or target == WHO_TARGET_RATIO:
        lines.append(f"WHO reference: {_format_ratio(WHO_TARGET_RATIO)}")
    else:
        lines.append(f"Your target: {_format_ratio(target)}")
    lines.append("")

    if alternatives:
        lines.append("Healthier alternatives:")
        for alternative in alternatives[:SHOWN_ALTERNATIVES]:
            marker = " (WHO compliant)" if alternative.who_compliant else ""
            lines.append(f"  - {alternative.description}")
            lines.append(
                f"    carb {alternative.carb_ratio}% / protein "
                f"{alternative.protein_ratio}% / fat {alternative.fat_ratio}%{marker}"
            )
        lines.append("")

    if ratio.carb > HIGH_CARB_RATIO:
        lines.append("Carbohydrate share is high.")
        lines.append("Pair this food with a protein-rich side.")
    elif ratio.protein < LOW_PROTEIN_RATIO:
        lines.append("Protein share is low.")
        lines.append("Add more protein to support muscle health.")
    else:
        lines.append("Balanced macro ratio.")
    return "\n".join(lines)


def _format_ratio(ratio: RatioTriple) -> str:
    return f"carb {ratio.carb}% / protein {ratio.protein}% / fat {ratio.fat}%"
