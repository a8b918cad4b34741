"""Tests for the alternatives lookup and advice text."""

import asyncio

from macroscan.domain.alternatives import AlternativeFood
from macroscan.domain.ratio import WHO_TARGET_RATIO, RatioTriple
from macroscan.services.advice import build_advice
from macroscan.services.alternatives import AlternativesService
from tests.conftest import FakeAlternativesClient


def _row(description: str, carb: object = 50) -> dict[str, object]:
    return {
        "description": description,
        "food_category": "Snacks",
        "carb_ratio": carb,
        "protein_ratio": 30,
        "fat_ratio": 20,
        "who_compliant": True,
    }


def test_find_validates_rows_and_caps_results() -> None:
    rows = [_row(f"Food {index}") for index in range(7)]
    rows.insert(1, _row("Broken", carb=150))
    rows.insert(2, {"carb_ratio": 50})
    service = AlternativesService(FakeAlternativesClient(rows=rows))

    result = asyncio.run(service.find("Crackers", "snack", RatioTriple(70, 10, 20)))

    assert [food.description for food in result] == [
        "Food 0",
        "Food 1",
        "Food 2",
        "Food 3",
        "Food 4",
    ]


def test_find_coerces_string_ratios() -> None:
    service = AlternativesService(FakeAlternativesClient(rows=[_row("Rice", "48.7")]))

    result = asyncio.run(service.find("Rice", None, RatioTriple(70, 10, 20)))

    assert result[0].carb_ratio == 48


def test_find_returns_empty_on_client_failure() -> None:
    client = FakeAlternativesClient(error=RuntimeError("warehouse down"))
    service = AlternativesService(client)

    assert asyncio.run(service.find("Rice", None, RatioTriple(70, 10, 20))) == []
    assert len(client.calls) == 1


def test_find_without_client_returns_empty() -> None:
    service = AlternativesService(None)

    assert asyncio.run(service.find("Rice", None, RatioTriple(70, 10, 20))) == []


def test_advice_for_high_carb_food_with_alternatives() -> None:
    alternatives = [
        AlternativeFood(
            description=f"Option {index}",
            carb_ratio=50,
            protein_ratio=30,
            fat_ratio=20,
            who_compliant=index == 0,
        )
        for index in range(4)
    ]

    advice = build_advice(RatioTriple(70, 10, 20), None, alternatives)

    assert advice.startswith("WHO reference: carb 50% / protein 30% / fat 20%")
    assert "  - Option 0" in advice
    assert "(WHO compliant)" in advice
    assert "Option 3" not in advice
    assert "Carbohydrate share is high." in advice
    assert "Protein share is low." not in advice


def test_advice_rules_and_custom_target() -> None:
    target = RatioTriple(40, 30, 30)

    low_protein = build_advice(RatioTriple(50, 15, 35), target, [])
    balanced = build_advice(RatioTriple(50, 30, 20), WHO_TARGET_RATIO, [])

    assert low_protein.startswith("Your target: carb 40% / protein 30% / fat 30%")
    assert low_protein.endswith("Add more protein to support muscle health.")
    assert "Healthier alternatives" not in low_protein
    assert balanced.startswith("WHO reference")
    assert balanced.endswith("Balanced macro ratio.")
