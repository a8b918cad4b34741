"""Tests for ratio normalization."""

import pytest

from macroscan.domain.ratio import (
    FALLBACK_RATIO,
    InvalidRatio,
    RatioTriple,
    ratio_from_calories,
    ratio_from_grams,
    round_half_away,
)


def test_ratio_from_grams_uses_largest_remainder() -> None:
    ratio = ratio_from_grams(30.5, 10, 5.2)

    assert ratio == RatioTriple(carb=59, protein=19, fat=22)


def test_ratio_from_grams_always_sums_to_100() -> None:
    samples = [(1, 1, 1), (12.3, 45.6, 7.8), (0.1, 0, 99), (250, 3, 0.4)]
    for carb, protein, fat in samples:
        ratio = ratio_from_grams(carb, protein, fat)
        assert ratio.carb + ratio.protein + ratio.fat == 100


def test_equal_calories_break_ties_in_carb_protein_fat_order() -> None:
    assert ratio_from_calories(100, 100, 100) == RatioTriple(34, 33, 33)


def test_zero_grams_return_fallback_ratio() -> None:
    assert ratio_from_grams(0, 0, 0) == FALLBACK_RATIO
    assert FALLBACK_RATIO.compact == "33/33/34"


def test_single_macro_gets_full_share() -> None:
    assert ratio_from_grams(0, 0, 10) == RatioTriple(0, 0, 100)


def test_negative_grams_are_rejected() -> None:
    with pytest.raises(InvalidRatio):
        ratio_from_grams(-1, 10, 10)


def test_ratio_triple_rejects_bad_sum() -> None:
    with pytest.raises(InvalidRatio, match="sum to 100"):
        RatioTriple(carb=50, protein=30, fat=30)


def test_ratio_triple_rejects_out_of_range_and_non_int() -> None:
    with pytest.raises(InvalidRatio):
        RatioTriple(carb=101, protein=0, fat=-1)
    with pytest.raises(InvalidRatio):
        RatioTriple(carb=50.0, protein=30, fat=20)  # type: ignore[arg-type]
    with pytest.raises(InvalidRatio):
        RatioTriple(carb=True, protein=49, fat=50)  # type: ignore[arg-type]


def test_as_dict_uses_payload_keys() -> None:
    assert RatioTriple(50, 30, 20).as_dict() == {
        "carb_ratio": 50,
        "protein_ratio": 30,
        "fat_ratio": 20,
    }


def test_round_half_away_from_zero() -> None:
    assert round_half_away(2.5) == 3
    assert round_half_away(3.5) == 4
    assert round_half_away(-2.5) == -3
    assert round_half_away(2.4) == 2
