"""User profile and the energy targets derived from it."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TypeVar

from macroscan.domain.nutrition import parse_float, parse_int
from macroscan.domain.ratio import WHO_TARGET_RATIO, RatioTriple

BMI_UNDERWEIGHT_BELOW = 18.5
BMI_NORMAL_BELOW = 25.0
BMI_OVERWEIGHT_BELOW = 30.0
GENERAL_PROTEIN_G_PER_KG = 1.2
MUSCLE_PROTEIN_G_PER_KG = 1.8

EnumT = TypeVar("EnumT", bound=Enum)


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class HealthGoal(str, Enum):
    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"
    MUSCLE = "muscle"
    HEALTH = "health"


ACTIVITY_FACTORS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

GOAL_CALORIE_ADJUSTMENTS: dict[HealthGoal, float] = {
    HealthGoal.LOSE: -500.0,
    HealthGoal.MAINTAIN: 0.0,
    HealthGoal.GAIN: 500.0,
    HealthGoal.MUSCLE: 300.0,
    HealthGoal.HEALTH: 0.0,
}

GOAL_RATIOS: dict[HealthGoal, RatioTriple] = {
    HealthGoal.LOSE: RatioTriple(carb=40, protein=35, fat=25),
    HealthGoal.MAINTAIN: WHO_TARGET_RATIO,
    HealthGoal.GAIN: RatioTriple(carb=55, protein=25, fat=20),
    HealthGoal.MUSCLE: RatioTriple(carb=40, protein=40, fat=20),
    HealthGoal.HEALTH: WHO_TARGET_RATIO,
}


@dataclass(frozen=True)
class UserProfile:
    """Optional personal details used for calorie and macro targets.

    Only the birth year and month are kept, never a full birth date.
    """

    gender: Gender | None = None
    birth_year: int | None = None
    birth_month: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    activity_level: ActivityLevel | None = None
    health_goal: HealthGoal | None = None
    dietary_restriction: str | None = None
    health_condition: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, object] | None) -> "UserProfile":
        """Parse a stored profile, ignoring values that do not parse."""
        if not data:
            return cls()
        return cls(
            gender=_enum_value(Gender, data.get("gender")),
            birth_year=parse_int(data.get("birth_year")),
            birth_month=parse_int(data.get("birth_month")),
            height_cm=parse_float(data.get("height_cm")),
            weight_kg=parse_float(data.get("weight_kg")),
            activity_level=_enum_value(ActivityLevel, data.get("activity_level")),
            health_goal=_enum_value(HealthGoal, data.get("health_goal")),
            dietary_restriction=_text(data.get("dietary_restriction")),
            health_condition=_text(data.get("health_condition")),
        )

    def as_payload(self) -> dict[str, object]:
        return {
            "gender": self.gender.value if self.gender else None,
            "birth_year": self.birth_year,
            "birth_month": self.birth_month,
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
            "activity_level": (
                self.activity_level.value if self.activity_level else None
            ),
            "health_goal": self.health_goal.value if self.health_goal else None,
            "dietary_restriction": self.dietary_restriction,
            "health_condition": self.health_condition,
        }

    @property
    def is_basic_complete(self) -> bool:
        return None not in (
            self.gender,
            self.birth_year,
            self.birth_month,
            self.height_cm,
            self.weight_kg,
        )

    @property
    def is_full_complete(self) -> bool:
        return (
            self.is_basic_complete
            and self.activity_level is not None
            and self.health_goal is not None
        )

    def age(self, today: date) -> int | None:
        """Return completed years, counting the birth month when known."""
        if self.birth_year is None:
            return None
        years = today.year - self.birth_year
        if self.birth_month is not None and today.month < self.birth_month:
            years -= 1
        return years

    def age_group(self, today: date) -> str | None:
        age = self.age(today)
        if age is None:
            return None
        if age < 6:
            return "child"
        if age < 12:
            return "preteen"
        if age < 19:
            return "teen"
        if age < 65:
            return "adult"
        return "senior"

    @property
    def bmi(self) -> float | None:
        if self.weight_kg is None or not self.height_cm:
            return None
        height_m = self.height_cm / 100
        return self.weight_kg / (height_m * height_m)

    @property
    def bmi_category(self) -> str | None:
        bmi = self.bmi
        if bmi is None:
            return None
        if bmi < BMI_UNDERWEIGHT_BELOW:
            return "underweight"
        if bmi < BMI_NORMAL_BELOW:
            return "normal"
        if bmi < BMI_OVERWEIGHT_BELOW:
            return "overweight"
        return "obese"

    def bmr(self, today: date) -> float | None:
        """Return basal metabolic rate in kcal from the Harris-Benedict equation.

        The ``other`` gender uses the mean of the male and female equations.
        """
        age = self.age(today)
        if (
            self.gender is None
            or age is None
            or self.weight_kg is None
            or self.height_cm is None
        ):
            return None
        male = (
            88.362 + 13.397 * self.weight_kg + 4.799 * self.height_cm - 5.677 * age
        )
        female = (
            447.593 + 9.247 * self.weight_kg + 3.098 * self.height_cm - 4.330 * age
        )
        if self.gender is Gender.MALE:
            return male
        if self.gender is Gender.FEMALE:
            return female
        return (male + female) / 2

    def tdee(self, today: date) -> float | None:
        """Return total daily energy expenditure for the activity level."""
        bmr = self.bmr(today)
        if bmr is None or self.activity_level is None:
            return None
        return bmr * ACTIVITY_FACTORS[self.activity_level]

    def target_calories(self, today: date) -> float | None:
        """Return daily calories adjusted for the health goal.

        Without a goal this is the plain TDEE.
        """
        tdee = self.tdee(today)
        if tdee is None or self.health_goal is None:
            return tdee
        return tdee + GOAL_CALORIE_ADJUSTMENTS[self.health_goal]

    @property
    def recommended_protein_g(self) -> float | None:
        if self.weight_kg is None:
            return None
        if self.health_goal is HealthGoal.MUSCLE:
            return self.weight_kg * MUSCLE_PROTEIN_G_PER_KG
        return self.weight_kg * GENERAL_PROTEIN_G_PER_KG

    @property
    def recommended_ratio(self) -> RatioTriple:
        if self.health_goal is None:
            return WHO_TARGET_RATIO
        return GOAL_RATIOS[self.health_goal]


def _enum_value(enum_type: type[EnumT], value: object) -> EnumT | None:
    try:
        return enum_type(value)
    except ValueError:
        return None


def _text(value: object) -> str | None:
    return value if isinstance(value, str) and value else None
