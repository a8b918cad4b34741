"""User profile storage and derived daily targets."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol

from macroscan.domain.profile import UserProfile
from macroscan.domain.ratio import RatioTriple, round_half_away

PROFILE_KEY = "user_profile"
DEFAULT_TARGET_CALORIES = 2000

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Key-value storage holding the serialized profile."""

    def get_setting(self, key: str) -> str | None:
        """Return a stored setting value."""

    def set_setting(self, key: str, value: str) -> None:
        """Insert or replace a setting value."""


@dataclass(frozen=True)
class ProfileSummary:
    """A profile together with the figures derived from it on one day."""

    profile: UserProfile
    age: int | None
    age_group: str | None
    bmi: float | None
    bmi_category: str | None
    bmr: float | None
    tdee: float | None
    target_calories: int
    recommended_protein_g: float | None
    recommended_ratio: RatioTriple


@dataclass
class ProfileService:
    """Loads and saves the profile and derives calorie and ratio targets."""

    repository: ProfileRepository
    today: Callable[[], date] = date.today

    def load(self) -> UserProfile:
        """Return the stored profile, or an empty one if none is readable."""
        raw = self.repository.get_setting(PROFILE_KEY)
        if not raw:
            return UserProfile()
        try:
            data = json.loads(raw)
        except ValueError:
            _logger.warning("Stored user profile is not valid JSON")
            return UserProfile()
        if not isinstance(data, dict):
            _logger.warning("Stored user profile is not an object")
            return UserProfile()
        return UserProfile.from_payload(data)

    def save(self, profile: UserProfile) -> UserProfile:
        self.repository.set_setting(PROFILE_KEY, json.dumps(profile.as_payload()))
        _logger.info("Saved user profile (complete: %s)", profile.is_full_complete)
        return profile

    def update(self, **changes: object) -> UserProfile:
        """Apply the given fields to the stored profile; ``None`` keeps a value."""
        provided = {name: value for name, value in changes.items() if value is not None}
        return self.save(replace(self.load(), **provided))

    def clear(self) -> None:
        self.repository.set_setting(PROFILE_KEY, "{}")

    def daily_target_calories(self) -> int:
        """Return the profile's calorie target, or 2000 kcal without one."""
        return _target_calories(self.load(), self.today())

    def recommended_ratio(self) -> RatioTriple:
        return self.load().recommended_ratio

    def summary(self) -> ProfileSummary:
        profile = self.load()
        today = self.today()
        return ProfileSummary(
            profile=profile,
            age=profile.age(today),
            age_group=profile.age_group(today),
            bmi=profile.bmi,
            bmi_category=profile.bmi_category,
            bmr=profile.bmr(today),
            tdee=profile.tdee(today),
            target_calories=_target_calories(profile, today),
            recommended_protein_g=profile.recommended_protein_g,
            recommended_ratio=profile.recommended_ratio,
        )


def _target_calories(profile: UserProfile, today: date) -> int:
    target = profile.target_calories(today)
    if target is None or target <= 0:
        return DEFAULT_TARGET_CALORIES
    return round_half_away(target)
