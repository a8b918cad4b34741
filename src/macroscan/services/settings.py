"""Key-value settings: target macro ratio and feature toggles."""

from dataclasses import dataclass
from typing import Protocol

from macroscan.domain.nutrition import parse_int
from macroscan.domain.ratio import WHO_TARGET_RATIO, InvalidRatio, RatioTriple
from macroscan.services.profile import ProfileService

TARGET_CARB_KEY = "target_carb_ratio"
TARGET_PROTEIN_KEY = "target_protein_ratio"
TARGET_FAT_KEY = "target_fat_ratio"

ALTERNATIVES_ENABLED = "alternatives_enabled"


class SettingsRepository(Protocol):
    """Persistence interface for the settings table."""

    def get_setting(self, key: str) -> str | None:
        """Return a stored setting value."""

    def set_setting(self, key: str, value: str) -> None:
        """Insert or replace a setting value."""

    def get_all_settings(self) -> dict[str, str]:
        """Return every stored setting."""


@dataclass
class SettingsService:
    """Service for reading and writing app settings."""

    repository: SettingsRepository
    profile_service: ProfileService | None = None

    def get_target_ratio(self) -> RatioTriple:
        """Return the stored target ratio.

        Without a valid stored ratio the profile's goal ratio is used, and
        without a profile the WHO baseline.
        """
        values = [
            parse_int(self.repository.get_setting(key))
            for key in (TARGET_CARB_KEY, TARGET_PROTEIN_KEY, TARGET_FAT_KEY)
        ]
        if None in values:
            return self._default_ratio()
        try:
            return RatioTriple(carb=values[0], protein=values[1], fat=values[2])
        except InvalidRatio:
            return self._default_ratio()

    def set_target_ratio(self, carb: int, protein: int, fat: int) -> RatioTriple:
        """Validate and persist a target ratio."""
        ratio = RatioTriple(carb=carb, protein=protein, fat=fat)
        self.repository.set_setting(TARGET_CARB_KEY, str(ratio.carb))
        self.repository.set_setting(TARGET_PROTEIN_KEY, str(ratio.protein))
        self.repository.set_setting(TARGET_FAT_KEY, str(ratio.fat))
        return ratio

    def is_enabled(self, key: str, default: bool = True) -> bool:
        """Return a feature toggle stored as ``"1"`` or ``"0"``."""
        value = self.repository.get_setting(key)
        if value is None:
            return default
        return value.strip() == "1"

    def set_enabled(self, key: str, enabled: bool) -> None:
        """Persist a feature toggle."""
        self.repository.set_setting(key, "1" if enabled else "0")

    def get_all(self) -> dict[str, str]:
        """Return all stored settings."""
        return self.repository.get_all_settings()

    def _default_ratio(self) -> RatioTriple:
        if self.profile_service is None:
            return WHO_TARGET_RATIO
        return self.profile_service.recommended_ratio()
