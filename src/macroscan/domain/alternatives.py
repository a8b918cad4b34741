"""Models for healthier food alternatives."""

from pydantic import BaseModel, Field, field_validator


class AlternativeFood(BaseModel):
    """A candidate food returned by the analytics warehouse."""

    description: str
    food_category: str | None = None
    carb_ratio: int = Field(ge=0, le=100)
    protein_ratio: int = Field(ge=0, le=100)
    fat_ratio: int = Field(ge=0, le=100)
    who_compliant: bool = False
    energy_kcal: float | None = Field(default=None, ge=0)

    @field_validator("carb_ratio", "protein_ratio", "fat_ratio", mode="before")
    @classmethod
    def _coerce_ratio(cls, value: object) -> object:
        # Warehouse rows may carry numbers as strings or floats.
        if isinstance(value, str):
            value = float(value)
        if isinstance(value, float):
            return int(value)
        return value
