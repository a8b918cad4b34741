"""Best-effort lookup of healthier food alternatives."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from macroscan.domain.alternatives import AlternativeFood
from macroscan.domain.ratio import RatioTriple

MAX_ALTERNATIVES = 5

_logger = logging.getLogger(__name__)


class AlternativesClient(Protocol):
    """Interface for the analytics warehouse holding reference foods."""

    async def find_alternatives(
        self,
        food_name: str,
        food_category: str | None,
        ratio: RatioTriple,
        limit: int,
    ) -> list[dict[str, object]]:
        """Return raw candidate rows for a scanned food."""


@dataclass
class AlternativesService:
    """Service that never lets warehouse failures reach the scan workflow."""

    client: AlternativesClient | None
    limit: int = MAX_ALTERNATIVES

    async def find(
        self, food_name: str, food_category: str | None, ratio: RatioTriple
    ) -> list[AlternativeFood]:
        """Return up to ``limit`` alternatives, or an empty list on any failure."""
        if self.client is None:
            return []
        try:
            rows = await self.client.find_alternatives(
                food_name, food_category, ratio, self.limit
            )
        except Exception as exc:
            _logger.warning("Alternatives lookup failed for %s: %s", food_name, exc)
            return []

        alternatives: list[AlternativeFood] = []
        for row in rows:
            try:
                alternatives.append(AlternativeFood.model_validate(row))
            except ValidationError as exc:
                _logger.info("Skipping invalid alternative row: %s", exc)
            if len(alternatives) >= self.limit:
                break
        return alternatives
