"""BigQuery REST client for healthier food alternatives."""

import logging
from dataclasses import dataclass

import httpx

from macroscan.domain.ratio import RatioTriple
from macroscan.services.alternatives import AlternativesClient

BIGQUERY_BASE_URL = "https://bigquery.googleapis.com/bigquery/v2"
QUERY_TIMEOUT_MS = 10000
HIGH_CARB_RATIO = 60
LOW_PROTEIN_RATIO = 20

# Scanned name or category fragments mapped to reference-table search terms.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "pork": ("pork", "bacon"),
    "bacon": ("pork", "bacon"),
    "beef": ("beef",),
    "chicken": ("chicken", "poultry"),
    "rice cake": ("rice cake",),
    "rice": ("rice", "grain"),
    "noodle": ("noodle",),
    "ramen": ("noodle", "ramen"),
    "pasta": ("pasta", "noodle"),
    "soup": ("soup",),
    "stew": ("soup", "stew"),
    "kimchi": ("kimchi", "cabbage"),
    "tofu": ("tofu",),
    "fish": ("fish",),
    "seafood": ("seafood", "fish"),
    "snack": ("snack",),
    "dessert": ("dessert", "sweet"),
    "beverage": ("beverage",),
    "drink": ("beverage",),
}

_SELECT_COLUMNS = (
    "description, food_category, energy_kcal, carb_ratio, protein_ratio, "
    "fat_ratio, who_compliant"
)

_logger = logging.getLogger(__name__)


@dataclass
class BigQueryAlternativesClient(AlternativesClient):
    """HTTPX-backed client for the USDA reference table in BigQuery."""

    project_id: str
    dataset: str
    table: str
    access_token: str
    http_client: httpx.AsyncClient
    base_url: str = BIGQUERY_BASE_URL

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        project_id: str,
        dataset: str,
        table: str,
        access_token: str,
        base_url: str = BIGQUERY_BASE_URL,
    ) -> "BigQueryAlternativesClient":
        """Create a BigQuery client with a managed httpx session."""
        return cls(
            project_id=project_id,
            dataset=dataset,
            table=table,
            access_token=access_token,
            http_client=httpx.AsyncClient(),
            base_url=base_url,
        )

    async def find_alternatives(
        self,
        food_name: str,
        food_category: str | None,
        ratio: RatioTriple,
        limit: int,
    ) -> list[dict[str, object]]:
        """Return WHO-compliant foods closest to 50/30/20.

        Foods matching the scanned category are preferred; when none exist
        the query is repeated without the category filter.
        """
        keywords = category_keywords(food_name, food_category)
        if keywords:
            rows = await self._query(ratio, limit, keywords)
            if rows:
                return rows
            _logger.info(
                "No category alternatives for %s, falling back to any category",
                food_name,
            )
        return await self._query(ratio, limit, [])

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _query(
        self, ratio: RatioTriple, limit: int, keywords: list[str]
    ) -> list[dict[str, object]]:
        conditions = ["who_compliant = TRUE"]
        parameters = [_scalar_parameter("limit", "INT64", limit)]
        if ratio.carb > HIGH_CARB_RATIO:
            conditions.append("carb_ratio < @carb_ratio")
            parameters.append(_scalar_parameter("carb_ratio", "INT64", ratio.carb))
        if ratio.protein < LOW_PROTEIN_RATIO:
            conditions.append("protein_ratio > @protein_ratio")
            parameters.append(
                _scalar_parameter("protein_ratio", "INT64", ratio.protein)
            )
        if keywords:
            conditions.append(
                "EXISTS (SELECT 1 FROM UNNEST(@keywords) AS kw "
                "WHERE LOWER(description) LIKE CONCAT('%', kw, '%') "
                "OR LOWER(food_category) LIKE CONCAT('%', kw, '%'))"
            )
            parameters.append(_array_parameter("keywords", keywords))

        sql = (
            f"SELECT {_SELECT_COLUMNS} "
            f"FROM `{self.project_id}.{self.dataset}.{self.table}` "
            f"WHERE {' AND '.join(conditions)} "
            "ORDER BY ABS(carb_ratio - 50) + ABS(protein_ratio - 30) "
            "+ ABS(fat_ratio - 20) ASC, energy_kcal ASC "
            "LIMIT @limit"
        )
        response = await self.http_client.post(
            f"{self.base_url}/projects/{self.project_id}/queries",
            headers={"Authorization": f"Bearer {self.access_token}"},
            json={
                "query": sql,
                "useLegacySql": False,
                "parameterMode": "NAMED",
                "queryParameters": parameters,
                "timeoutMs": QUERY_TIMEOUT_MS,
            },
            timeout=15,
        )
        response.raise_for_status()
        return parse_query_rows(response.json())


def category_keywords(food_name: str, food_category: str | None) -> list[str]:
    """Return reference-table search terms for a scanned food."""
    haystack = f"{food_name} {food_category or ''}".lower()
    keywords: list[str] = []
    for fragment, terms in CATEGORY_KEYWORDS.items():
        if fragment in haystack:
            keywords.extend(term for term in terms if term not in keywords)
    return keywords


def parse_query_rows(data: dict[str, object]) -> list[dict[str, object]]:
    """Convert a BigQuery ``queries`` response into plain dict rows."""
    if not data.get("jobComplete", True):
        raise RuntimeError("BigQuery query did not complete in time")
    schema = data.get("schema") or {}
    fields = schema.get("fields") or []
    rows: list[dict[str, object]] = []
    for row in data.get("rows") or []:
        cells = row.get("f") or []
        rows.append(
            {
                field["name"]: _convert_cell(field.get("type"), cell.get("v"))
                for field, cell in zip(fields, cells, strict=False)
            }
        )
    return rows


def _convert_cell(field_type: str | None, value: object) -> object:
    if value is None:
        return None
    if field_type in {"INTEGER", "INT64"}:
        return int(value)
    if field_type in {"FLOAT", "FLOAT64", "NUMERIC", "BIGNUMERIC"}:
        return float(value)
    if field_type in {"BOOLEAN", "BOOL"}:
        return str(value).lower() == "true"
    return value


def _scalar_parameter(name: str, type_name: str, value: object) -> dict[str, object]:
    return {
        "name": name,
        "parameterType": {"type": type_name},
        "parameterValue": {"value": str(value)},
    }


def _array_parameter(name: str, values: list[str]) -> dict[str, object]:
    return {
        "name": name,
        "parameterType": {"type": "ARRAY", "arrayType": {"type": "STRING"}},
        "parameterValue": {"arrayValues": [{"value": value} for value in values]},
    }
