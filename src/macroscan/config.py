"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "medium"
    openai_store: bool = False
    supabase_url: str
    supabase_service_key: str
    image_bucket: str = "scan-images"
    bigquery_project_id: str | None = None
    bigquery_dataset: str = "fivetran_usda"
    bigquery_table: str = "nutrition_foods"
    bigquery_access_token: str | None = None
    timezone: str = "UTC"
    confidence_threshold: float = 0.85
    ratio_sum_tolerance: float = 5
    calorie_anomaly_threshold: float = 25.0
    low_confidence_warning_count: int = 3
    vision_timeout_seconds: float = 30.0
    retry_max_attempts: int = 3
    retry_initial_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 5.0
    persist_all_reports: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def alternatives_configured(self) -> bool:
        """Return True when BigQuery credentials are present."""
        return bool(self.bigquery_project_id and self.bigquery_access_token)
