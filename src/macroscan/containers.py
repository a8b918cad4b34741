"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import create_client

from macroscan.adapters.bigquery_alternatives_client import BigQueryAlternativesClient
from macroscan.adapters.openai_vision_client import OpenAIVisionClient
from macroscan.adapters.supabase_daily_intake_repository import (
    SupabaseDailyIntakeRepository,
)
from macroscan.adapters.supabase_image_store import SupabaseImageStore
from macroscan.adapters.supabase_scan_repository import SupabaseScanRepository
from macroscan.adapters.supabase_settings_repository import SupabaseSettingsRepository
from macroscan.adapters.supabase_validation_report_repository import (
    SupabaseValidationReportRepository,
)
from macroscan.config import Settings
from macroscan.services.alternatives import AlternativesService
from macroscan.services.daily_intake import DailyIntakeService
from macroscan.services.profile import ProfileService
from macroscan.services.retry import RetryPolicy
from macroscan.services.scans import ScanService
from macroscan.services.settings import SettingsService
from macroscan.services.validation import ValidationPipeline
from macroscan.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    vision_service: VisionService
    validation_pipeline: ValidationPipeline
    daily_intake_service: DailyIntakeService
    settings_service: SettingsService
    profile_service: ProfileService
    alternatives_service: AlternativesService
    scan_service: ScanService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    scan_repository = SupabaseScanRepository(supabase_client)
    report_repository = SupabaseValidationReportRepository(supabase_client)
    daily_repository = SupabaseDailyIntakeRepository(supabase_client)
    settings_repository = SupabaseSettingsRepository(supabase_client)
    image_store = SupabaseImageStore(supabase_client, resolved_settings.image_bucket)

    openai_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
    vision_service = VisionService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.vision_timeout_seconds,
        retry_policy=RetryPolicy(
            max_attempts=resolved_settings.retry_max_attempts,
            initial_delay=resolved_settings.retry_initial_delay_seconds,
            max_delay=resolved_settings.retry_max_delay_seconds,
        ),
    )

    bigquery_client: BigQueryAlternativesClient | None = None
    if resolved_settings.alternatives_configured:
        bigquery_client = BigQueryAlternativesClient.create(
            project_id=resolved_settings.bigquery_project_id,
            dataset=resolved_settings.bigquery_dataset,
            table=resolved_settings.bigquery_table,
            access_token=resolved_settings.bigquery_access_token,
        )
    alternatives_service = AlternativesService(bigquery_client)

    validation_pipeline = ValidationPipeline(
        confidence_threshold=resolved_settings.confidence_threshold,
        ratio_sum_tolerance=resolved_settings.ratio_sum_tolerance,
        anomaly_calorie_threshold=resolved_settings.calorie_anomaly_threshold,
        low_confidence_warning_count=resolved_settings.low_confidence_warning_count,
    )
    daily_intake_service = DailyIntakeService(
        daily_repository,
        timezone_name=resolved_settings.timezone,
        confidence_threshold=resolved_settings.confidence_threshold,
    )
    profile_service = ProfileService(
        settings_repository,
        today=lambda: daily_intake_service.local_day(datetime.now(tz=UTC)),
    )
    settings_service = SettingsService(
        settings_repository, profile_service=profile_service
    )
    scan_service = ScanService(
        vision_service=vision_service,
        pipeline=validation_pipeline,
        scan_repository=scan_repository,
        report_repository=report_repository,
        image_store=image_store,
        daily_intake_service=daily_intake_service,
        settings_service=settings_service,
        alternatives_service=alternatives_service,
        confidence_threshold=resolved_settings.confidence_threshold,
        persist_all_reports=resolved_settings.persist_all_reports,
    )

    async def close_resources() -> None:
        await openai_client.client.close()
        if bigquery_client is not None:
            await bigquery_client.close()

    return AppContainer(
        settings=resolved_settings,
        vision_service=vision_service,
        validation_pipeline=validation_pipeline,
        daily_intake_service=daily_intake_service,
        settings_service=settings_service,
        profile_service=profile_service,
        alternatives_service=alternatives_service,
        scan_service=scan_service,
        close_resources=close_resources,
    )
