"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from code_scanner.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from code_scanner.adapters.supabase_scan_repository import SupabaseScanRepository
from code_scanner.config import Settings
from code_scanner.services.dedup import DeduplicationGate
from code_scanner.services.enrichment import EnrichmentService
from code_scanner.services.pipeline import ScanPipeline
from code_scanner.services.scan_store import ScanStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    scan_store: ScanStore
    enrichment_service: EnrichmentService
    scan_pipeline: ScanPipeline
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    scan_store = ScanStore(
        SupabaseScanRepository(supabase_client, table_name=resolved_settings.scans_table)
    )
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout_seconds=resolved_settings.lookup_timeout_seconds,
    )
    enrichment_service = EnrichmentService(
        client=off_client,
        timeout_seconds=resolved_settings.lookup_timeout_seconds,
    )
    scan_pipeline = ScanPipeline(
        store=scan_store,
        enrichment=enrichment_service,
        gate=DeduplicationGate(
            cooldown_seconds=resolved_settings.dedup_cooldown_seconds
        ),
    )

    async def close_resources() -> None:
        await scan_pipeline.close()
        await off_client.close()

    return AppContainer(
        settings=resolved_settings,
        scan_store=scan_store,
        enrichment_service=enrichment_service,
        scan_pipeline=scan_pipeline,
        close_resources=close_resources,
    )
