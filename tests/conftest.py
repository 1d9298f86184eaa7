"""Shared test fixtures."""

import asyncio
import threading
import time
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from code_scanner.adapters.openfoodfacts_client import OpenFoodFactsClient
from code_scanner.config import Settings
from code_scanner.containers import AppContainer
from code_scanner.domain.scans import DetectionEvent, ScanRecord
from code_scanner.services.dedup import DeduplicationGate
from code_scanner.services.enrichment import EnrichmentService
from code_scanner.services.pipeline import ScanPipeline
from code_scanner.services.scan_store import (
    DuplicateCodeValueError,
    ScanRepository,
    ScanStore,
)

COCOA_BARCODE = "4006381333931"
_START = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryScanRepository(ScanRepository):
    """In-memory scan repository with a unique code_value constraint.

    ``find_delay`` widens the gap between lookup and insert so tests can
    exercise concurrent upserts.
    """

    scans: dict[UUID, ScanRecord] = field(default_factory=dict)
    find_delay: float = 0.0
    create_calls: int = 0
    fail_with: Exception | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def find_by_code_value(self, code_value: str) -> ScanRecord | None:
        if self.find_delay:
            time.sleep(self.find_delay)
        with self._lock:
            for scan in self.scans.values():
                if scan.code_value == code_value:
                    return scan
        return None

    def create_scan(self, record: ScanRecord) -> ScanRecord:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            self.create_calls += 1
            if any(scan.code_value == record.code_value for scan in self.scans.values()):
                raise DuplicateCodeValueError(record.code_value)
            self.scans[record.id] = record
        return record

    def get_scan(self, scan_id: UUID) -> ScanRecord | None:
        return self.scans.get(scan_id)

    def update_custom_name(self, scan_id: UUID, custom_name: str | None) -> ScanRecord:
        updated = replace(self.scans[scan_id], custom_name=custom_name)
        self.scans[scan_id] = updated
        return updated

    def delete_scan(self, scan_id: UUID) -> None:
        self.scans.pop(scan_id, None)

    def list_scans(self) -> list[ScanRecord]:
        return list(self.scans.values())


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """Fake Open Food Facts client with canned responses per barcode."""

    payloads: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            COCOA_BARCODE: {
                "status": 1,
                "product": {
                    "product_name": "Cocoa",
                    "brands": "Acme",
                    "nutrition_grades": "b",
                },
            }
        }
    )
    error: Exception | None = None
    delay: float = 0.0
    calls: list[str] = field(default_factory=list)

    async def get_product(self, barcode: str) -> dict[str, object]:
        self.calls.append(barcode)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payloads.get(barcode, {"status": 0, "product": None})


def detection(
    value: str, symbology: str = "EAN-13", seconds: float = 0.0
) -> DetectionEvent:
    """Build a detection observed ``seconds`` after a fixed start time."""
    return DetectionEvent(
        value=value,
        symbology=symbology,
        observed_at=_START + timedelta(seconds=seconds),
    )


def build_pipeline(
    repository: InMemoryScanRepository | None = None,
    client: FakeOpenFoodFactsClient | None = None,
    timeout_seconds: float = 10.0,
) -> ScanPipeline:
    """Wire a pipeline over in-memory fakes."""
    return ScanPipeline(
        store=ScanStore(repository or InMemoryScanRepository()),
        enrichment=EnrichmentService(
            client=client or FakeOpenFoodFactsClient(),
            timeout_seconds=timeout_seconds,
            retry_delay_seconds=0,
        ),
        gate=DeduplicationGate(),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
            "c2lnbmF0dXJl"
        ),
        api_token="api-token",
    )


@pytest.fixture
def scan_repository() -> InMemoryScanRepository:
    return InMemoryScanRepository()


@pytest.fixture
def off_client() -> FakeOpenFoodFactsClient:
    return FakeOpenFoodFactsClient()


@pytest.fixture
def container(
    settings: Settings,
    scan_repository: InMemoryScanRepository,
    off_client: FakeOpenFoodFactsClient,
) -> AppContainer:
    pipeline = build_pipeline(scan_repository, off_client)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        scan_store=pipeline.store,
        enrichment_service=pipeline.enrichment,
        scan_pipeline=pipeline,
        close_resources=close_resources,
    )
