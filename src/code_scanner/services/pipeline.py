"""Scan pipeline: dedup, classify, enrich, store."""

import asyncio
import logging
from collections.abc import AsyncIterable, Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from code_scanner.domain.enrichment import Found, LookupOutcome
from code_scanner.domain.scans import CodeType, DetectionEvent, ScanRecord
from code_scanner.services.classifier import classify
from code_scanner.services.dedup import DeduplicationGate
from code_scanner.services.enrichment import EnrichmentService
from code_scanner.services.scan_store import PersistenceError, ScanStore

_logger = logging.getLogger(__name__)


class ScanStatus(StrEnum):
    """Terminal state of one detection."""

    EMITTED = "emitted"
    SUPPRESSED = "suppressed"
    FAILED = "failed"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of processing one detection."""

    status: ScanStatus
    record: ScanRecord | None = None
    lookup: LookupOutcome | None = None
    error: str | None = None


SUPPRESSED = ScanResult(status=ScanStatus.SUPPRESSED)

Emit = Callable[[ScanResult], Awaitable[None]]


@dataclass
class ScanPipeline:
    """Orchestrates a scan session over a stream of detections.

    Deduplication and classification happen synchronously, so detections are
    admitted strictly in arrival order. Barcode lookups run as independent
    tasks when driven through ``run``.
    """

    store: ScanStore
    enrichment: EnrichmentService
    gate: DeduplicationGate = field(default_factory=DeduplicationGate)
    _in_flight: set[asyncio.Task[None]] = field(default_factory=set)

    def admit(self, event: DetectionEvent) -> CodeType | None:
        """Pass a detection through the gate and classify it.

        Returns None when the detection is suppressed.
        """
        if not self.gate.admit(event.value, event.observed_at):
            _logger.debug("Suppressed repeated detection: %s", event.value)
            return None
        return classify(event.symbology)

    async def process(self, event: DetectionEvent) -> ScanResult:
        """Run one detection to completion and return its result.

        Raises PersistenceError if the record could not be stored.
        """
        code_type = self.admit(event)
        if code_type is None:
            return SUPPRESSED
        return await self._store(event, code_type)

    async def run(self, events: AsyncIterable[DetectionEvent], emit: Emit) -> None:
        """Consume detections until the stream ends, then close the session."""
        try:
            async for event in events:
                code_type = self.admit(event)
                if code_type is None:
                    continue
                if code_type is CodeType.BARCODE:
                    task = asyncio.create_task(self._complete(event, code_type, emit))
                    self._in_flight.add(task)
                    task.add_done_callback(self._task_done)
                else:
                    await self._complete(event, code_type, emit)
        finally:
            await self.close()

    async def close(self, *, abandon: bool = False) -> None:
        """End the session.

        In-flight lookups are awaited, or cancelled when ``abandon`` is set.
        A cancelled lookup leaves no record behind.
        """
        self.gate.reset()
        while self._in_flight:
            pending = list(self._in_flight)
            if abandon:
                for task in pending:
                    task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Scan task failed", exc_info=exc)

    @property
    def in_flight(self) -> int:
        """Number of barcode lookups still running."""
        return len(self._in_flight)

    async def _complete(
        self, event: DetectionEvent, code_type: CodeType, emit: Emit
    ) -> None:
        try:
            result = await self._store(event, code_type)
        except PersistenceError as exc:
            result = ScanResult(status=ScanStatus.FAILED, error=str(exc))
        await emit(result)

    async def _store(self, event: DetectionEvent, code_type: CodeType) -> ScanResult:
        lookup: LookupOutcome | None = None
        product_info = None
        if code_type is CodeType.BARCODE:
            lookup = await self.enrichment.lookup(event.value)
            if isinstance(lookup, Found):
                product_info = lookup.product
        record = await self.store.upsert(
            event.value,
            code_type,
            raw_content=event.value,
            product_info=product_info,
            scanned_at=event.observed_at,
        )
        return ScanResult(status=ScanStatus.EMITTED, record=record, lookup=lookup)
