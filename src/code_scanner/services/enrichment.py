"""Product enrichment backed by Open Food Facts."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from code_scanner.adapters.openfoodfacts_client import OpenFoodFactsClient
from code_scanner.domain.enrichment import Found, LookupOutcome, NotFound, Unavailable
from code_scanner.domain.scans import ProductInfo
from code_scanner.services.cache import InMemoryOutcomeCache, OutcomeCache

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

UNKNOWN_PRODUCT_NAME = "Unknown product"

_logger = logging.getLogger(__name__)


@dataclass
class EnrichmentService:
    """Resolves barcodes to product data without ever raising."""

    client: OpenFoodFactsClient
    cache: OutcomeCache = field(default_factory=InMemoryOutcomeCache)
    timeout_seconds: float = 10.0
    cache_ttl_seconds: int = 3600
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def lookup(self, barcode: str) -> LookupOutcome:
        """Look up a barcode and map the response to an outcome."""
        cached = self.cache.get(barcode)
        if cached is not None:
            return cached

        try:
            async with asyncio.timeout(self.timeout_seconds):
                payload = await self._call_with_retry(
                    lambda: self.client.get_product(barcode), barcode=barcode
                )
        except TimeoutError:
            outcome: LookupOutcome = Unavailable(
                f"lookup timed out after {self.timeout_seconds:g}s"
            )
        except httpx.HTTPStatusError as exc:
            outcome = Unavailable(f"HTTP {exc.response.status_code}")
        except Exception as exc:  # noqa: BLE001
            outcome = Unavailable(f"{type(exc).__name__}: {exc}")
        else:
            outcome = parse_product_response(payload)

        if isinstance(outcome, Unavailable):
            _logger.warning(
                "Product lookup unavailable: barcode=%s reason=%s",
                barcode,
                outcome.reason,
            )
            return outcome
        if isinstance(outcome, NotFound):
            _logger.info("Product not found: barcode=%s", barcode)
        self.cache.set(barcode, outcome, ttl_seconds=self.cache_ttl_seconds)
        return outcome

    async def _call_with_retry(
        self,
        func: "Callable[[], Awaitable[dict[str, object]]]",
        *,
        barcode: str,
    ) -> dict[str, object]:
        """Call the client, retrying transport errors only."""
        attempt = 0
        while True:
            try:
                return await func()
            except httpx.TransportError as exc:
                attempt += 1
                _logger.debug(
                    "Product lookup failed (attempt %s/%s): barcode=%s error=%s",
                    attempt,
                    self.retry_attempts + 1,
                    barcode,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def parse_product_response(payload: object) -> LookupOutcome:
    """Map an Open Food Facts product response to a lookup outcome."""
    if not isinstance(payload, dict):
        return Unavailable("malformed response: expected a JSON object")
    status = payload.get("status")
    if not isinstance(status, int) or isinstance(status, bool):
        return Unavailable("malformed response: missing status")
    product = payload.get("product")
    if status != 1 or product is None:
        return NotFound()
    if not isinstance(product, dict):
        return Unavailable("malformed response: product is not an object")
    return Found(
        ProductInfo(
            product_name=_text(product.get("product_name")) or UNKNOWN_PRODUCT_NAME,
            brand=_text(product.get("brands")),
            ingredients=_text(product.get("ingredients_text")),
            nutri_score=_text(product.get("nutrition_grades")),
        )
    )


def _text(value: object) -> str | None:
    """Return a stripped string, or None for missing or blank values."""
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None
