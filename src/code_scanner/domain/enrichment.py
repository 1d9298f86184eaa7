"""Outcomes of a product lookup."""

from dataclasses import dataclass

from code_scanner.domain.scans import ProductInfo


@dataclass(frozen=True)
class Found:
    """The lookup service returned product data."""

    product: ProductInfo


@dataclass(frozen=True)
class NotFound:
    """The lookup service has no product for the barcode."""


@dataclass(frozen=True)
class Unavailable:
    """The lookup could not be completed."""

    reason: str


LookupOutcome = Found | NotFound | Unavailable
