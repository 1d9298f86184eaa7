"""Request and response models for the scans API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from code_scanner.domain.enrichment import Found, LookupOutcome, NotFound
from code_scanner.domain.scans import ScanRecord, display_name


class DetectionIn(BaseModel):
    """A decoded symbol posted by the capture layer."""

    value: str = Field(min_length=1)
    symbology: str
    observed_at: datetime | None = None  # naive values are read as UTC


class RenameIn(BaseModel):
    """New custom name for a scan; blank clears it."""

    custom_name: str | None = None


class ProductOut(BaseModel):
    product_name: str
    brand: str | None = None
    ingredients: str | None = None
    nutri_score: str | None = None


class ScanOut(BaseModel):
    """Serialized scan record."""

    id: UUID
    code_value: str
    code_type: str
    code_type_label: str
    scan_date: datetime
    raw_content: str
    custom_name: str | None = None
    display_name: str
    product: ProductOut | None = None

    @classmethod
    def from_record(cls, record: ScanRecord) -> "ScanOut":
        product = record.product_info
        return cls(
            id=record.id,
            code_value=record.code_value,
            code_type=record.code_type.value,
            code_type_label=record.code_type.label,
            scan_date=record.scan_date,
            raw_content=record.raw_content,
            custom_name=record.custom_name,
            display_name=display_name(record),
            product=(
                ProductOut(
                    product_name=product.product_name,
                    brand=product.brand,
                    ingredients=product.ingredients,
                    nutri_score=product.nutri_score,
                )
                if product
                else None
            ),
        )


class DetectionOut(BaseModel):
    """Result of posting a detection."""

    status: str
    scan: ScanOut | None = None
    lookup: str | None = None


def lookup_label(outcome: LookupOutcome | None) -> str | None:
    """Short name of a lookup outcome for API responses."""
    if outcome is None:
        return None
    if isinstance(outcome, Found):
        return "found"
    if isinstance(outcome, NotFound):
        return "not_found"
    return "unavailable"
