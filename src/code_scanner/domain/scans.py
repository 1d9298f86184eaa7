"""Domain models for scanned codes."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class CodeType(StrEnum):
    """Symbology family of a scanned code."""

    BARCODE = "barcode"
    QR_CODE = "qr_code"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Human-readable label for list and detail views."""
        return _CODE_TYPE_LABELS[self]


_CODE_TYPE_LABELS = {
    CodeType.BARCODE: "Barcode",
    CodeType.QR_CODE: "QR code",
    CodeType.UNKNOWN: "Unknown code",
}


@dataclass(frozen=True)
class ProductInfo:
    """Product metadata attached to a barcode at creation time."""

    product_name: str
    brand: str | None = None
    ingredients: str | None = None
    nutri_score: str | None = None


@dataclass(frozen=True)
class ScanRecord:
    """A persisted scan, unique per code value."""

    id: UUID
    code_value: str
    code_type: CodeType
    scan_date: datetime
    raw_content: str
    custom_name: str | None = None
    product_info: ProductInfo | None = None


@dataclass(frozen=True)
class DetectionEvent:
    """A decoded symbol delivered by the capture layer."""

    value: str
    symbology: str
    observed_at: datetime


def normalize_custom_name(name: str | None) -> str | None:
    """Return a trimmed label, or None for empty input."""
    if name is None:
        return None
    cleaned = name.strip()
    return cleaned or None


def display_name(record: ScanRecord) -> str:
    """Return the title shown for a scan in list and detail views."""
    if record.custom_name:
        return record.custom_name
    if record.product_info and record.product_info.product_name:
        return record.product_info.product_name
    return record.code_type.label
