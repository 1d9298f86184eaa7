"""Symbology classification."""

import re

from code_scanner.domain.scans import CodeType

_BARCODE_TAGS = frozenset(
    {
        "EAN8",
        "EAN13",
        "CODE128",
        "CODE39",
        "CODE93",
        "INTERLEAVED2OF5",
        "I25",
        "ITF14",
        "PDF417",
    }
)
_QR_TAGS = frozenset({"QR", "QRCODE", "AZTEC", "DATAMATRIX"})

_SEPARATORS = re.compile(r"[\s_.\-]+")


def normalize_symbology(symbology: str) -> str:
    """Uppercase a symbology tag and strip separators."""
    return _SEPARATORS.sub("", symbology).upper()


def classify(symbology: str) -> CodeType:
    """Map a decoder symbology tag to its code family."""
    tag = normalize_symbology(symbology)
    if tag in _BARCODE_TAGS:
        return CodeType.BARCODE
    if tag in _QR_TAGS:
        return CodeType.QR_CODE
    return CodeType.UNKNOWN
