"""Supabase implementation for scan records."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from code_scanner.domain.scans import CodeType, ProductInfo, ScanRecord
from code_scanner.services.scan_store import DuplicateCodeValueError, ScanRepository

_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseScanRepository(ScanRepository):
    """Supabase-backed repository; ``code_value`` carries a unique constraint."""

    client: Client
    table_name: str = "scanned_codes"

    def find_by_code_value(self, code_value: str) -> ScanRecord | None:
        """Return the record for a code value, if present."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("code_value", code_value)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_scan(response.data[0])

    def create_scan(self, record: ScanRecord) -> ScanRecord:
        """Insert a scan row and return it."""
        try:
            response = (
                self.client.table(self.table_name)
                .insert(_serialize_scan(record))
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateCodeValueError(record.code_value) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create scan entry")
        return _parse_scan(response.data[0])

    def get_scan(self, scan_id: UUID) -> ScanRecord | None:
        """Return a scan by id, if present."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .eq("id", str(scan_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_scan(response.data[0])

    def update_custom_name(self, scan_id: UUID, custom_name: str | None) -> ScanRecord:
        """Set the custom name of a scan and return it."""
        response = (
            self.client.table(self.table_name)
            .update({"custom_name": custom_name})
            .eq("id", str(scan_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update scan entry")
        return _parse_scan(response.data[0])

    def delete_scan(self, scan_id: UUID) -> None:
        """Delete a scan by id."""
        self.client.table(self.table_name).delete().eq("id", str(scan_id)).execute()

    def list_scans(self) -> list[ScanRecord]:
        """Return all scans, newest first."""
        response = (
            self.client.table(self.table_name)
            .select("*")
            .order("scan_date", desc=True)
            .execute()
        )
        return [_parse_scan(row) for row in response.data or []]


def _serialize_scan(record: ScanRecord) -> dict[str, object]:
    """Flatten a scan record into a table row."""
    product = record.product_info
    return {
        "id": str(record.id),
        "code_value": record.code_value,
        "code_type": record.code_type.value,
        "scan_date": record.scan_date.isoformat(),
        "raw_content": record.raw_content,
        "custom_name": record.custom_name,
        "product_name": product.product_name if product else None,
        "brand": product.brand if product else None,
        "ingredients": product.ingredients if product else None,
        "nutri_score": product.nutri_score if product else None,
    }


def _parse_scan(row: dict[str, object]) -> ScanRecord:
    """Parse a scan row into a domain model."""
    product_name = row.get("product_name")
    product_info = (
        ProductInfo(
            product_name=str(product_name),
            brand=row.get("brand"),
            ingredients=row.get("ingredients"),
            nutri_score=row.get("nutri_score"),
        )
        if product_name
        else None
    )
    code_type_raw = row.get("code_type")
    code_type = (
        CodeType(code_type_raw)
        if code_type_raw in {item.value for item in CodeType}
        else CodeType.UNKNOWN
    )
    return ScanRecord(
        id=UUID(str(row["id"])),
        code_value=str(row["code_value"]),
        code_type=code_type,
        scan_date=datetime.fromisoformat(str(row["scan_date"])),
        raw_content=str(row.get("raw_content") or row["code_value"]),
        custom_name=row.get("custom_name") or None,
        product_info=product_info,
    )
