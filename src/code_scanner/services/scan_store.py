"""Scan persistence with one record per code value."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from code_scanner.domain.scans import (
    CodeType,
    ProductInfo,
    ScanRecord,
    normalize_custom_name,
)

_logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """The scan store could not complete an operation."""


class DuplicateCodeValueError(RuntimeError):
    """A record with the same code value already exists."""


class ScanNotFoundError(LookupError):
    """No scan exists with the requested id."""


class ScanRepository(Protocol):
    """Persistence interface for scan records.

    Implementations must enforce uniqueness of ``code_value`` and raise
    ``DuplicateCodeValueError`` when an insert violates it.
    """

    def find_by_code_value(self, code_value: str) -> ScanRecord | None:
        """Return the record for a code value, if present."""

    def create_scan(self, record: ScanRecord) -> ScanRecord:
        """Insert a record and return it as stored."""

    def get_scan(self, scan_id: UUID) -> ScanRecord | None:
        """Return a record by id, if present."""

    def update_custom_name(self, scan_id: UUID, custom_name: str | None) -> ScanRecord:
        """Set the custom name of a record and return it."""

    def delete_scan(self, scan_id: UUID) -> None:
        """Delete a record by id."""

    def list_scans(self) -> list[ScanRecord]:
        """Return all records, newest scan first."""


@dataclass
class _KeyedLocks:
    """asyncio locks created on demand per key and dropped when idle."""

    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)
    _users: dict[str, int] = field(default_factory=dict)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


@dataclass
class ScanStore:
    """Upsert and query layer over the scan repository.

    Repository calls run in a worker thread. Upserts for one code value are
    serialized by a per-value lock; the repository's unique constraint
    covers writers outside this process.
    """

    repository: ScanRepository
    _locks: _KeyedLocks = field(default_factory=_KeyedLocks)

    async def upsert(
        self,
        value: str,
        code_type: CodeType,
        raw_content: str,
        product_info: ProductInfo | None = None,
        scanned_at: datetime | None = None,
    ) -> ScanRecord:
        """Return the record for ``value``, creating it on first sight.

        Product data passed for an existing value is discarded.
        ``scanned_at`` defaults to the current time.
        """
        async with self._locks.hold(value):
            existing = await self._call(
                self.repository.find_by_code_value, value, action="find"
            )
            if existing is not None:
                return existing

            record = ScanRecord(
                id=uuid4(),
                code_value=value,
                code_type=code_type,
                scan_date=scanned_at or datetime.now(tz=UTC),
                raw_content=raw_content,
                product_info=product_info,
            )
            try:
                created = await asyncio.to_thread(self.repository.create_scan, record)
            except DuplicateCodeValueError:
                _logger.info("Concurrent insert for code value, refetching: %s", value)
                winner = await self._call(
                    self.repository.find_by_code_value, value, action="refetch"
                )
                if winner is None:
                    raise PersistenceError(
                        f"Scan for {value!r} conflicted but could not be loaded"
                    ) from None
                return winner
            except Exception as exc:
                _logger.exception("Failed to save scan: code_value=%s", value)
                raise PersistenceError(f"Failed to save scan: {exc}") from exc
            _logger.info(
                "Stored scan: id=%s type=%s enriched=%s",
                created.id,
                created.code_type,
                created.product_info is not None,
            )
            return created

    async def get(self, scan_id: UUID) -> ScanRecord:
        """Return a record by id."""
        record = await self._call(self.repository.get_scan, scan_id, action="get")
        if record is None:
            raise ScanNotFoundError(str(scan_id))
        return record

    async def rename(self, scan_id: UUID, new_name: str | None) -> ScanRecord:
        """Set or clear the custom name of a record."""
        await self.get(scan_id)
        return await self._call(
            self.repository.update_custom_name,
            scan_id,
            normalize_custom_name(new_name),
            action="rename",
        )

    async def delete(self, scan_id: UUID) -> None:
        """Delete a record."""
        await self._call(self.repository.delete_scan, scan_id, action="delete")

    async def list_scans(self) -> list[ScanRecord]:
        """Return all records, newest scan first."""
        records = await self._call(self.repository.list_scans, action="list")
        return sorted(records, key=lambda record: record.scan_date, reverse=True)

    @staticmethod
    async def _call(func, *args, action: str):  # type: ignore[no-untyped-def]
        """Run a repository call in a thread, wrapping faults."""
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as exc:
            _logger.exception("Scan store %s failed", action)
            raise PersistenceError(f"Failed to {action} scan: {exc}") from exc
