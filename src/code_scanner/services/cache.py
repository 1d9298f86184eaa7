"""Lookup outcome cache."""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from code_scanner.domain.enrichment import LookupOutcome


class OutcomeCache(Protocol):
    """Cache of recent lookup outcomes keyed by barcode."""

    def get(self, barcode: str) -> LookupOutcome | None:
        """Return a cached outcome if present and not expired."""

    def set(self, barcode: str, outcome: LookupOutcome, ttl_seconds: int) -> None:
        """Store an outcome with a TTL in seconds."""


@dataclass
class _CacheEntry:
    outcome: LookupOutcome
    expires_at: datetime


@dataclass
class InMemoryOutcomeCache(OutcomeCache):
    """Bounded in-memory cache; oldest entries are evicted first."""

    max_entries: int = 1024
    _entries: OrderedDict[str, _CacheEntry] = field(default_factory=OrderedDict)

    def get(self, barcode: str) -> LookupOutcome | None:
        """Return a cached outcome if it hasn't expired."""
        entry = self._entries.get(barcode)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(barcode, None)
            return None
        return entry.outcome

    def set(self, barcode: str, outcome: LookupOutcome, ttl_seconds: int) -> None:
        """Store an outcome with a TTL."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[barcode] = _CacheEntry(outcome=outcome, expires_at=expires_at)
        self._entries.move_to_end(barcode)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
