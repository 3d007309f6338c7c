"""Fingerprint cache for enrichment results.

The orchestrator fingerprints the item collection before fetching. When the
injected cache already holds a snapshot for that fingerprint, the fetch is
skipped. Passing no cache disables this without changing results.
"""

from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Protocol

from src.common.models import PriceItem

from .models import EnrichmentSnapshot


def fingerprint_items(items: Iterable[PriceItem]) -> str:
    """Cheap content fingerprint over SKU and new price of every item."""
    raw = "|".join(f"{item.sku}:{item.new_price or 0}" for item in items)
    return hashlib.md5(raw.encode()).hexdigest()


class FingerprintCache(Protocol):
    """Key -> last computed enrichment snapshot."""

    def get(self, key: str) -> EnrichmentSnapshot | None: ...

    def set(self, key: str, value: EnrichmentSnapshot) -> None: ...


class InMemoryFingerprintCache:
    """Bounded in-process cache with per-entry expiry.

    When full, the oldest entry is evicted first.

    Args:
        max_entries: Maximum number of snapshots kept.
        ttl_seconds: Lifetime of an entry.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        max_entries: int = 100,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, EnrichmentSnapshot]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> EnrichmentSnapshot | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: EnrichmentSnapshot) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()
