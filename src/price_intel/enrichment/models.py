"""Data models for batched market data enrichment."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.common.models import MarketData, PriceItem


class EnrichmentStatus(str, Enum):
    """Aggregate outcome of one enrichment run."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ItemFailure:
    """An item whose market data lookup failed."""

    sku: str
    error: str

    def to_dict(self) -> dict:
        return {"sku": self.sku, "error": self.error}


@dataclass
class EnrichmentResult:
    """Enriched items plus per-item failures.

    ``items`` holds only successfully enriched items, in completion order.
    Correlate with the input by SKU, never by position.
    """

    items: list[PriceItem] = field(default_factory=list)
    total: int = 0
    failures: list[ItemFailure] = field(default_factory=list)
    status: EnrichmentStatus = EnrichmentStatus.SUCCESS
    from_cache: bool = False
    fingerprint: str | None = None

    @property
    def succeeded(self) -> int:
        return len(self.items)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def warning(self) -> str | None:
        """Human-readable warning for partial or cancelled runs."""
        if self.status == EnrichmentStatus.PARTIAL:
            return (
                f"Market data unavailable for {self.failed} of {self.total} items; "
                f"{self.succeeded} enriched"
            )
        if self.status == EnrichmentStatus.CANCELLED:
            return f"Enrichment cancelled after {self.succeeded + self.failed} of {self.total} items"
        return None

    def by_sku(self) -> dict[str, PriceItem]:
        return {item.sku: item for item in self.items}

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "from_cache": self.from_cache,
            "warning": self.warning,
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class EnrichmentSnapshot:
    """What the fingerprint cache remembers about a finished run."""

    market_data: dict[str, MarketData] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)


class EnrichmentFailedError(RuntimeError):
    """Raised when every item of an enrichment run failed."""

    def __init__(self, result: EnrichmentResult) -> None:
        self.result = result
        first = result.failures[0].error if result.failures else "no items enriched"
        super().__init__(
            f"Market data enrichment failed for all {result.total} items (first error: {first})"
        )
