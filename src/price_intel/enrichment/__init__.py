"""Enrichment Module - batched, bounded-concurrency market data lookups."""

from .cache import FingerprintCache, InMemoryFingerprintCache, fingerprint_items
from .market_data_client import MarketDataClient, MarketDataError, build_market_data
from .models import (
    EnrichmentFailedError,
    EnrichmentResult,
    EnrichmentSnapshot,
    EnrichmentStatus,
    ItemFailure,
)
from .orchestrator import BatchEnrichmentOrchestrator, enrich
from .rate_limiter import RateLimiter

__all__ = [
    "BatchEnrichmentOrchestrator",
    "EnrichmentFailedError",
    "EnrichmentResult",
    "EnrichmentSnapshot",
    "EnrichmentStatus",
    "FingerprintCache",
    "InMemoryFingerprintCache",
    "ItemFailure",
    "MarketDataClient",
    "MarketDataError",
    "RateLimiter",
    "build_market_data",
    "enrich",
    "fingerprint_items",
]
