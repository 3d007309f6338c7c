"""Tests for the batch enrichment orchestrator and its fingerprint cache."""

from __future__ import annotations

import asyncio

import pytest

from src.common.config import EnrichmentSettings
from src.common.models import MarketData, PricePosition, PriceItem, PriceStatus
from src.price_intel.enrichment import (
    BatchEnrichmentOrchestrator,
    EnrichmentFailedError,
    EnrichmentSnapshot,
    EnrichmentStatus,
    InMemoryFingerprintCache,
    RateLimiter,
    enrich,
    fingerprint_items,
)


def make_items(count: int) -> list[PriceItem]:
    return [
        PriceItem(sku=f"SKU{i:03d}", old_price=10, new_price=11 + i, status=PriceStatus.INCREASED)
        for i in range(count)
    ]


class FakeMarket:
    """Async fetcher that records calls and tracks concurrency."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, item: PriceItem) -> MarketData:
        self.calls.append(item.sku)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if item.sku in self.failing:
                raise RuntimeError(f"lookup timed out for {item.sku}")
            return MarketData(price_position=PricePosition.AVERAGE, competitor_prices=[item.new_price])
        finally:
            self.in_flight -= 1


@pytest.fixture
def config() -> EnrichmentSettings:
    return EnrichmentSettings(
        batch_size=2,
        max_concurrent_batches=2,
        item_concurrency=10,
        inter_round_delay_seconds=0,
    )


class TestBatching:
    """Concurrency bounds and completion."""

    def test_all_items_enriched(self, config):
        items = make_items(7)
        market = FakeMarket()
        orchestrator = BatchEnrichmentOrchestrator(market, config=config)

        result = asyncio.run(orchestrator.enrich(items))

        assert result.status == EnrichmentStatus.SUCCESS
        assert result.succeeded == 7
        assert sorted(market.calls) == sorted(i.sku for i in items)
        assert all(item.market_data is not None for item in items)
        assert set(result.by_sku()) == {i.sku for i in items}

    def test_in_flight_bounded_by_batches_times_batch_size(self, config):
        market = FakeMarket()
        orchestrator = BatchEnrichmentOrchestrator(market, config=config)
        asyncio.run(orchestrator.enrich(make_items(11)))
        assert market.max_in_flight <= 4

    def test_item_concurrency_limits_fan_out(self):
        market = FakeMarket()
        orchestrator = BatchEnrichmentOrchestrator(
            market, batch_size=10, max_concurrent_batches=1, item_concurrency=3,
            inter_round_delay=0, config=EnrichmentSettings(),
        )
        asyncio.run(orchestrator.enrich(make_items(10)))
        assert market.max_in_flight <= 3

    @pytest.mark.parametrize(
        "bound", ["batch_size", "max_concurrent_batches", "item_concurrency"]
    )
    def test_explicit_zero_bound_rejected(self, bound):
        with pytest.raises(ValueError):
            BatchEnrichmentOrchestrator(FakeMarket(), config=EnrichmentSettings(), **{bound: 0})

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            BatchEnrichmentOrchestrator(FakeMarket(), item_concurrency=-1, config=EnrichmentSettings())

    def test_empty_input(self, config):
        market = FakeMarket()
        result = asyncio.run(BatchEnrichmentOrchestrator(market, config=config).enrich([]))
        assert result.status == EnrichmentStatus.SUCCESS
        assert result.total == 0
        assert market.calls == []


class TestProgress:
    """Progress reporting."""

    def test_monotonic_and_complete(self, config):
        calls: list[tuple[int, int]] = []
        orchestrator = BatchEnrichmentOrchestrator(FakeMarket({"SKU002"}), config=config)
        asyncio.run(orchestrator.enrich(make_items(5), on_progress=lambda c, t: calls.append((c, t))))

        assert len(calls) == 5
        assert [c for c, _ in calls] == [1, 2, 3, 4, 5]
        assert all(t == 5 for _, t in calls)


class TestFailures:
    """Per-item failure isolation."""

    def test_partial_failure(self, config):
        items = make_items(5)
        orchestrator = BatchEnrichmentOrchestrator(FakeMarket({"SKU001", "SKU003"}), config=config)

        result = asyncio.run(orchestrator.enrich(items))

        assert result.status == EnrichmentStatus.PARTIAL
        assert result.succeeded == 3
        assert result.failed == 2
        assert result.warning is not None
        assert "2 of 5" in result.warning
        assert {f.sku for f in result.failures} == {"SKU001", "SKU003"}
        assert items[1].market_data is None
        assert items[0].market_data is not None

    def test_all_failed_raises(self, config):
        items = make_items(3)
        orchestrator = BatchEnrichmentOrchestrator(
            FakeMarket({i.sku for i in items}), config=config
        )
        with pytest.raises(EnrichmentFailedError) as exc_info:
            asyncio.run(orchestrator.enrich(items))
        assert exc_info.value.result.failed == 3
        assert exc_info.value.result.status == EnrichmentStatus.FAILED

    def test_sync_fetcher_returning_dict(self, config):
        def fetch(item):
            return {"pricePosition": "low", "competitorPrices": [20.0, 22.0]}

        items = make_items(2)
        result = asyncio.run(BatchEnrichmentOrchestrator(fetch, config=config).enrich(items))
        assert result.status == EnrichmentStatus.SUCCESS
        assert items[0].market_data.price_position == PricePosition.LOW

    def test_invalid_payload_is_item_failure(self, config):
        def fetch(item):
            if item.sku == "SKU000":
                return {"pricePosition": "nonsense"}
            return {"pricePosition": "high"}

        result = asyncio.run(BatchEnrichmentOrchestrator(fetch, config=config).enrich(make_items(2)))
        assert result.status == EnrichmentStatus.PARTIAL
        assert result.failures[0].sku == "SKU000"


class TestCancellation:
    """Cancellation between rounds."""

    def test_cancel_stops_further_rounds(self, config):
        cancel = asyncio.Event()
        items = make_items(10)
        market = FakeMarket()

        def on_progress(completed, total):
            if completed == 4:
                cancel.set()

        async def run():
            orchestrator = BatchEnrichmentOrchestrator(market, config=config)
            return await orchestrator.enrich(items, on_progress=on_progress, cancel_event=cancel)

        result = asyncio.run(run())

        assert result.status == EnrichmentStatus.CANCELLED
        assert result.succeeded == 4
        assert len(market.calls) == 4
        assert "4 of 10" in result.warning

    def test_cancel_before_start(self, config):
        async def run():
            cancel = asyncio.Event()
            cancel.set()
            return await BatchEnrichmentOrchestrator(FakeMarket(), config=config).enrich(
                make_items(3), cancel_event=cancel
            )

        result = asyncio.run(run())
        assert result.status == EnrichmentStatus.CANCELLED
        assert result.succeeded == 0


class TestFingerprintCache:
    """Memoization keyed on the item collection."""

    def test_fingerprint_depends_on_sku_and_new_price(self):
        items = make_items(3)
        same = make_items(3)
        assert fingerprint_items(items) == fingerprint_items(same)
        same[0].new_price = 99
        assert fingerprint_items(items) != fingerprint_items(same)

    def test_second_run_served_from_cache(self, config):
        market = FakeMarket()
        cache = InMemoryFingerprintCache()
        orchestrator = BatchEnrichmentOrchestrator(market, cache=cache, config=config)

        asyncio.run(orchestrator.enrich(make_items(4)))
        fresh = make_items(4)
        progress: list[tuple[int, int]] = []
        result = asyncio.run(orchestrator.enrich(fresh, on_progress=lambda c, t: progress.append((c, t))))

        assert len(market.calls) == 4
        assert result.from_cache is True
        assert result.status == EnrichmentStatus.SUCCESS
        assert all(item.market_data is not None for item in fresh)
        assert progress == [(4, 4)]

    def test_cached_partial_keeps_failures(self, config):
        cache = InMemoryFingerprintCache()
        orchestrator = BatchEnrichmentOrchestrator(FakeMarket({"SKU000"}), cache=cache, config=config)
        asyncio.run(orchestrator.enrich(make_items(3)))

        result = asyncio.run(orchestrator.enrich(make_items(3)))
        assert result.from_cache is True
        assert result.status == EnrichmentStatus.PARTIAL
        assert [f.sku for f in result.failures] == ["SKU000"]

    def test_changed_prices_miss_cache(self, config):
        market = FakeMarket()
        orchestrator = BatchEnrichmentOrchestrator(
            market, cache=InMemoryFingerprintCache(), config=config
        )
        asyncio.run(orchestrator.enrich(make_items(2)))
        changed = make_items(2)
        changed[1].new_price = 50
        result = asyncio.run(orchestrator.enrich(changed))
        assert result.from_cache is False
        assert len(market.calls) == 4

    def test_no_cache_same_result(self, config):
        with_cache = asyncio.run(
            BatchEnrichmentOrchestrator(FakeMarket(), cache=InMemoryFingerprintCache(), config=config)
            .enrich(make_items(3))
        )
        without = asyncio.run(BatchEnrichmentOrchestrator(FakeMarket(), config=config).enrich(make_items(3)))
        assert with_cache.succeeded == without.succeeded
        assert with_cache.status == without.status


class TestInMemoryFingerprintCache:
    def test_ttl_expiry(self):
        now = [0.0]
        cache = InMemoryFingerprintCache(ttl_seconds=10, clock=lambda: now[0])
        cache.set("k", EnrichmentSnapshot())
        now[0] = 9.9
        assert cache.get("k") is not None
        now[0] = 10.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_oldest_evicted(self):
        cache = InMemoryFingerprintCache(max_entries=2)
        cache.set("a", EnrichmentSnapshot())
        cache.set("b", EnrichmentSnapshot())
        cache.set("c", EnrichmentSnapshot())
        assert cache.get("a") is None
        assert cache.get("b") is not None
        assert cache.get("c") is not None

    def test_clear(self):
        cache = InMemoryFingerprintCache()
        cache.set("a", EnrichmentSnapshot())
        cache.clear()
        assert len(cache) == 0


class TestModuleEnrich:
    def test_keyword_overrides(self):
        items = make_items(3)
        result = asyncio.run(enrich(
            items, FakeMarket(), batch_size=1, max_concurrent_batches=1,
            inter_round_delay=0, config=EnrichmentSettings(),
        ))
        assert result.succeeded == 3


class TestRateLimiter:
    def test_first_call_free(self):
        assert RateLimiter(60).wait() == 0.0

    def test_second_call_waits(self, monkeypatch):
        slept: list[float] = []
        monkeypatch.setattr(
            "src.price_intel.enrichment.rate_limiter.time.sleep", slept.append
        )
        limiter = RateLimiter(60)
        limiter.wait()
        delay = limiter.wait()
        assert delay > 0
        assert slept == [delay]
