"""Batch enrichment orchestrator.

Runs an external market data lookup for every PriceItem with two
concurrency bounds:

- items are split into fixed-size batches (default 50)
- up to N batches run at once (default 5), each with a limited item fan-out
- a short pause separates successive rounds of batches

One item's failure never aborts its batch: the error is logged, the item is
left untouched and simply missing from the result. Only a run in which every
item failed is escalated to the caller, as EnrichmentFailedError.

Usage:
    orchestrator = BatchEnrichmentOrchestrator(client.fetch_one)
    result = await orchestrator.enrich(items, on_progress=print)
    if result.warning:
        logger.warning(result.warning)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, Union

from src.common.config import EnrichmentSettings, settings
from src.common.models import MarketData, PriceItem

from .cache import FingerprintCache, fingerprint_items
from .models import (
    EnrichmentFailedError,
    EnrichmentResult,
    EnrichmentSnapshot,
    EnrichmentStatus,
    ItemFailure,
)

logger = logging.getLogger(__name__)

FetchResult = Union[MarketData, Mapping[str, Any]]
FetchOne = Callable[[PriceItem], Union[Awaitable[FetchResult], FetchResult]]
ProgressCallback = Callable[[int, int], None]


class _RunState:
    """Accumulator shared by the tasks of one run.

    Only touched after an item's call has fully settled, from the event loop
    thread, so no lock is needed.
    """

    def __init__(self, total: int, on_progress: ProgressCallback | None) -> None:
        self.total = total
        self.completed = 0
        self.enriched: list[PriceItem] = []
        self.failures: list[ItemFailure] = []
        self._on_progress = on_progress

    def record_success(self, item: PriceItem) -> None:
        self.enriched.append(item)
        self._settle()

    def record_failure(self, item: PriceItem, error: BaseException) -> None:
        self.failures.append(ItemFailure(sku=item.sku, error=str(error) or type(error).__name__))
        self._settle()

    def _settle(self) -> None:
        self.completed += 1
        if self._on_progress is not None:
            self._on_progress(self.completed, self.total)


class BatchEnrichmentOrchestrator:
    """Fan-out/fan-in market data enrichment with bounded concurrency.

    Args:
        fetch_one: Async (or plain) callable returning MarketData, or a
            mapping that validates as MarketData, for one item.
        batch_size: Items per batch.
        max_concurrent_batches: Batches in flight per round.
        item_concurrency: Concurrent item lookups inside one batch.
        inter_round_delay: Seconds to pause between rounds.
        cache: Optional fingerprint cache; None disables memoization.
        config: Defaults for any bound not given explicitly.
    """

    def __init__(
        self,
        fetch_one: FetchOne,
        *,
        batch_size: int | None = None,
        max_concurrent_batches: int | None = None,
        item_concurrency: int | None = None,
        inter_round_delay: float | None = None,
        cache: FingerprintCache | None = None,
        config: EnrichmentSettings | None = None,
    ) -> None:
        config = config or settings.enrichment
        self.fetch_one = fetch_one
        self.batch_size = batch_size if batch_size is not None else config.batch_size
        self.max_concurrent_batches = (
            max_concurrent_batches if max_concurrent_batches is not None
            else config.max_concurrent_batches
        )
        self.item_concurrency = (
            item_concurrency if item_concurrency is not None else config.item_concurrency
        )
        self.inter_round_delay = (
            inter_round_delay
            if inter_round_delay is not None
            else config.inter_round_delay_seconds
        )
        self.cache = cache

        if self.batch_size < 1 or self.max_concurrent_batches < 1 or self.item_concurrency < 1:
            raise ValueError("batch size and concurrency bounds must be positive")

    async def enrich(
        self,
        items: Iterable[PriceItem],
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> EnrichmentResult:
        """Attach market data to every item that can be looked up.

        Args:
            items: Items to enrich. Successful items get ``market_data`` set
                in place; failed items are left as they were.
            on_progress: Called with (completed, total) after every item
                settles, success or failure.
            cancel_event: Checked between batch rounds; when set, no further
                rounds start and the run is reported as cancelled.

        Returns:
            EnrichmentResult with SUCCESS, PARTIAL or CANCELLED status.

        Raises:
            EnrichmentFailedError: Every item of a non-empty run failed.
        """
        items = list(items)
        total = len(items)
        if not items:
            logger.warning("No items to enrich")
            return EnrichmentResult(total=0)

        key = fingerprint_items(items) if self.cache is not None else None
        if key is not None:
            snapshot = self.cache.get(key)
            if snapshot is not None:
                logger.info("Fingerprint %s unchanged, reusing cached market data", key[:8])
                result = self._apply_snapshot(items, snapshot, key)
                if on_progress is not None:
                    on_progress(total, total)
                return self._finish(result)

        batches = [
            items[i:i + self.batch_size] for i in range(0, total, self.batch_size)
        ]
        rounds = [
            batches[i:i + self.max_concurrent_batches]
            for i in range(0, len(batches), self.max_concurrent_batches)
        ]
        logger.info(
            "Enriching %d items in %d batch(es) of up to %d, %d round(s)",
            total, len(batches), self.batch_size, len(rounds),
        )

        state = _RunState(total, on_progress)
        cancelled = False
        for round_index, round_batches in enumerate(rounds):
            if round_index > 0 and self.inter_round_delay > 0:
                await asyncio.sleep(self.inter_round_delay)
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.info(
                    "Enrichment cancelled before round %d/%d", round_index + 1, len(rounds)
                )
                break
            logger.debug(
                "Round %d/%d: %d batch(es)", round_index + 1, len(rounds), len(round_batches)
            )
            await asyncio.gather(*(self._run_batch(batch, state) for batch in round_batches))

        result = EnrichmentResult(
            items=state.enriched,
            total=total,
            failures=state.failures,
            fingerprint=key,
        )
        if cancelled:
            result.status = EnrichmentStatus.CANCELLED
            return self._finish(result)

        result = self._finish(result)
        if key is not None:
            self.cache.set(key, EnrichmentSnapshot(
                market_data={i.sku: i.market_data for i in state.enriched if i.market_data},
                failures={f.sku: f.error for f in state.failures},
            ))
        return result

    async def _run_batch(self, batch: list[PriceItem], state: _RunState) -> None:
        semaphore = asyncio.Semaphore(self.item_concurrency)
        await asyncio.gather(*(self._enrich_one(item, semaphore, state) for item in batch))

    async def _enrich_one(
        self, item: PriceItem, semaphore: asyncio.Semaphore, state: _RunState
    ) -> None:
        async with semaphore:
            try:
                market_data = await self._fetch(item)
            except Exception as exc:
                logger.warning("Market data lookup failed for %s: %s", item.sku, exc)
                state.record_failure(item, exc)
                return
        item.market_data = market_data
        state.record_success(item)

    async def _fetch(self, item: PriceItem) -> MarketData:
        result = self.fetch_one(item)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, MarketData):
            return result
        return MarketData.model_validate(result)

    @staticmethod
    def _apply_snapshot(
        items: list[PriceItem], snapshot: EnrichmentSnapshot, key: str
    ) -> EnrichmentResult:
        result = EnrichmentResult(total=len(items), from_cache=True, fingerprint=key)
        for item in items:
            market_data = snapshot.market_data.get(item.sku)
            if market_data is not None:
                item.market_data = market_data.model_copy(deep=True)
                result.items.append(item)
            else:
                error = snapshot.failures.get(item.sku, "no cached market data")
                result.failures.append(ItemFailure(sku=item.sku, error=error))
        return result

    @staticmethod
    def _finish(result: EnrichmentResult) -> EnrichmentResult:
        """Assign the aggregate status and escalate total failure."""
        if result.status == EnrichmentStatus.CANCELLED:
            logger.warning(result.warning)
            return result

        if result.total and not result.items:
            result.status = EnrichmentStatus.FAILED
            logger.error("Market data enrichment failed for all %d items", result.total)
            raise EnrichmentFailedError(result)

        if result.failures:
            result.status = EnrichmentStatus.PARTIAL
            logger.warning(result.warning)
        else:
            result.status = EnrichmentStatus.SUCCESS
            logger.info("Market data enrichment complete for %d items", result.total)
        return result


async def enrich(
    items: Iterable[PriceItem],
    fetch_one: FetchOne,
    on_progress: ProgressCallback | None = None,
    **kwargs: Any,
) -> EnrichmentResult:
    """Enrich items with a one-off orchestrator (see BatchEnrichmentOrchestrator)."""
    cancel_event = kwargs.pop("cancel_event", None)
    orchestrator = BatchEnrichmentOrchestrator(fetch_one, **kwargs)
    return await orchestrator.enrich(items, on_progress=on_progress, cancel_event=cancel_event)
