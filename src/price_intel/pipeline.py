"""End-to-end price list analysis pipeline.

Orchestrates the complete flow:
old/new lists -> Classifier -> Analyzer -> (Enrichment) -> (Catalog merge)

Usage:
    pipeline = PriceAnalysisPipeline()
    result = pipeline.run(old_records, new_records, catalog=catalog)
    print(result.summary.potential_loss)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from src.common.config import Settings, settings as default_settings
from src.common.models import PriceItem

from .analyzer import (
    AdvancedAnalysis,
    AnalysisSummary,
    CrossSupplierTrends,
    MarketAnalyzer,
    calculate_cross_supplier_trends,
    summarize_items,
)
from .analyzer.models import CategoryBreakdown, SupplierBreakdown
from .analyzer.trends import analyze_categories, analyze_suppliers
from .catalog_merge import CatalogMerger, MergeResult
from .catalog_merge.merger import CatalogEntry
from .classifier import ClassificationResult, PriceListClassifier
from .classifier.classifier import RecordInput
from .enrichment import (
    BatchEnrichmentOrchestrator,
    EnrichmentFailedError,
    EnrichmentResult,
    InMemoryFingerprintCache,
)
from .enrichment.orchestrator import FetchOne, ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    classification: ClassificationResult
    summary: AnalysisSummary
    analysis: AdvancedAnalysis
    trends: CrossSupplierTrends | None
    categories: list[CategoryBreakdown]
    suppliers: list[SupplierBreakdown]
    enrichment: EnrichmentResult | None = None
    merge: MergeResult | None = None

    @property
    def items(self) -> list[PriceItem]:
        """Final items: merged when a catalog was given, else classified."""
        if self.merge is not None:
            return self.merge.items
        return self.classification.items

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "issues": [issue.to_dict() for issue in self.classification.issues],
            "analysis": self.analysis.to_dict(),
            "trends": self.trends.to_dict() if self.trends else None,
            "categories": [c.to_dict() for c in self.categories],
            "suppliers": [s.to_dict() for s in self.suppliers],
            "enrichment": self.enrichment.to_dict() if self.enrichment else None,
            "merge": self.merge.report.to_dict() if self.merge else None,
            "items": [item.model_dump(by_alias=True, mode="json") for item in self.items],
        }


class PriceAnalysisPipeline:
    """Chains the four components over one pair of price lists.

    Steps:
    1. Classify old vs new records
    2. Summaries, trends and statistics over the classified items
    3. Market data enrichment, when a fetcher is given
    4. Catalog merge, when a catalog snapshot is given

    The analysis in step 2 is computed before enrichment; it only reads
    prices and statuses, which enrichment never changes.

    A run where every enrichment call failed is not fatal: the FAILED
    EnrichmentResult is kept on the PipelineResult and the merge still runs.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings
        self.classifier = PriceListClassifier(config=self.settings.classifier)
        self.analyzer = MarketAnalyzer(config=self.settings.analyzer)
        self.merger = CatalogMerger()
        enrichment = self.settings.enrichment
        self.cache = (
            InMemoryFingerprintCache(
                max_entries=enrichment.cache_max_entries,
                ttl_seconds=enrichment.cache_ttl_seconds,
            )
            if enrichment.fingerprint_cache_enabled
            else None
        )

    async def run_async(
        self,
        old_records: Iterable[RecordInput],
        new_records: Iterable[RecordInput],
        fetch_one: FetchOne | None = None,
        catalog: Iterable[CatalogEntry] | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        today: date | None = None,
    ) -> PipelineResult:
        # Step 1: Classify
        logger.info("Step 1: Classifying price lists...")
        classification = self.classifier.classify(old_records, new_records)
        items = classification.items

        # Step 2: Analyze
        logger.info("Step 2: Analyzing %d items...", len(items))
        result = PipelineResult(
            classification=classification,
            summary=summarize_items(items),
            analysis=self.analyzer.analyze(items, today=today),
            trends=calculate_cross_supplier_trends(items),
            categories=analyze_categories(items),
            suppliers=analyze_suppliers(items),
        )

        # Step 3: Enrich (optional)
        if fetch_one is not None:
            logger.info("Step 3: Enriching with market data...")
            orchestrator = BatchEnrichmentOrchestrator(
                fetch_one, cache=self.cache, config=self.settings.enrichment
            )
            try:
                result.enrichment = await orchestrator.enrich(
                    items, on_progress=on_progress, cancel_event=cancel_event
                )
            except EnrichmentFailedError as exc:
                logger.warning("Continuing without market data: %s", exc)
                result.enrichment = exc.result
        else:
            logger.info("Step 3: Skipped enrichment (no market data source)")

        # Step 4: Merge (optional)
        if catalog is not None:
            logger.info("Step 4: Merging with catalog...")
            result.merge = self.merger.reconcile(items, catalog)
        else:
            logger.info("Step 4: Skipped catalog merge (no catalog)")

        logger.info(
            "Pipeline complete: %d items, potential loss %.2f, potential savings %.2f",
            result.summary.total_items,
            result.summary.potential_loss,
            result.summary.potential_savings,
        )
        return result

    def run(
        self,
        old_records: Iterable[RecordInput],
        new_records: Iterable[RecordInput],
        **kwargs: Any,
    ) -> PipelineResult:
        """Synchronous wrapper around ``run_async``."""
        return asyncio.run(self.run_async(old_records, new_records, **kwargs))
