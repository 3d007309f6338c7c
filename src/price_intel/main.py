"""CLI entry point for the price intelligence engine.

Usage:
    # Classify and analyze two price lists:
    python -m src.price_intel.main --old data/old.json --new data/new.json \
        --output data/exports/report.json

    # With market data enrichment and catalog reconciliation:
    python -m src.price_intel.main --old data/old.json --new data/new.json \
        --catalog data/catalog.json --market-data-url https://api.example.com \
        --csv data/exports/items.csv

Input files are JSON arrays of records (or an object with an ``items`` key).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from src.common.config import settings
from src.common.logging import setup_logging

from .enrichment import EnrichmentStatus, MarketDataClient
from .exporter import PriceListExporter
from .pipeline import PriceAnalysisPipeline

logger = logging.getLogger(__name__)


def _load_records(path: str) -> list[dict]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of records")
    return data


def _log_progress(completed: int, total: int) -> None:
    if completed == total or completed % 50 == 0:
        logger.info("  Enriched %d/%d", completed, total)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Supplier price list intelligence")
    parser.add_argument("--old", required=True, help="Previous price list (JSON)")
    parser.add_argument("--new", required=True, help="New price list (JSON)")
    parser.add_argument("--catalog", help="Platform catalog snapshot (JSON)")
    parser.add_argument(
        "--market-data-url",
        help="Market data API base URL (overrides MARKET_DATA_BASE_URL)",
    )
    parser.add_argument("--output", help="Output JSON report path")
    parser.add_argument("--csv", help="Output CSV path for classified items")
    parser.add_argument(
        "--anomaly-threshold",
        type=float,
        help=f"Anomaly threshold in percent (default: {settings.classifier.anomaly_threshold_pct})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, module_name="src")

    run_settings = settings.model_copy(deep=True)
    if args.anomaly_threshold is not None:
        run_settings.classifier.anomaly_threshold_pct = args.anomaly_threshold
    if args.market_data_url:
        run_settings.market_data.base_url = args.market_data_url

    old_records = _load_records(args.old)
    new_records = _load_records(args.new)
    catalog = _load_records(args.catalog) if args.catalog else None
    logger.info(
        "Loaded %d old and %d new records%s",
        len(old_records),
        len(new_records),
        f", {len(catalog)} catalog records" if catalog is not None else "",
    )

    pipeline = PriceAnalysisPipeline(run_settings)
    client = MarketDataClient(run_settings.market_data) if run_settings.market_data.base_url else None
    try:
        result = pipeline.run(
            old_records,
            new_records,
            fetch_one=client.fetch_one if client else None,
            catalog=catalog,
            on_progress=_log_progress,
        )
    finally:
        if client is not None:
            client.close()

    exporter = PriceListExporter()
    report = result.to_dict()
    if result.merge is not None:
        report["platform_updates"] = exporter.platform_updates(result.merge.items)

    if args.output:
        exporter.write_json(report, args.output)
    else:
        json.dump(report["summary"], sys.stdout, indent=2)
        sys.stdout.write("\n")

    if args.csv:
        exporter.write_csv(result.items, args.csv)

    summary = result.summary
    logger.info(
        "=== Summary: %d items | +%d -%d =%d | new %d | discontinued %d | anomalies %d ===",
        summary.total_items,
        summary.increased_items,
        summary.decreased_items,
        summary.unchanged_items,
        summary.new_items,
        summary.discontinued_items,
        summary.anomaly_items,
    )

    if result.enrichment is not None and result.enrichment.status == EnrichmentStatus.FAILED:
        logger.error("Market data enrichment failed for every item; report written without it")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
