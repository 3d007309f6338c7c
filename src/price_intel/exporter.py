"""Price list exporter: tabular rows, CSV/JSON files and platform updates.

Rows use the camelCase field names of the PriceItem compatibility surface
(``sku``, ``oldPrice``, ``newPrice``, ``percentChange``, ``isMatched`` ...),
so downstream spreadsheets and sync jobs keep working unchanged.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from src.common.config import DATA_EXPORTS_DIR
from src.common.models import PriceItem, PriceStatus

logger = logging.getLogger(__name__)

# Flat column order for CSV; nested market data is spread into its own columns
CSV_COLUMNS = [
    "sku",
    "name",
    "oldName",
    "category",
    "vendor",
    "supplier",
    "oldPrice",
    "newPrice",
    "oldPackSize",
    "newPackSize",
    "status",
    "difference",
    "percentChange",
    "potentialImpact",
    "anomalyTypes",
    "pricePosition",
    "competitorAverage",
    "isMatched",
    "productId",
    "variantId",
    "inventoryItemId",
    "inventoryLevel",
]


class PriceListExporter:
    """Export classified PriceItems.

    Usage:
        exporter = PriceListExporter()
        exporter.write_csv(items, "data/exports/price_changes.csv")
        updates = exporter.platform_updates(merged_items)
    """

    @staticmethod
    def to_rows(items: Iterable[PriceItem]) -> list[dict[str, Any]]:
        """Serialize items to JSON-safe dicts keyed by camelCase names."""
        return [item.model_dump(by_alias=True, mode="json") for item in items]

    @staticmethod
    def to_flat_row(item: PriceItem) -> dict[str, Any]:
        row = item.model_dump(by_alias=True, mode="json", exclude={"market_data"})
        row["anomalyTypes"] = ";".join(item.anomaly_types)
        if row.get("percentChange") is not None:
            row["percentChange"] = round(row["percentChange"], 2)
        row["difference"] = round(row["difference"], 2)
        row["potentialImpact"] = round(row["potentialImpact"], 2)
        if item.market_data is not None:
            row["pricePosition"] = item.market_data.price_position.value
            row["competitorAverage"] = item.market_data.average_price
        else:
            row["pricePosition"] = None
            row["competitorAverage"] = None
        return {column: row.get(column) for column in CSV_COLUMNS}

    @staticmethod
    def platform_updates(items: Iterable[PriceItem]) -> list[dict[str, Any]]:
        """Price updates for matched items that still have a new price.

        Discontinued and unmatched items are skipped; prices are rounded to
        cents.
        """
        updates = []
        for item in items:
            if not item.is_matched or not item.variant_id:
                continue
            if item.new_price is None or item.status == PriceStatus.DISCONTINUED:
                continue
            updates.append({
                "sku": item.sku,
                "variantId": item.variant_id,
                "price": round(item.new_price, 2),
            })
        return updates

    def write_csv(self, items: Iterable[PriceItem], output_path: str | Path | None = None) -> Path:
        items = list(items)
        output_path = self._resolve_path(output_path, "csv")
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for item in items:
                writer.writerow(self.to_flat_row(item))
        logger.info("Exported %d items -> %s", len(items), output_path)
        return output_path

    def write_json(
        self,
        payload: dict[str, Any] | Iterable[PriceItem],
        output_path: str | Path | None = None,
    ) -> Path:
        """Write a report dict, or a list of items, as pretty JSON."""
        if not isinstance(payload, dict):
            payload = {"items": self.to_rows(payload)}
        output_path = self._resolve_path(output_path, "json")
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
        logger.info("Exported JSON report -> %s", output_path)
        return output_path

    @staticmethod
    def _resolve_path(output_path: str | Path | None, suffix: str) -> Path:
        if output_path is None:
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = DATA_EXPORTS_DIR / f"price_changes_{stamp}.{suffix}"
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        return output_path
