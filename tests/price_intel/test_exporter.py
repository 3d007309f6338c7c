"""Tests for the price list exporter."""

from __future__ import annotations

import csv
import json

import pytest

from src.common.models import MarketData, PricePosition, PriceItem, PriceStatus
from src.price_intel.exporter import CSV_COLUMNS, PriceListExporter


@pytest.fixture
def items() -> list[PriceItem]:
    return [
        PriceItem(
            sku="A1", name="Lotion", old_price=10, new_price=11.499,
            status=PriceStatus.INCREASED, difference=1.499, percent_change=14.99,
            potential_impact=17.988, anomaly_types=["name_change", "pack_size_change"],
            market_data=MarketData(price_position=PricePosition.HIGH, average_price=10.5),
            is_matched=True, product_id="p1", variant_id="v1",
        ),
        PriceItem(sku="B2", name="Soap", old_price=4, status=PriceStatus.DISCONTINUED,
                  potential_impact=-48, is_matched=True, variant_id="v2"),
        PriceItem(sku="C3", name="Mask", new_price=15, status=PriceStatus.NEW),
    ]


class TestRows:
    def test_camel_case_keys(self, items):
        row = PriceListExporter.to_rows(items)[0]
        for key in ("sku", "oldPrice", "newPrice", "percentChange", "potentialImpact",
                    "isMatched", "variantId", "marketData", "anomalyTypes"):
            assert key in row
        assert row["status"] == "increased"
        assert row["marketData"]["pricePosition"] == "high"

    def test_flat_row(self, items):
        row = PriceListExporter.to_flat_row(items[0])
        assert list(row) == CSV_COLUMNS
        assert row["anomalyTypes"] == "name_change;pack_size_change"
        assert row["pricePosition"] == "high"
        assert row["competitorAverage"] == 10.5
        assert row["difference"] == 1.5

    def test_flat_row_without_market_data(self, items):
        row = PriceListExporter.to_flat_row(items[2])
        assert row["pricePosition"] is None
        assert row["percentChange"] is None


class TestPlatformUpdates:
    def test_only_matched_priced_items(self, items):
        updates = PriceListExporter.platform_updates(items)
        assert updates == [{"sku": "A1", "variantId": "v1", "price": 11.5}]


class TestFiles:
    def test_write_csv(self, items, tmp_path):
        path = PriceListExporter().write_csv(items, tmp_path / "out" / "items.csv")
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 3
        assert rows[0]["sku"] == "A1"
        assert rows[1]["status"] == "discontinued"
        assert rows[1]["newPrice"] == ""

    def test_write_json_items(self, items, tmp_path):
        path = PriceListExporter().write_json(items, tmp_path / "items.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [row["sku"] for row in data["items"]] == ["A1", "B2", "C3"]

    def test_write_json_report(self, tmp_path):
        path = PriceListExporter().write_json({"summary": {"total_items": 0}}, tmp_path / "r.json")
        assert json.loads(path.read_text(encoding="utf-8")) == {"summary": {"total_items": 0}}
