"""Tests for the catalog merge adapter."""

from __future__ import annotations

import pytest

from src.common.models import CatalogRecord, MarketData, PricePosition, PriceItem, PriceStatus
from src.price_intel.catalog_merge import CatalogMerger, merge


@pytest.fixture
def items() -> list[PriceItem]:
    return [
        PriceItem(sku="A1", name="Lotion", old_price=10, new_price=11, status=PriceStatus.INCREASED),
        PriceItem(sku="B2", name="Soap", old_price=4, new_price=4, status=PriceStatus.UNCHANGED),
        PriceItem(sku="C3", name="Mask", new_price=15, status=PriceStatus.NEW),
    ]


@pytest.fixture
def catalog() -> list[dict]:
    return [
        {"sku": "A1", "productId": "gid://p/1", "variantId": "gid://v/1",
         "inventoryItemId": "gid://i/1", "inventoryLevel": 5, "title": "Catalog Lotion"},
        {"sku": "C3", "productId": "gid://p/3", "variantId": "gid://v/3"},
    ]


class TestMerge:
    """Matching by SKU."""

    def test_matched_items_get_references(self, items, catalog):
        merged = {i.sku: i for i in merge(items, catalog)}
        a1 = merged["A1"]
        assert a1.is_matched is True
        assert a1.product_id == "gid://p/1"
        assert a1.variant_id == "gid://v/1"
        assert a1.inventory_item_id == "gid://i/1"
        assert a1.inventory_level == 5

    def test_unmatched_items_flow_through(self, items, catalog):
        merged = merge(items, catalog)
        assert [i.sku for i in merged] == ["A1", "B2", "C3"]
        b2 = merged[1]
        assert b2.is_matched is False
        assert b2.product_id is None
        assert b2.model_dump(exclude={"is_matched"}) == items[1].model_dump(exclude={"is_matched"})

    def test_never_overwrites_item_fields(self, items, catalog):
        a1 = merge(items, catalog)[0]
        assert a1.name == "Lotion"
        assert a1.old_price == 10
        assert a1.new_price == 11
        assert a1.status == PriceStatus.INCREASED

    def test_existing_references_kept(self, catalog):
        item = PriceItem(
            sku="A1", new_price=1, status=PriceStatus.NEW, product_id="existing"
        )
        merged = merge([item], catalog)[0]
        assert merged.product_id == "existing"
        assert merged.variant_id == "gid://v/1"

    def test_market_data_preserved(self, catalog):
        item = PriceItem(
            sku="A1", new_price=1, status=PriceStatus.NEW,
            market_data=MarketData(price_position=PricePosition.HIGH),
        )
        merged = merge([item], catalog)[0]
        assert merged.market_data.price_position == PricePosition.HIGH

    def test_inputs_not_mutated(self, items, catalog):
        before = [i.model_dump() for i in items]
        merge(items, catalog)
        assert [i.model_dump() for i in items] == before

    def test_accepts_catalog_records(self, items):
        catalog = [CatalogRecord(sku="B2", product_id="p2", variant_id="v2")]
        merged = merge(items, catalog)
        assert merged[1].is_matched is True
        assert merged[1].variant_id == "v2"

    def test_empty_catalog(self, items):
        merged = merge(items, [])
        assert all(not i.is_matched for i in merged)
        assert len(merged) == 3


class TestDuplicates:
    """First catalog record wins for a duplicated SKU."""

    def test_first_match_deterministic(self, items):
        catalog = [
            {"sku": "A1", "productId": "first", "variantId": "v-first"},
            {"sku": "A1", "productId": "second", "variantId": "v-second", "inventoryLevel": 9},
        ]
        result = CatalogMerger().reconcile(items, catalog)
        a1 = result.items[0]
        assert a1.product_id == "first"
        assert a1.variant_id == "v-first"
        # Nothing merged in from the second record
        assert a1.inventory_level is None
        assert result.report.duplicate_catalog_skus == ["A1"]


class TestReport:
    def test_counts(self, items, catalog):
        result = CatalogMerger().reconcile(items, catalog)
        assert result.report.total == 3
        assert result.report.matched == 2
        assert result.report.unmatched_skus == ["B2"]
        assert result.report.match_rate == pytest.approx(66.7)
        assert [i.sku for i in result.matched_items()] == ["A1", "C3"]

    def test_empty_items(self, catalog):
        result = CatalogMerger().reconcile([], catalog)
        assert result.report.match_rate == 0.0
        assert result.items == []
        assert result.report.to_dict()["unmatched"] == 0


class TestCatalogRows:
    """Platform exports with numeric ids and broken rows."""

    def test_numeric_ids_read_as_text(self):
        item = PriceItem(sku="12345", new_price=3, status=PriceStatus.NEW)
        catalog = [{"sku": 12345, "productId": 7001, "variantId": 9002, "inventoryItemId": 55}]
        merged = merge([item], catalog)[0]
        assert merged.is_matched is True
        assert merged.product_id == "7001"
        assert merged.variant_id == "9002"
        assert merged.inventory_item_id == "55"

    def test_invalid_row_skipped_and_reported(self, items):
        catalog = [
            {"sku": "A1", "productId": "p1"},  # no variantId
            {"sku": "B2", "productId": "p2", "variantId": "v2"},
        ]
        result = CatalogMerger().reconcile(items, catalog)
        assert [i.sku for i in result.items] == ["A1", "B2", "C3"]
        assert result.items[0].is_matched is False
        assert result.items[1].variant_id == "v2"
        assert result.report.invalid_catalog_rows == [0]
        assert result.report.to_dict()["invalid_catalog_rows"] == [0]
