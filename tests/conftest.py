"""Shared test fixtures for the price intelligence engine."""

import sys
from pathlib import Path

import pytest

# Ensure src is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.config import ClassifierSettings, EnrichmentSettings, Settings
from src.common.models import PriceItem, PriceStatus


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def old_records() -> list[dict]:
    """Previous supplier price list."""
    return [
        {"sku": "A100", "name": "Rose Body Lotion", "price": 10.0,
         "category": "Skincare", "supplier": "ACME", "packSize": "200ml"},
        {"sku": "A200", "name": "Mint Shampoo", "price": 8.0,
         "category": "Haircare", "supplier": "ACME", "packSize": "250ml"},
        {"sku": "B100", "name": "Oud Eau de Parfum", "price": 40.0,
         "category": "Fragrance", "supplier": "Bolt"},
        {"sku": "B200", "name": "Cedar Soap", "price": 4.0,
         "category": "Skincare", "supplier": "Bolt"},
        {"sku": "C100", "name": "Argan Oil", "price": 20.0,
         "category": "Haircare", "supplier": "Cobalt"},
    ]


@pytest.fixture
def new_records() -> list[dict]:
    """Newly uploaded supplier price list."""
    return [
        {"sku": "A100", "name": "Rose Body Lotion", "price": 11.0,
         "category": "Skincare", "supplier": "ACME", "packSize": "180ml"},
        {"sku": "A200", "name": "Mint Shampoo", "price": 7.5,
         "category": "Haircare", "supplier": "ACME", "packSize": "250ml"},
        {"sku": "B100", "name": "Oud Eau de Parfum", "price": 40.0,
         "category": "Fragrance", "supplier": "Bolt"},
        {"sku": "B200", "name": "Cedar Soap", "price": 9.0,
         "category": "Skincare", "supplier": "Bolt"},
        {"sku": "D100", "name": "Clay Mask", "price": 15.99,
         "category": "Skincare", "supplier": "Dune"},
    ]


@pytest.fixture
def test_settings() -> Settings:
    """Settings independent of config/settings.yaml and the environment."""
    return Settings(
        classifier=ClassifierSettings(anomaly_threshold_pct=50.0, default_impact_units=12),
        enrichment=EnrichmentSettings(
            batch_size=2,
            max_concurrent_batches=2,
            item_concurrency=2,
            inter_round_delay_seconds=0,
        ),
    )


def make_item(
    sku: str,
    old_price: float | None,
    new_price: float | None,
    status: PriceStatus,
    **fields,
) -> PriceItem:
    """Build a PriceItem with deltas derived from the two prices."""
    difference = 0.0
    percent = None
    if old_price is not None and new_price is not None:
        difference = new_price - old_price
        if old_price:
            percent = difference / old_price * 100
    return PriceItem(
        sku=sku,
        old_price=old_price,
        new_price=new_price,
        status=status,
        difference=difference,
        percent_change=percent,
        **fields,
    )


@pytest.fixture
def item_factory():
    """Return the make_item helper."""
    return make_item
