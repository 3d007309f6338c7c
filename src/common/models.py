"""Shared Pydantic data models for the price intelligence engine.

These models define the data contracts between the classifier, the
analyzer, the enrichment orchestrator, the catalog merge adapter and the
exporters. All modules import from here.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), which is the export compatibility surface.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# === Enums ===

class PriceStatus(str, Enum):
    """Classification of one product's price movement."""
    INCREASED = "increased"
    DECREASED = "decreased"
    UNCHANGED = "unchanged"
    NEW = "new"
    DISCONTINUED = "discontinued"
    ANOMALY = "anomaly"


class PricePosition(str, Enum):
    """Where a price sits relative to competitor prices."""
    LOW = "low"
    AVERAGE = "average"
    HIGH = "high"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === Inputs ===

class RawPriceRecord(_CamelModel):
    """One row of a supplier price list as delivered by file ingestion."""
    sku: str
    name: str = ""
    price: float = Field(ge=0)
    category: str | None = None
    vendor: str | None = None
    supplier: str | None = None
    pack_size: str | None = None
    inventory: int | None = Field(default=None, ge=0)

    @field_validator("sku", mode="before")
    @classmethod
    def _strip_sku(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("sku must not be empty")
        return value


class CatalogRecord(_CamelModel):
    """A product variant as listed on the commerce platform.

    Platform exports often carry numeric identifiers; they are read as
    strings so a numeric SKU or variant id matches the price list text.
    """
    sku: str
    product_id: str
    variant_id: str
    inventory_item_id: str | None = None
    inventory_level: int | None = None
    title: str | None = None

    @field_validator("sku", "product_id", "variant_id", "inventory_item_id", mode="before")
    @classmethod
    def _ids_as_text(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
        return value


class MarketData(_CamelModel):
    """External market data attached to a PriceItem by enrichment."""
    price_position: PricePosition
    competitor_prices: list[float] = Field(default_factory=list)
    average_price: float | None = None
    min_price: float | None = None
    max_price: float | None = None


# === Core item ===

class PriceItem(_CamelModel):
    """One product's old/new price comparison record."""
    sku: str
    name: str = ""
    old_name: str | None = None
    category: str | None = None
    vendor: str | None = None
    supplier: str | None = None

    old_price: float | None = Field(default=None, ge=0)
    new_price: float | None = Field(default=None, ge=0)
    old_pack_size: str | None = None
    new_pack_size: str | None = None

    status: PriceStatus
    difference: float = 0.0
    percent_change: float | None = None
    potential_impact: float = 0.0
    anomaly_types: list[str] = Field(default_factory=list)

    # Added by enrichment
    market_data: MarketData | None = None

    # Added by catalog merge
    is_matched: bool = False
    product_id: str | None = None
    variant_id: str | None = None
    inventory_item_id: str | None = None
    inventory_level: int | None = None

    @model_validator(mode="after")
    def _require_one_price(self) -> PriceItem:
        if self.old_price is None and self.new_price is None:
            raise ValueError(f"item {self.sku!r} has neither an old nor a new price")
        return self

    @property
    def supplier_name(self) -> str | None:
        """Supplier code when present, otherwise the vendor."""
        return self.supplier or self.vendor

    @property
    def has_both_prices(self) -> bool:
        return self.old_price is not None and self.new_price is not None


def compute_percent_change(
    old_price: float | None, new_price: float | None
) -> float | None:
    """Percent change from old to new, or None when undefined."""
    if old_price is None or new_price is None or old_price == 0:
        return None
    return (new_price - old_price) / old_price * 100


def derive_status(
    old_price: float | None,
    new_price: float | None,
    anomaly_threshold_pct: float = 50.0,
) -> PriceStatus:
    """Derive the status of an item from its two prices alone.

    Anomalies take precedence over increased/decreased but never over
    new/discontinued.
    """
    if old_price is None and new_price is None:
        raise ValueError("at least one price is required")
    if old_price is None:
        return PriceStatus.NEW
    if new_price is None:
        return PriceStatus.DISCONTINUED

    percent = compute_percent_change(old_price, new_price)
    if percent is not None and abs(percent) > anomaly_threshold_pct:
        return PriceStatus.ANOMALY
    if new_price > old_price:
        return PriceStatus.INCREASED
    if new_price < old_price:
        return PriceStatus.DECREASED
    return PriceStatus.UNCHANGED
