"""Data models for cross-supplier market analysis.

All models use @dataclass with to_dict() for JSON serialization.
Every structure here is a projection of a PriceItem collection and is
recomputed from scratch whenever the items change.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def _round_or_none(value: float | None, digits: int) -> float | None:
    return None if value is None else round(value, digits)


@dataclass
class AnalysisSummary:
    """Counts per status and summed impact over a PriceItem collection."""

    total_items: int = 0
    increased_items: int = 0
    decreased_items: int = 0
    discontinued_items: int = 0
    new_items: int = 0
    anomaly_items: int = 0
    unchanged_items: int = 0
    potential_savings: float = 0.0
    potential_loss: float = 0.0
    total_impact: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_items": self.total_items,
            "increased_items": self.increased_items,
            "decreased_items": self.decreased_items,
            "discontinued_items": self.discontinued_items,
            "new_items": self.new_items,
            "anomaly_items": self.anomaly_items,
            "unchanged_items": self.unchanged_items,
            "potential_savings": round(self.potential_savings, 2),
            "potential_loss": round(self.potential_loss, 2),
            "total_impact": round(self.total_impact, 2),
        }


@dataclass
class VolatilityReport:
    """Population standard deviation of percent changes per group."""

    category_volatility: dict[str, float] = field(default_factory=dict)
    supplier_volatility: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "category_volatility": dict(self.category_volatility),
            "supplier_volatility": dict(self.supplier_volatility),
        }


@dataclass
class PricingPatterns:
    """Share of new prices that are whole numbers or psychological endings."""

    # Percentages; None when no item has a new price
    rounded_pricing: float | None = None
    psychological_pricing: float | None = None
    items_considered: int = 0

    def to_dict(self) -> dict:
        return {
            "rounded_pricing": _round_or_none(self.rounded_pricing, 2),
            "psychological_pricing": _round_or_none(self.psychological_pricing, 2),
            "items_considered": self.items_considered,
        }


@dataclass
class SupplierCorrelation:
    """Pearson correlation of two suppliers' percent changes across categories."""

    pair: tuple[str, str]
    correlation: float
    overlap: int

    def to_dict(self) -> dict:
        return {
            "pair": list(self.pair),
            "correlation": round(self.correlation, 4),
            "overlap": self.overlap,
        }


@dataclass
class CompetitiveCategory:
    """Competitive pressure within one category."""

    category: str
    competition_score: float
    supplier_count: int
    price_variance: float

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "competition_score": round(self.competition_score, 4),
            "supplier_count": self.supplier_count,
            "price_variance": round(self.price_variance, 4),
        }


@dataclass
class PackSizeTrend:
    """Packaging size direction for one category."""

    category: str
    trend: str  # smaller | larger | stable
    confidence: float  # 0-1, majority fraction
    smaller: int = 0
    larger: int = 0
    unchanged: int = 0

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "trend": self.trend,
            "confidence": round(self.confidence, 3),
            "smaller": self.smaller,
            "larger": self.larger,
            "unchanged": self.unchanged,
        }


@dataclass
class SeasonalPatterns:
    """Coarse seasonal bucketing of categories from a static calendar."""

    categories_with_seasonal_pricing: list[str] = field(default_factory=list)
    high_season_categories: list[str] = field(default_factory=list)
    low_season_categories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "categories_with_seasonal_pricing": list(self.categories_with_seasonal_pricing),
            "high_season_categories": list(self.high_season_categories),
            "low_season_categories": list(self.low_season_categories),
        }


@dataclass
class AdvancedAnalysis:
    """Bundle of every statistical view over one item collection."""

    volatility: VolatilityReport
    pricing_patterns: PricingPatterns
    seasonal_patterns: SeasonalPatterns
    correlated_suppliers: list[SupplierCorrelation] = field(default_factory=list)
    competitive_categories: list[CompetitiveCategory] = field(default_factory=list)
    pack_size_trends: list[PackSizeTrend] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "volatility": self.volatility.to_dict(),
            "pricing_patterns": self.pricing_patterns.to_dict(),
            "seasonal_patterns": self.seasonal_patterns.to_dict(),
            "correlated_suppliers": [c.to_dict() for c in self.correlated_suppliers],
            "competitive_categories": [c.to_dict() for c in self.competitive_categories],
            "pack_size_trends": [t.to_dict() for t in self.pack_size_trends],
        }


# === Cross-supplier trend projections ===

@dataclass
class SupplierTrendStats:
    """One supplier's movement inside one category."""

    items: int = 0
    increases: int = 0
    avg_increase: float = 0.0

    def to_dict(self) -> dict:
        return {
            "items": self.items,
            "increases": self.increases,
            "avg_increase": round(self.avg_increase, 2),
        }


@dataclass
class CrossSupplierTrends:
    """Per category, a mapping of supplier name to its trend stats."""

    categories: list[str] = field(default_factory=list)
    suppliers: list[str] = field(default_factory=list)
    brands: list[str] = field(default_factory=list)
    category_comparisons: dict[str, dict[str, SupplierTrendStats]] = field(
        default_factory=dict
    )

    def to_dict(self) -> dict:
        return {
            "categories": list(self.categories),
            "suppliers": list(self.suppliers),
            "brands": list(self.brands),
            "category_comparisons": {
                category: {name: stats.to_dict() for name, stats in suppliers.items()}
                for category, suppliers in self.category_comparisons.items()
            },
        }


@dataclass
class CategoryBreakdown:
    """Increase statistics for one category."""

    category: str
    total_items: int
    increased_items: int
    average_increase: float
    percent_increased: float

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "total_items": self.total_items,
            "increased_items": self.increased_items,
            "average_increase": round(self.average_increase, 2),
            "percent_increased": round(self.percent_increased, 2),
        }


@dataclass
class SupplierBreakdown:
    """Pricing strategy indicators for one supplier."""

    supplier: str
    total_items: int
    increased: int
    decreased: int
    discontinued: int
    average_increase: float
    percent_increased: float

    def to_dict(self) -> dict:
        return {
            "supplier": self.supplier,
            "total_items": self.total_items,
            "increased": self.increased,
            "decreased": self.decreased,
            "discontinued": self.discontinued,
            "average_increase": round(self.average_increase, 2),
            "percent_increased": round(self.percent_increased, 2),
        }
