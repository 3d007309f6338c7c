"""Cross-supplier statistics over a classified PriceItem collection.

Pure, read-only functions: none of them mutate items or keep state between
calls, and none of them raise on empty or degenerate input. Undefined values
(zero-variance correlation, groups without observations) are left out of
the result instead of being reported as NaN or zero.
"""

from __future__ import annotations

import logging
import math
import re
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from itertools import combinations
from statistics import fmean, pstdev, pvariance

from src.common.models import PriceItem

from .models import (
    CompetitiveCategory,
    PackSizeTrend,
    PricingPatterns,
    SeasonalPatterns,
    SupplierCorrelation,
    VolatilityReport,
)

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.]")


# --- Volatility ---

def analyze_volatility(items: Iterable[PriceItem]) -> VolatilityReport:
    """Population standard deviation of percent changes per category and supplier.

    Only items with both prices and a defined percent change contribute.
    A group without any such item is absent from the maps.
    """
    by_category: dict[str, list[float]] = defaultdict(list)
    by_supplier: dict[str, list[float]] = defaultdict(list)

    for item in items:
        if not item.has_both_prices or item.percent_change is None:
            continue
        if item.category:
            by_category[item.category].append(item.percent_change)
        if item.supplier_name:
            by_supplier[item.supplier_name].append(item.percent_change)

    return VolatilityReport(
        category_volatility={k: _spread(v) for k, v in by_category.items()},
        supplier_volatility={k: _spread(v) for k, v in by_supplier.items()},
    )


def _spread(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return pstdev(values)


# --- Pricing patterns ---

def identify_pricing_patterns(
    items: Iterable[PriceItem],
    psychological_endings: Iterable[int] = (99, 98, 95),
) -> PricingPatterns:
    """Share of new prices that are whole numbers or end in e.g. .99/.98/.95.

    Without any new price both shares are undefined and left as None.
    """
    prices = [item.new_price for item in items if item.new_price is not None]
    if not prices:
        return PricingPatterns()

    endings = set(psychological_endings)
    cents = [round(price * 100) % 100 for price in prices]
    rounded = sum(1 for c in cents if c == 0)
    psychological = sum(1 for c in cents if c in endings)

    return PricingPatterns(
        rounded_pricing=rounded / len(prices) * 100,
        psychological_pricing=psychological / len(prices) * 100,
        items_considered=len(prices),
    )


# --- Correlation ---

def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """Pearson correlation coefficient, or None when it is undefined.

    Undefined means fewer than two paired observations, mismatched lengths,
    or a constant series (zero variance).
    """
    n = len(xs)
    if n != len(ys) or n < 2:
        return None

    mean_x = fmean(xs)
    mean_y = fmean(ys)
    dx = [x - mean_x for x in xs]
    dy = [y - mean_y for y in ys]

    sxy = sum(a * b for a, b in zip(dx, dy))
    sxx = sum(a * a for a in dx)
    syy = sum(b * b for b in dy)
    if sxx == 0 or syy == 0:
        return None

    r = sxy / math.sqrt(sxx * syy)
    return max(-1.0, min(1.0, r))


def identify_correlated_suppliers(
    items: Iterable[PriceItem],
    min_overlap: int = 2,
) -> list[SupplierCorrelation]:
    """Correlate every pair of suppliers over the categories they share.

    Each supplier's vector holds its mean percent change per category.
    Pairs with fewer than ``min_overlap`` shared categories, or with a
    constant vector, are excluded rather than reported as zero.
    """
    changes: dict[str, dict[str, list[float]]] = defaultdict(lambda: defaultdict(list))
    for item in items:
        supplier = item.supplier_name
        if not supplier or not item.category or item.percent_change is None:
            continue
        changes[supplier][item.category].append(item.percent_change)

    vectors = {
        supplier: {category: fmean(values) for category, values in by_cat.items()}
        for supplier, by_cat in changes.items()
    }

    results: list[SupplierCorrelation] = []
    for a, b in combinations(sorted(vectors), 2):
        shared = sorted(vectors[a].keys() & vectors[b].keys())
        if len(shared) < min_overlap:
            continue
        r = pearson_correlation(
            [vectors[a][c] for c in shared],
            [vectors[b][c] for c in shared],
        )
        if r is None:
            continue
        results.append(SupplierCorrelation(pair=(a, b), correlation=r, overlap=len(shared)))

    results.sort(key=lambda c: (-abs(c.correlation), c.pair))
    logger.debug("Correlated %d supplier pair(s) out of %d suppliers", len(results), len(vectors))
    return results


# --- Competition ---

def competition_score(supplier_count: int, normalized_variance: float) -> float:
    """Grows with the number of suppliers, shrinks as their prices spread out."""
    if supplier_count <= 0:
        return 0.0
    return supplier_count / (1.0 + max(normalized_variance, 0.0))


def identify_competitive_categories(items: Iterable[PriceItem]) -> list[CompetitiveCategory]:
    """Score competitive pressure per category.

    ``price_variance`` is the population variance of the suppliers' mean new
    prices in the category. It is normalized by the squared mean (squared
    coefficient of variation) before scoring so categories with different
    price levels stay comparable.
    """
    prices: dict[str, dict[str, list[float]]] = defaultdict(lambda: defaultdict(list))
    for item in items:
        supplier = item.supplier_name
        if not supplier or not item.category or item.new_price is None:
            continue
        prices[item.category][supplier].append(item.new_price)

    results: list[CompetitiveCategory] = []
    for category, by_supplier in prices.items():
        supplier_prices = [fmean(values) for values in by_supplier.values()]
        count = len(supplier_prices)
        variance = pvariance(supplier_prices) if count > 1 else 0.0
        mean_price = fmean(supplier_prices)
        normalized = variance / mean_price ** 2 if mean_price > 0 else 0.0
        results.append(CompetitiveCategory(
            category=category,
            competition_score=competition_score(count, normalized),
            supplier_count=count,
            price_variance=variance,
        ))

    results.sort(key=lambda c: (-c.competition_score, c.category))
    return results


# --- Packaging size ---

def parse_pack_size(value: str | None) -> float | None:
    """Numeric part of a pack size ("100ml" -> 100.0), ignoring units."""
    if not value:
        return None
    digits = _NON_NUMERIC.sub("", value)
    if not digits:
        return None
    try:
        return float(digits)
    except ValueError:
        return None


def identify_pack_size_trends(items: Iterable[PriceItem]) -> list[PackSizeTrend]:
    """Per category, whether packs are shrinking or growing.

    Only items whose two pack sizes parse and differ vote. The trend is the
    majority of smaller vs larger; a tie is ``stable``. Confidence is the
    majority fraction of the voting items. Categories where no pack size
    changed are left out; unchanged packs are counted for reference only.
    """
    counts: dict[str, dict[str, int]] = defaultdict(
        lambda: {"smaller": 0, "larger": 0, "unchanged": 0}
    )
    for item in items:
        if not item.category:
            continue
        old_size = parse_pack_size(item.old_pack_size)
        new_size = parse_pack_size(item.new_pack_size)
        if old_size is None or new_size is None:
            continue
        if new_size < old_size:
            counts[item.category]["smaller"] += 1
        elif new_size > old_size:
            counts[item.category]["larger"] += 1
        else:
            counts[item.category]["unchanged"] += 1

    trends: list[PackSizeTrend] = []
    for category, c in sorted(counts.items()):
        changed = c["smaller"] + c["larger"]
        if not changed:
            continue
        if c["smaller"] > c["larger"]:
            trend = "smaller"
        elif c["larger"] > c["smaller"]:
            trend = "larger"
        else:
            trend = "stable"
        trends.append(PackSizeTrend(
            category=category,
            trend=trend,
            confidence=max(c["smaller"], c["larger"]) / changed,
            smaller=c["smaller"],
            larger=c["larger"],
            unchanged=c["unchanged"],
        ))
    return trends


# --- Seasonality ---

def detect_seasonal_patterns(
    items: Iterable[PriceItem],
    calendar: Mapping[str, Iterable[int]],
    today: date | None = None,
) -> SeasonalPatterns:
    """Bucket categories into high/low season from a static keyword calendar.

    A category is seasonal when its name contains a calendar keyword; it is
    in high season when the current month is one of that keyword's peaks.
    """
    month = (today or date.today()).month
    categories = sorted({item.category for item in items if item.category})

    result = SeasonalPatterns()
    for category in categories:
        key = category.casefold()
        peaks = [set(months) for keyword, months in calendar.items() if keyword.casefold() in key]
        if not peaks:
            continue
        result.categories_with_seasonal_pricing.append(category)
        if any(month in p for p in peaks):
            result.high_season_categories.append(category)
        else:
            result.low_season_categories.append(category)
    return result
