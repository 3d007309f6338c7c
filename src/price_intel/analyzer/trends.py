"""Cross-supplier trend projections.

Category and supplier breakdowns of increases. These views are always
rebuilt from the full item collection; nothing here is patched in place.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.common.models import PriceItem, PriceStatus

from .models import (
    CategoryBreakdown,
    CrossSupplierTrends,
    SupplierBreakdown,
    SupplierTrendStats,
)

UNKNOWN_SUPPLIER = "Unknown"


def calculate_cross_supplier_trends(items: Iterable[PriceItem]) -> CrossSupplierTrends | None:
    """Compare price increases of suppliers within each category.

    Returns None for an empty collection. ``avg_increase`` is the mean
    absolute difference over the supplier's increased items in the category.
    """
    items = list(items)
    if not items:
        return None

    suppliers: set[str] = set()
    categories: set[str] = set()
    brands: set[str] = set()
    for item in items:
        if item.supplier_name:
            suppliers.add(item.supplier_name)
        if item.category:
            categories.add(item.category)
        brand = item.name.split(" ")[0] if item.name else item.vendor
        if brand:
            brands.add(brand)

    comparisons: dict[str, dict[str, SupplierTrendStats]] = {}
    for category in sorted(categories):
        per_supplier: dict[str, SupplierTrendStats] = {}
        increase_totals: dict[str, float] = {}
        for item in items:
            if item.category != category:
                continue
            name = item.supplier_name or UNKNOWN_SUPPLIER
            stats = per_supplier.setdefault(name, SupplierTrendStats())
            stats.items += 1
            if item.status == PriceStatus.INCREASED:
                stats.increases += 1
                increase_totals[name] = increase_totals.get(name, 0.0) + item.difference

        for name, stats in per_supplier.items():
            if stats.increases:
                stats.avg_increase = increase_totals[name] / stats.increases
        comparisons[category] = per_supplier

    return CrossSupplierTrends(
        categories=sorted(categories),
        suppliers=sorted(suppliers),
        brands=sorted(brands),
        category_comparisons=comparisons,
    )


def analyze_categories(items: Iterable[PriceItem]) -> list[CategoryBreakdown]:
    """Per-category increase statistics, largest average increase first."""
    grouped: dict[str, list[PriceItem]] = {}
    for item in items:
        if item.category:
            grouped.setdefault(item.category, []).append(item)

    results: list[CategoryBreakdown] = []
    for category, members in grouped.items():
        increased = [i for i in members if i.status == PriceStatus.INCREASED]
        average = sum(i.difference for i in increased) / len(increased) if increased else 0.0
        results.append(CategoryBreakdown(
            category=category,
            total_items=len(members),
            increased_items=len(increased),
            average_increase=average,
            percent_increased=len(increased) / len(members) * 100,
        ))

    results.sort(key=lambda b: (-b.average_increase, b.category))
    return results


def analyze_suppliers(items: Iterable[PriceItem]) -> list[SupplierBreakdown]:
    """Per-supplier pricing strategy, highest share of increases first."""
    grouped: dict[str, list[PriceItem]] = {}
    for item in items:
        if item.supplier_name:
            grouped.setdefault(item.supplier_name, []).append(item)

    results: list[SupplierBreakdown] = []
    for supplier, members in grouped.items():
        increased = [i for i in members if i.status == PriceStatus.INCREASED]
        decreased = sum(1 for i in members if i.status == PriceStatus.DECREASED)
        discontinued = sum(1 for i in members if i.status == PriceStatus.DISCONTINUED)
        average = sum(i.difference for i in increased) / len(increased) if increased else 0.0
        results.append(SupplierBreakdown(
            supplier=supplier,
            total_items=len(members),
            increased=len(increased),
            decreased=decreased,
            discontinued=discontinued,
            average_increase=average,
            percent_increased=len(increased) / len(members) * 100,
        ))

    results.sort(key=lambda b: (-b.percent_increased, b.supplier))
    return results
