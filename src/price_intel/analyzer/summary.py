"""Aggregate counts and impact over a classified item collection."""

from __future__ import annotations

from collections.abc import Iterable

from src.common.models import PriceItem, PriceStatus

from .models import AnalysisSummary


def summarize_items(items: Iterable[PriceItem]) -> AnalysisSummary:
    """Count items per status and sum their potential impact.

    Savings are the absolute summed impact of decreased items, losses the
    absolute summed impact of increased items.
    """
    summary = AnalysisSummary()
    savings = 0.0
    loss = 0.0

    for item in items:
        summary.total_items += 1
        summary.total_impact += item.potential_impact
        if item.status == PriceStatus.INCREASED:
            summary.increased_items += 1
            loss += item.potential_impact
        elif item.status == PriceStatus.DECREASED:
            summary.decreased_items += 1
            savings += item.potential_impact
        elif item.status == PriceStatus.DISCONTINUED:
            summary.discontinued_items += 1
        elif item.status == PriceStatus.NEW:
            summary.new_items += 1
        elif item.status == PriceStatus.ANOMALY:
            summary.anomaly_items += 1
        else:
            summary.unchanged_items += 1

    summary.potential_savings = abs(savings)
    summary.potential_loss = abs(loss)
    return summary
