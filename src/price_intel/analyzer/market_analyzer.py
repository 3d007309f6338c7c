"""Market analyzer: runs every statistical view over one item collection.

Usage:
    analyzer = MarketAnalyzer()
    analysis = analyzer.analyze(items)
    print(analysis.volatility.category_volatility)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from src.common.config import AnalyzerSettings, settings
from src.common.models import PriceItem

from .market_stats import (
    analyze_volatility,
    detect_seasonal_patterns,
    identify_competitive_categories,
    identify_correlated_suppliers,
    identify_pack_size_trends,
    identify_pricing_patterns,
)
from .models import AdvancedAnalysis

logger = logging.getLogger(__name__)


class MarketAnalyzer:
    """Stateless facade over the cross-supplier statistics.

    Holds configuration only; every call recomputes from the given items.
    """

    def __init__(self, config: AnalyzerSettings | None = None) -> None:
        self.config = config or settings.analyzer

    def analyze(
        self, items: Iterable[PriceItem], today: date | None = None
    ) -> AdvancedAnalysis:
        """Compute volatility, patterns, correlation, competition and trends."""
        items = list(items)
        volatility = analyze_volatility(items)
        analysis = AdvancedAnalysis(
            volatility=volatility,
            pricing_patterns=identify_pricing_patterns(
                items, self.config.psychological_endings
            ),
            seasonal_patterns=detect_seasonal_patterns(
                items, self.config.seasonal_calendar, today=today
            ),
            correlated_suppliers=identify_correlated_suppliers(
                items, min_overlap=self.config.min_correlation_overlap
            ),
            competitive_categories=identify_competitive_categories(items),
            pack_size_trends=identify_pack_size_trends(items),
        )
        logger.info(
            "Analyzed %d items: %d categories, %d suppliers, %d correlated pairs",
            len(items),
            len(volatility.category_volatility),
            len(volatility.supplier_volatility),
            len(analysis.correlated_suppliers),
        )
        return analysis
