"""Analyzer Module - volatility, correlation, competition and trend statistics."""

from .market_analyzer import MarketAnalyzer
from .market_stats import (
    analyze_volatility,
    competition_score,
    detect_seasonal_patterns,
    identify_competitive_categories,
    identify_correlated_suppliers,
    identify_pack_size_trends,
    identify_pricing_patterns,
    parse_pack_size,
    pearson_correlation,
)
from .models import AdvancedAnalysis, AnalysisSummary, CrossSupplierTrends
from .summary import summarize_items
from .trends import analyze_categories, analyze_suppliers, calculate_cross_supplier_trends

__all__ = [
    "AdvancedAnalysis",
    "AnalysisSummary",
    "CrossSupplierTrends",
    "MarketAnalyzer",
    "analyze_categories",
    "analyze_suppliers",
    "analyze_volatility",
    "calculate_cross_supplier_trends",
    "competition_score",
    "detect_seasonal_patterns",
    "identify_competitive_categories",
    "identify_correlated_suppliers",
    "identify_pack_size_trends",
    "identify_pricing_patterns",
    "parse_pack_size",
    "pearson_correlation",
    "summarize_items",
]
