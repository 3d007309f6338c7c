"""Supplier price list intelligence engine.

Modules:
    classifier: pairs old/new price lists by SKU and assigns statuses
    analyzer: summaries, trends and cross-supplier statistics
    enrichment: batched market data lookups with bounded concurrency
    catalog_merge: reconciliation with the commerce platform catalog
    exporter: CSV/JSON export and platform price updates
    pipeline: end-to-end orchestration
"""

__version__ = "0.1.0"
