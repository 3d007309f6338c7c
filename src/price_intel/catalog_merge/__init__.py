"""Catalog Merge Module - reconcile PriceItems with the platform catalog."""

from .merger import CatalogMerger, merge
from .models import MergeReport, MergeResult

__all__ = ["CatalogMerger", "MergeReport", "MergeResult", "merge"]
