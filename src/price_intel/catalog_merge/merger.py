"""Catalog merge adapter.

Reconciles classified (and possibly enriched) PriceItems against a
point-in-time catalog snapshot from the commerce platform.

Rules:
- lookup is by exact SKU
- matched items get platform references and ``is_matched=True``
- unmatched items flow through unchanged with ``is_matched=False``
- name, prices and status are never touched
- for duplicate catalog SKUs the first record in catalog order wins
- catalog rows that fail validation are skipped and reported by position

Items are copied, never mutated, so merging the same snapshot twice gives the
same output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Union

from pydantic import ValidationError

from src.common.models import CatalogRecord, PriceItem

from .models import MergeReport, MergeResult

logger = logging.getLogger(__name__)

CatalogEntry = Union[CatalogRecord, Mapping[str, Any]]

# PriceItem field <- CatalogRecord field
_REFERENCE_FIELDS = {
    "product_id": "product_id",
    "variant_id": "variant_id",
    "inventory_item_id": "inventory_item_id",
    "inventory_level": "inventory_level",
}


class CatalogMerger:
    """Attach platform identifiers to PriceItems by SKU.

    Usage:
        merger = CatalogMerger()
        merged = merger.merge(items, catalog)
        result = merger.reconcile(items, catalog)  # with a MergeReport
    """

    def merge(
        self, items: Iterable[PriceItem], catalog: Iterable[CatalogEntry]
    ) -> list[PriceItem]:
        """Return merged copies of ``items`` in input order."""
        return self.reconcile(items, catalog).items

    def reconcile(
        self, items: Iterable[PriceItem], catalog: Iterable[CatalogEntry]
    ) -> MergeResult:
        index, duplicates, invalid_rows = self._index_catalog(catalog)
        result = MergeResult(
            report=MergeReport(
                duplicate_catalog_skus=duplicates, invalid_catalog_rows=invalid_rows
            )
        )

        for item in items:
            result.report.total += 1
            record = index.get(item.sku.strip())
            if record is None:
                result.items.append(item.model_copy(update={"is_matched": False}, deep=True))
                result.report.unmatched_skus.append(item.sku)
                continue
            result.items.append(self._attach(item, record))
            result.report.matched += 1

        logger.info(
            "Catalog merge: %d/%d items matched (%.1f%%), %d unmatched",
            result.report.matched,
            result.report.total,
            result.report.match_rate,
            result.report.unmatched,
        )
        return result

    @staticmethod
    def _index_catalog(
        catalog: Iterable[CatalogEntry],
    ) -> tuple[dict[str, CatalogRecord], list[str], list[int]]:
        """Index catalog records by SKU, keeping the first of any duplicates.

        Rows that do not validate are logged and left out; their zero-based
        positions are returned alongside the duplicate SKUs.
        """
        index: dict[str, CatalogRecord] = {}
        duplicates: list[str] = []
        invalid_rows: list[int] = []
        for position, entry in enumerate(catalog):
            if isinstance(entry, CatalogRecord):
                record = entry
            else:
                try:
                    record = CatalogRecord.model_validate(entry)
                except ValidationError as exc:
                    logger.warning(
                        "Skipping invalid catalog record %d: %s",
                        position, exc.errors(include_url=False),
                    )
                    invalid_rows.append(position)
                    continue
            sku = record.sku.strip()
            if sku in index:
                if sku not in duplicates:
                    duplicates.append(sku)
                continue
            index[sku] = record

        if duplicates:
            logger.warning(
                "Catalog has %d duplicate SKU(s); first record kept for each: %s",
                len(duplicates), ", ".join(duplicates[:10]),
            )
        return index, duplicates, invalid_rows

    @staticmethod
    def _attach(item: PriceItem, record: CatalogRecord) -> PriceItem:
        update: dict[str, Any] = {"is_matched": True}
        for item_field, record_field in _REFERENCE_FIELDS.items():
            value = getattr(record, record_field)
            if getattr(item, item_field) in (None, "") and value not in (None, ""):
                update[item_field] = value
        return item.model_copy(update=update, deep=True)


def merge(items: Iterable[PriceItem], catalog: Iterable[CatalogEntry]) -> list[PriceItem]:
    """Merge items against a catalog snapshot (see CatalogMerger)."""
    return CatalogMerger().merge(items, catalog)
