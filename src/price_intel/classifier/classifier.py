"""Old/new price list classifier.

Pairs the previous and the newly uploaded supplier price list by SKU and
assigns every product a status plus numeric deltas:

- SKU only in the old list -> discontinued
- SKU only in the new list -> new
- SKU in both -> increased / decreased / unchanged, or anomaly when the
  absolute percent change exceeds the configured threshold

Rejected rows (missing SKU, invalid values, duplicate SKUs on one side) are
reported on the result and block only the SKUs they concern.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from src.common.config import ClassifierSettings, settings
from src.common.models import (
    PriceItem,
    PriceStatus,
    RawPriceRecord,
    compute_percent_change,
    derive_status,
)

from .models import ClassificationResult, IssueKind, ValidationIssue

logger = logging.getLogger(__name__)

RecordInput = RawPriceRecord | Mapping[str, Any]


class PriceListClassifier:
    """Classifies products across two snapshots of a supplier price list.

    Usage:
        classifier = PriceListClassifier()
        result = classifier.classify(old_records, new_records)
        for item in result.items:
            print(item.sku, item.status.value, item.percent_change)
    """

    def __init__(
        self,
        anomaly_threshold_pct: float | None = None,
        default_impact_units: int | None = None,
        config: ClassifierSettings | None = None,
    ) -> None:
        config = config or settings.classifier
        self.anomaly_threshold_pct = (
            anomaly_threshold_pct
            if anomaly_threshold_pct is not None
            else config.anomaly_threshold_pct
        )
        self.default_impact_units = (
            default_impact_units
            if default_impact_units is not None
            else config.default_impact_units
        )

    def classify(
        self,
        old_records: Iterable[RecordInput],
        new_records: Iterable[RecordInput],
        *,
        strict: bool = False,
    ) -> ClassificationResult:
        """Classify every SKU found in either list.

        Args:
            old_records: Previous price list rows.
            new_records: Newly uploaded price list rows.
            strict: Raise InputValidationError instead of reporting issues.

        Returns:
            ClassificationResult with items in old-list order followed by
            new-only items in new-list order.
        """
        old_by_sku, old_issues = self._validate_side(old_records, "old")
        new_by_sku, new_issues = self._validate_side(new_records, "new")
        issues = old_issues + new_issues

        # A SKU with any rejected row cannot be paired reliably on either side
        blocked = {issue.sku for issue in issues if issue.sku}
        for sku in blocked:
            old_by_sku.pop(sku, None)
            new_by_sku.pop(sku, None)

        items: list[PriceItem] = []
        for sku, old in old_by_sku.items():
            new = new_by_sku.get(sku)
            if new is None:
                items.append(self._build_discontinued(old))
            else:
                items.append(self._build_matched(old, new))

        for sku, new in new_by_sku.items():
            if sku not in old_by_sku:
                items.append(self._build_new(new))

        result = ClassificationResult(items=items, issues=issues)

        counts = Counter(item.status.value for item in items)
        logger.info(
            "Classified %d items (%s), %d rejected input issue(s)",
            len(items),
            ", ".join(f"{k}={v}" for k, v in sorted(counts.items())),
            len(issues),
        )
        for issue in issues:
            logger.warning("Rejected %s record: %s", issue.side, issue.message)

        if strict:
            result.raise_for_issues()
        return result

    # --- Validation ---

    @staticmethod
    def _validate_side(
        records: Iterable[RecordInput], side: str
    ) -> tuple[dict[str, RawPriceRecord], list[ValidationIssue]]:
        """Validate one side of the input and index it by SKU.

        Duplicate SKUs are rejected (every occurrence), never last-write-wins.
        """
        valid: dict[str, RawPriceRecord] = {}
        rows_by_sku: dict[str, list[int]] = {}
        issues: list[ValidationIssue] = []

        for index, record in enumerate(records):
            if isinstance(record, RawPriceRecord):
                parsed = record
            elif not isinstance(record, Mapping):
                issues.append(ValidationIssue(
                    kind=IssueKind.MALFORMED_RECORD,
                    side=side,
                    message=f"row {index}: expected a mapping, got {type(record).__name__}",
                    row_indexes=[index],
                ))
                continue
            else:
                raw_sku = record.get("sku")
                if raw_sku is None or (isinstance(raw_sku, str) and not raw_sku.strip()):
                    issues.append(ValidationIssue(
                        kind=IssueKind.MISSING_SKU,
                        side=side,
                        message=f"row {index}: missing sku",
                        row_indexes=[index],
                    ))
                    continue
                try:
                    parsed = RawPriceRecord.model_validate(record)
                except ValidationError as exc:
                    fields = ", ".join(
                        ".".join(str(p) for p in err["loc"]) for err in exc.errors()
                    )
                    issues.append(ValidationIssue(
                        kind=IssueKind.MALFORMED_RECORD,
                        side=side,
                        sku=str(raw_sku).strip(),
                        message=f"row {index}: invalid field(s) {fields}",
                        row_indexes=[index],
                    ))
                    continue

            rows_by_sku.setdefault(parsed.sku, []).append(index)
            valid.setdefault(parsed.sku, parsed)

        for sku, rows in rows_by_sku.items():
            if len(rows) > 1:
                issues.append(ValidationIssue(
                    kind=IssueKind.DUPLICATE_SKU,
                    side=side,
                    sku=sku,
                    message=f"sku {sku!r} appears {len(rows)} times (rows {rows})",
                    row_indexes=rows,
                ))
                del valid[sku]

        return valid, issues

    # --- Item construction ---

    def _build_matched(self, old: RawPriceRecord, new: RawPriceRecord) -> PriceItem:
        difference = new.price - old.price
        return PriceItem(
            sku=new.sku,
            name=new.name or old.name,
            old_name=old.name or None,
            category=new.category or old.category,
            vendor=new.vendor or old.vendor,
            supplier=new.supplier or old.supplier,
            old_price=old.price,
            new_price=new.price,
            old_pack_size=old.pack_size,
            new_pack_size=new.pack_size,
            status=derive_status(old.price, new.price, self.anomaly_threshold_pct),
            difference=difference,
            percent_change=compute_percent_change(old.price, new.price),
            potential_impact=difference * self._impact_units(new, old),
            anomaly_types=self._detect_secondary_anomalies(old, new),
        )

    def _build_discontinued(self, old: RawPriceRecord) -> PriceItem:
        return PriceItem(
            sku=old.sku,
            name=old.name,
            old_name=old.name or None,
            category=old.category,
            vendor=old.vendor,
            supplier=old.supplier,
            old_price=old.price,
            old_pack_size=old.pack_size,
            status=PriceStatus.DISCONTINUED,
            potential_impact=-(old.price * self._impact_units(old)),
        )

    @staticmethod
    def _build_new(new: RawPriceRecord) -> PriceItem:
        return PriceItem(
            sku=new.sku,
            name=new.name,
            category=new.category,
            vendor=new.vendor,
            supplier=new.supplier,
            new_price=new.price,
            new_pack_size=new.pack_size,
            status=PriceStatus.NEW,
        )

    def _impact_units(self, *records: RawPriceRecord) -> int:
        """Inventory of the first record that has one, else the default."""
        for record in records:
            if record.inventory is not None:
                return record.inventory
        return self.default_impact_units

    @staticmethod
    def _detect_secondary_anomalies(
        old: RawPriceRecord, new: RawPriceRecord
    ) -> list[str]:
        """Flag descriptive changes that ride along with a price change.

        These never alter the status; they are hints for manual review.
        """
        flags: list[str] = []
        if old.name and new.name and old.name.strip().casefold() != new.name.strip().casefold():
            flags.append("name_change")
        if old.pack_size and new.pack_size and old.pack_size.strip() != new.pack_size.strip():
            flags.append("pack_size_change")
        if old.supplier and new.supplier and old.supplier != new.supplier:
            flags.append("supplier_change")
        return flags


def classify(
    old_records: Iterable[RecordInput],
    new_records: Iterable[RecordInput],
    **kwargs: Any,
) -> ClassificationResult:
    """Classify two price lists with a default-configured classifier.

    Keyword arguments other than ``strict`` go to PriceListClassifier.
    """
    strict = kwargs.pop("strict", False)
    return PriceListClassifier(**kwargs).classify(old_records, new_records, strict=strict)
