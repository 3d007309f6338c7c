"""Data models for catalog reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.common.models import PriceItem


@dataclass
class MergeReport:
    """Counts from one merge pass."""

    total: int = 0
    matched: int = 0
    unmatched_skus: list[str] = field(default_factory=list)
    duplicate_catalog_skus: list[str] = field(default_factory=list)
    # Zero-based positions of catalog rows rejected by validation
    invalid_catalog_rows: list[int] = field(default_factory=list)

    @property
    def unmatched(self) -> int:
        return len(self.unmatched_skus)

    @property
    def match_rate(self) -> float:
        """Matched share of items, 0-100."""
        if not self.total:
            return 0.0
        return round(self.matched / self.total * 100, 1)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "match_rate": self.match_rate,
            "unmatched_skus": self.unmatched_skus,
            "duplicate_catalog_skus": self.duplicate_catalog_skus,
            "invalid_catalog_rows": self.invalid_catalog_rows,
        }


@dataclass
class MergeResult:
    """Merged items (input order) plus the merge report."""

    items: list[PriceItem] = field(default_factory=list)
    report: MergeReport = field(default_factory=MergeReport)

    def matched_items(self) -> list[PriceItem]:
        return [item for item in self.items if item.is_matched]
