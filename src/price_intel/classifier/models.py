"""Data models for price list classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.common.models import PriceItem, PriceStatus


class IssueKind(str, Enum):
    """Why an input record was rejected."""
    MISSING_SKU = "missing_sku"
    MALFORMED_RECORD = "malformed_record"
    DUPLICATE_SKU = "duplicate_sku"


@dataclass
class ValidationIssue:
    """A rejected input record (or set of records sharing a SKU)."""

    kind: IssueKind
    side: str  # old | new
    message: str
    sku: str | None = None
    row_indexes: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "side": self.side,
            "sku": self.sku,
            "row_indexes": list(self.row_indexes),
            "message": self.message,
        }


class InputValidationError(ValueError):
    """Raised when classification input contains rejected records."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        kinds = sorted({issue.kind.value for issue in issues})
        super().__init__(
            f"{len(issues)} invalid input record(s): {', '.join(kinds)}"
        )


@dataclass
class ClassificationResult:
    """Output of one classifier run: classified items plus rejected input."""

    items: list[PriceItem] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)

    @property
    def rejected_skus(self) -> set[str]:
        return {issue.sku for issue in self.issues if issue.sku}

    def by_sku(self) -> dict[str, PriceItem]:
        return {item.sku: item for item in self.items}

    def with_status(self, status: PriceStatus) -> list[PriceItem]:
        return [item for item in self.items if item.status == status]

    def raise_for_issues(self) -> None:
        """Raise InputValidationError if any record was rejected."""
        if self.issues:
            raise InputValidationError(self.issues)

    def to_dict(self) -> dict:
        return {
            "items": [item.model_dump(mode="json", by_alias=True) for item in self.items],
            "issues": [issue.to_dict() for issue in self.issues],
        }
