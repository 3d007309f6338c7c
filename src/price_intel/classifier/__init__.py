"""Classifier Module - pairs old/new price lists by SKU and assigns statuses."""

from .classifier import PriceListClassifier, classify
from .models import (
    ClassificationResult,
    InputValidationError,
    IssueKind,
    ValidationIssue,
)

__all__ = [
    "ClassificationResult",
    "InputValidationError",
    "IssueKind",
    "PriceListClassifier",
    "ValidationIssue",
    "classify",
]
