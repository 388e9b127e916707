"""Validation engine orchestration."""

from .batch import BatchReport, run_batch
from .files import expand_patterns
from .report import format_result
from .schema import SchemaValidator
from .source import SourceDocument
from .validate import (
    ValidationOptions,
    validate_bytes,
    validate_document,
    validate_path,
)

__all__ = [
    "BatchReport",
    "run_batch",
    "expand_patterns",
    "format_result",
    "SchemaValidator",
    "SourceDocument",
    "ValidationOptions",
    "validate_bytes",
    "validate_document",
    "validate_path",
]
