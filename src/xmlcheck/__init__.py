"""Batch XML well-formedness and schema validator."""

from .diagnostics import Diagnostic, Location, ValidationResult, Verdict
from .engine import (
    SourceDocument,
    ValidationOptions,
    validate_bytes,
    validate_document,
    validate_path,
)

__version__ = "0.1.0"

__all__ = [
    "Diagnostic",
    "Location",
    "SourceDocument",
    "ValidationOptions",
    "ValidationResult",
    "Verdict",
    "validate_bytes",
    "validate_document",
    "validate_path",
]
