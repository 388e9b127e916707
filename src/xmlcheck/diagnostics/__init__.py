"""Diagnostics produced while validating documents."""

from .collector import DiagnosticCollector
from .models import (
    Diagnostic,
    DiagnosticCategory,
    Location,
    Severity,
    ValidationResult,
    Verdict,
)

__all__ = [
    "Diagnostic",
    "DiagnosticCategory",
    "DiagnosticCollector",
    "Location",
    "Severity",
    "ValidationResult",
    "Verdict",
]
