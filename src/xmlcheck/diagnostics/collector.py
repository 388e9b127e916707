"""Append-only diagnostic accumulation for one document."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .models import (
    Diagnostic,
    DiagnosticCategory,
    Location,
    ValidationResult,
    Verdict,
)


class DiagnosticCollector:
    """Collect diagnostics in insertion order and derive a verdict."""

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []
        self._fatal = False

    def add(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def warning(
        self,
        code: str,
        message: str,
        location: Optional[Location] = None,
        *,
        category: DiagnosticCategory = "parse",
    ) -> None:
        self.add(Diagnostic(code, "warning", message, location, category))

    def error(
        self,
        code: str,
        message: str,
        location: Optional[Location] = None,
        *,
        category: DiagnosticCategory = "validation",
    ) -> None:
        self.add(Diagnostic(code, "error", message, location, category))

    def fatal(
        self,
        code: str,
        message: str,
        location: Optional[Location] = None,
        *,
        category: DiagnosticCategory = "parse",
    ) -> None:
        """Record the error that stopped processing of the document."""

        self.add(Diagnostic(code, "error", message, location, category))
        self._fatal = True

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    @property
    def is_fatal(self) -> bool:
        return self._fatal

    @property
    def error_count(self) -> int:
        return sum(1 for diagnostic in self._diagnostics if diagnostic.is_error())

    @property
    def warning_count(self) -> int:
        return sum(1 for diagnostic in self._diagnostics if not diagnostic.is_error())

    @property
    def verdict(self) -> Verdict:
        if self._fatal:
            return Verdict.PARSE_ERROR
        if self.error_count > 0:
            return Verdict.INVALID
        return Verdict.VALID

    def result(self, source: str) -> ValidationResult:
        return ValidationResult(
            source=source,
            verdict=self.verdict,
            diagnostics=self.diagnostics,
        )
