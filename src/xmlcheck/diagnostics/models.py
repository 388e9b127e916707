"""Shared diagnostic and result types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Tuple


Severity = Literal["error", "warning"]
DiagnosticCategory = Literal["parse", "validation", "io"]


class Verdict(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    PARSE_ERROR = "parse-error"


@dataclass(frozen=True)
class Location:
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"line {self.line}, col {self.column}"


@dataclass(frozen=True)
class Diagnostic:
    code: str
    severity: Severity
    message: str
    location: Optional[Location] = None
    category: DiagnosticCategory = "parse"

    def is_error(self) -> bool:
        return self.severity == "error"

    def as_dict(self) -> dict:
        location = None
        if self.location is not None:
            location = {
                "line": self.location.line,
                "column": self.location.column,
                "offset": self.location.offset,
            }
        return {
            "code": self.code,
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "location": location,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single document.

    The verdict must agree with the diagnostics: ``invalid`` and
    ``parse-error`` require at least one error, ``valid`` allows warnings only.
    """

    source: str
    verdict: Verdict
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
        has_errors = any(diagnostic.is_error() for diagnostic in self.diagnostics)
        if has_errors == (self.verdict is Verdict.VALID):
            raise ValueError(
                f"verdict {self.verdict.value} contradicts diagnostics for {self.source}"
            )

    @property
    def ok(self) -> bool:
        return self.verdict is Verdict.VALID

    @property
    def errors(self) -> Tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_error())

    @property
    def warnings(self) -> Tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if not d.is_error())

    def as_dict(self) -> dict:
        return {
            "source": self.source,
            "verdict": self.verdict.value,
            "diagnostics": [diagnostic.as_dict() for diagnostic in self.diagnostics],
            "summary": {
                "errors": len(self.errors),
                "warnings": len(self.warnings),
            },
        }
