"""Human-readable verdict lines."""

from __future__ import annotations

from typing import List

from ..diagnostics import Diagnostic, ValidationResult


def format_result(result: ValidationResult, *, show_warnings: bool = False) -> List[str]:
    """Render *result* as ``<path>: OK`` or one ``FAIL`` line per error."""

    lines: List[str] = []
    if result.ok:
        lines.append(f"{result.source}: OK")
    else:
        lines.extend(_line(result.source, "FAIL", error) for error in result.errors)
    if show_warnings:
        lines.extend(_line(result.source, "WARN", warning) for warning in result.warnings)
    return lines


def _line(source: str, label: str, diagnostic: Diagnostic) -> str:
    line = f"{source}: {label} — {diagnostic.message}"
    if diagnostic.location is not None:
        line += f" ({diagnostic.location})"
    return line
