"""Validate single documents."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..diagnostics import DiagnosticCollector, ValidationResult
from ..scanner import ParseError, WellFormednessScanner
from .schema import SchemaValidator
from .source import SourceDocument


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOptions:
    default_encoding: str = "utf-8"
    timeout: Optional[float] = None
    schema: Optional[SchemaValidator] = None


def validate_document(
    document: SourceDocument,
    options: ValidationOptions = ValidationOptions(),
    *,
    started_at: Optional[float] = None,
) -> ValidationResult:
    """Check *document* for well-formedness and, if configured, schema conformance."""

    collector = DiagnosticCollector()
    deadline = None
    if options.timeout is not None:
        deadline = (started_at if started_at is not None else time.monotonic()) + options.timeout

    scanner = WellFormednessScanner(
        collector,
        default_encoding=options.default_encoding,
        deadline=deadline,
    )
    try:
        summary = scanner.scan(document.content)
    except ParseError as exc:
        collector.fatal(exc.code, exc.message, exc.location)
        return collector.result(document.identifier)

    if options.schema is not None:
        collector.extend(options.schema.validate(document.content, summary))
    return collector.result(document.identifier)


def validate_bytes(
    data: bytes,
    identifier: str = "<memory>",
    options: ValidationOptions = ValidationOptions(),
) -> ValidationResult:
    return validate_document(SourceDocument.from_bytes(data, identifier), options)


def validate_path(
    path: Path,
    *,
    identifier: Optional[str] = None,
    options: ValidationOptions = ValidationOptions(),
) -> ValidationResult:
    """Validate the file at *path*; read failures become an ``E_IO`` result."""

    path = Path(path)
    identifier = identifier or path.as_posix()
    started_at = time.monotonic()
    try:
        document = SourceDocument.from_path(path, identifier)
    except OSError as exc:
        logger.warning("could not read %s: %s", path, exc)
        collector = DiagnosticCollector()
        reason = exc.strerror or str(exc)
        collector.fatal("E_IO", f"could not read file: {reason}", category="io")
        return collector.result(identifier)
    return validate_document(document, options, started_at=started_at)
