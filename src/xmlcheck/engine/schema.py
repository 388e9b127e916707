"""Optional schema conformance checks backed by lxml."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, List

from lxml import etree

from ..diagnostics import Diagnostic
from ..exceptions import SchemaError
from ..scanner import ScanSummary


logger = logging.getLogger(__name__)

SCHEMA_KINDS = {
    ".xsd": "xsd",
    ".dtd": "dtd",
    ".rng": "relaxng",
}


class SchemaValidator:
    """Validate well-formed documents against an XSD, DTD or RELAX NG file.

    lxml validators must not be shared between threads, so each worker thread
    compiles its own copy on first use.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        kind = SCHEMA_KINDS.get(self.path.suffix.lower())
        if kind is None:
            raise SchemaError(
                self.path,
                "unsupported schema type (expected .xsd, .dtd or .rng)",
            )
        self.kind = kind
        self._local = threading.local()
        self._compiled()

    def validate(self, content: bytes, summary: ScanSummary) -> List[Diagnostic]:
        validator = self._compiled()
        parser = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False)
        try:
            document = etree.fromstring(content, parser)
        except etree.XMLSyntaxError as exc:
            line, column = exc.position
            return [
                Diagnostic(
                    code="E_SCHEMA_PARSE",
                    severity="error",
                    message=f"schema check could not parse document: {exc.msg}",
                    location=summary.decoded.locate(line, column),
                    category="validation",
                )
            ]

        if validator.validate(document):
            return []

        diagnostics = [
            Diagnostic(
                code="E_SCHEMA",
                severity="error",
                message=entry.message,
                location=summary.decoded.locate(entry.line, entry.column),
                category="validation",
            )
            for entry in validator.error_log
        ]
        logger.debug("%s: %d schema violation(s)", self.path.name, len(diagnostics))
        return diagnostics

    def _compiled(self) -> Any:
        validator = getattr(self._local, "validator", None)
        if validator is None:
            validator = self._load()
            self._local.validator = validator
        return validator

    def _load(self) -> Any:
        source = str(self.path)
        try:
            if self.kind == "dtd":
                return etree.DTD(source)
            schema_doc = etree.parse(source)
            if self.kind == "xsd":
                return etree.XMLSchema(schema_doc)
            return etree.RelaxNG(schema_doc)
        except (etree.LxmlError, OSError) as exc:
            raise SchemaError(self.path, f"failed to load schema: {exc}") from exc
