"""Public well-formedness scanner interface."""

from .encoding import DecodedText, decode_document, is_document_encoding
from .exceptions import ParseError
from .markup import Markup, MarkupKind, MarkupParser, MarkupSyntaxError
from .scanner import ScanSummary, WellFormednessScanner

__all__ = [
    "DecodedText",
    "decode_document",
    "is_document_encoding",
    "ParseError",
    "Markup",
    "MarkupKind",
    "MarkupParser",
    "MarkupSyntaxError",
    "ScanSummary",
    "WellFormednessScanner",
]
