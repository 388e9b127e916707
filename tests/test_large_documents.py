"""Validation time grows linearly with document size."""

from __future__ import annotations

import time

from xmlcheck.diagnostics import Verdict
from xmlcheck.engine import validate_bytes


TIME_LIMIT = 15.0


def _document(repeat: int) -> bytes:
    body = '<e>café text here</e><f id="x&amp;y">more</f>\n' * repeat
    return ("<r>\n" + body + "</r>\n").encode("utf-8")


def test_one_megabyte_document_validates_quickly() -> None:
    data = _document(22_000)
    assert len(data) > 1_000_000

    started = time.perf_counter()
    result = validate_bytes(data, identifier="big.xml")
    elapsed = time.perf_counter() - started

    assert result.verdict is Verdict.VALID
    assert elapsed < TIME_LIMIT


def test_error_near_end_of_large_document_is_located() -> None:
    data = _document(22_000)[: -len("</r>\n")] + b"</x>"
    result = validate_bytes(data)

    error = result.errors[0]
    assert error.code == "E_MISMATCHED_TAG"
    assert error.location.offset == len(data) - len(b"</x>")
    assert error.location.line == 22_002
    assert error.location.column == 1
