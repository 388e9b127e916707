"""Tests for optional schema validation through lxml."""

from __future__ import annotations

from pathlib import Path

import pytest

from xmlcheck.diagnostics import Verdict
from xmlcheck.engine import SchemaValidator, ValidationOptions, run_batch, validate_bytes
from xmlcheck.exceptions import SchemaError


NOTE_XSD = """<?xml version="1.0"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:element name="note">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="to" type="xs:string"/>
      </xs:sequence>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""

NOTE_DTD = """<!ELEMENT note (to)>
<!ELEMENT to (#PCDATA)>
"""


@pytest.fixture()
def xsd_options(tmp_path: Path) -> ValidationOptions:
    schema_path = tmp_path / "note.xsd"
    schema_path.write_text(NOTE_XSD, encoding="utf-8")
    return ValidationOptions(schema=SchemaValidator(schema_path))


def test_conforming_document_is_valid(xsd_options: ValidationOptions) -> None:
    result = validate_bytes(b"<note><to>Ada</to></note>", options=xsd_options)
    assert result.verdict is Verdict.VALID


def test_schema_violation_is_invalid(xsd_options: ValidationOptions) -> None:
    result = validate_bytes(b"<note>\n  <from>Ada</from>\n</note>", options=xsd_options)
    assert result.verdict is Verdict.INVALID
    error = result.errors[0]
    assert error.code == "E_SCHEMA"
    assert error.category == "validation"
    assert error.location.line == 2
    assert "from" in error.message


def test_malformed_document_skips_schema(xsd_options: ValidationOptions) -> None:
    result = validate_bytes(b"<note><to>Ada</note>", options=xsd_options)
    assert result.verdict is Verdict.PARSE_ERROR
    assert [error.code for error in result.errors] == ["E_MISMATCHED_TAG"]


def test_dtd_schema(tmp_path: Path) -> None:
    schema_path = tmp_path / "note.dtd"
    schema_path.write_text(NOTE_DTD, encoding="utf-8")
    options = ValidationOptions(schema=SchemaValidator(schema_path))
    assert validate_bytes(b"<note><to>x</to></note>", options=options).ok
    assert validate_bytes(b"<note/>", options=options).verdict is Verdict.INVALID


def test_schema_is_usable_from_worker_threads(tmp_path: Path, xsd_options: ValidationOptions) -> None:
    names = []
    for index in range(6):
        body = "<note><to>x</to></note>" if index % 2 else "<note><cc/></note>"
        (tmp_path / f"n{index}.xml").write_text(body, encoding="utf-8")
        names.append(Path(f"n{index}.xml"))
    report = run_batch(names, root=tmp_path, options=xsd_options, workers=3)
    assert report.valid_count == 3
    assert report.invalid_count == 3


def test_unsupported_schema_suffix(tmp_path: Path) -> None:
    schema_path = tmp_path / "note.txt"
    schema_path.write_text("", encoding="utf-8")
    with pytest.raises(SchemaError) as exc:
        SchemaValidator(schema_path)
    assert "note.txt" in str(exc.value)


def test_missing_schema_file(tmp_path: Path) -> None:
    with pytest.raises(SchemaError):
        SchemaValidator(tmp_path / "absent.xsd")


def test_broken_schema_file(tmp_path: Path) -> None:
    schema_path = tmp_path / "broken.xsd"
    schema_path.write_text("<xs:schema", encoding="utf-8")
    with pytest.raises(SchemaError):
        SchemaValidator(schema_path)
