"""Tests for the well-formedness scanner."""

from __future__ import annotations

import pytest

from xmlcheck.diagnostics import DiagnosticCollector, Verdict
from xmlcheck.engine import ValidationOptions, validate_bytes
from xmlcheck.scanner import ParseError, WellFormednessScanner


def check(text: str):
    return validate_bytes(text.encode("utf-8"), identifier="doc.xml")


def scan_error(data: bytes) -> ParseError:
    scanner = WellFormednessScanner(DiagnosticCollector())
    with pytest.raises(ParseError) as exc:
        scanner.scan(data)
    return exc.value


def test_balanced_document_is_valid() -> None:
    result = check("<a><b></b></a>")
    assert result.verdict is Verdict.VALID
    assert result.diagnostics == ()


def test_mismatched_closing_tag_names_both_tags() -> None:
    result = check("<a><b></a></b>")
    assert result.verdict is Verdict.PARSE_ERROR
    (error,) = result.errors
    assert error.code == "E_MISMATCHED_TAG"
    assert "</b>" in error.message
    assert "</a>" in error.message
    assert (error.location.line, error.location.column, error.location.offset) == (1, 7, 6)


def test_mismatch_points_back_at_unclosed_start_tag() -> None:
    result = check("<a><b></a></b>")
    (note,) = result.warnings
    assert note.code == "W_UNCLOSED_START_TAG"
    assert note.location.offset == 3


def test_empty_input_has_no_root_element() -> None:
    result = validate_bytes(b"")
    assert result.verdict is Verdict.PARSE_ERROR
    (error,) = result.errors
    assert error.message == "no root element"
    assert (error.location.line, error.location.column, error.location.offset) == (1, 1, 0)


def test_whitespace_and_comments_only_has_no_root_element() -> None:
    result = check("  \n<!-- nothing here -->\n")
    assert result.errors[0].code == "E_NO_ROOT"


def test_unclosed_tag_reported_at_start_tag() -> None:
    result = check("<a>\n  <b></b>\n")
    (error,) = result.errors
    assert error.code == "E_UNCLOSED_TAG"
    assert error.location.offset == 0


def test_locations_track_lines_and_columns() -> None:
    result = check("<a>\n  <b>\n</a>")
    error = result.errors[0]
    assert (error.location.line, error.location.column, error.location.offset) == (3, 1, 10)
    note = result.warnings[0]
    assert (note.location.line, note.location.column) == (2, 3)


def test_crlf_counts_as_single_line_break() -> None:
    result = check("<a>\r\n<b>\r\n</a>")
    error = result.errors[0]
    assert error.location.line == 3
    assert error.location.column == 1


def test_byte_offset_differs_from_column_for_multibyte_text() -> None:
    result = check("<a>é<b></a>")
    error = result.errors[0]
    assert error.location.column == 8
    assert error.location.offset == 8


def test_comments_and_cdata_are_not_scanned_for_tags() -> None:
    result = check("<a><!-- <b> </c> --><![CDATA[<d></e> & ]]></a>")
    assert result.verdict is Verdict.VALID


def test_byte_order_mark_is_skipped_but_counted_in_offsets() -> None:
    assert validate_bytes(b"\xef\xbb\xbf<a/>").verdict is Verdict.VALID
    result = validate_bytes(b"\xef\xbb\xbf<a>")
    error = result.errors[0]
    assert error.code == "E_UNCLOSED_TAG"
    assert error.location.offset == 3
    assert error.location.column == 1


def test_multiple_root_elements() -> None:
    result = check("<a/><b/>")
    assert result.errors[0].code == "E_MULTIPLE_ROOTS"


def test_closing_tag_after_root() -> None:
    result = check("<a></a></b>")
    assert result.errors[0].code == "E_UNEXPECTED_END_TAG"


@pytest.mark.parametrize(
    ("text", "offset"),
    [
        ("hello<a/>", 0),
        ("<a/>\n tail", 6),
    ],
)
def test_text_outside_root(text: str, offset: int) -> None:
    error = check(text).errors[0]
    assert error.code == "E_TEXT_OUTSIDE_ROOT"
    assert error.location.offset == offset


def test_entity_and_character_references() -> None:
    assert check("<a>&lt;&gt;&amp;&apos;&quot;&#65;&#x42;</a>").verdict is Verdict.VALID
    assert check("<a>&foo;</a>").errors[0].code == "E_UNDEFINED_ENTITY"
    assert check("<a>AT&T</a>").errors[0].code == "E_BAD_REFERENCE"
    assert check("<a>&#0;</a>").errors[0].code == "E_INVALID_CHAR_REF"


def test_internal_subset_entities_are_declared() -> None:
    result = check('<!DOCTYPE a [<!ENTITY foo "b>a\'r">]><a title="&foo;">&foo;</a>')
    assert result.verdict is Verdict.VALID
    assert result.diagnostics == ()


def test_external_dtd_entities_are_warnings_once() -> None:
    result = check('<!DOCTYPE a SYSTEM "a.dtd"><a>&foo;&foo;&bar;</a>')
    assert result.verdict is Verdict.VALID
    assert [w.code for w in result.warnings] == ["W_UNVERIFIED_ENTITY", "W_UNVERIFIED_ENTITY"]


def test_standalone_document_requires_declared_entities() -> None:
    result = check(
        '<?xml version="1.0" standalone="yes"?>'
        '<!DOCTYPE a SYSTEM "a.dtd"><a>&foo;</a>'
    )
    assert result.errors[0].code == "E_UNDEFINED_ENTITY"


def test_doctype_root_mismatch_is_a_warning() -> None:
    result = check("<!DOCTYPE b><a/>")
    assert result.verdict is Verdict.VALID
    assert result.warnings[0].code == "W_DOCTYPE_ROOT_MISMATCH"


def test_doctype_after_root_is_rejected() -> None:
    assert check("<a/><!DOCTYPE a>").errors[0].code == "E_MISPLACED_DOCTYPE"


def test_namespace_prefixes() -> None:
    assert check('<p:a xmlns:p="urn:x"><p:b p:c="1"/></p:a>').diagnostics == ()
    result = check("<p:a/>")
    assert result.verdict is Verdict.VALID
    assert result.warnings[0].code == "W_UNDECLARED_PREFIX"


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ('<a x="1" x="2"/>', "E_DUPLICATE_ATTRIBUTE"),
        ('<a x="1<"/>', "E_LT_IN_ATTRIBUTE"),
        ('<a x="1"y="2"/>', "E_MARKUP_SYNTAX"),
        ("<a x=1/>", "E_MARKUP_SYNTAX"),
        ('<a x="1/>', "E_UNTERMINATED_ATTRIBUTE"),
        ("<a <b/>", "E_UNTERMINATED_TAG"),
        ("<a", "E_UNTERMINATED_TAG"),
        ("<1a/>", "E_INVALID_NAME"),
        ("<a>\x01</a>", "E_INVALID_CHAR"),
        ("<a>]]></a>", "E_CDATA_END_IN_TEXT"),
        ("<a><!-- a -- b --></a>", "E_COMMENT_DOUBLE_HYPHEN"),
        ("<a><!-- open</a>", "E_UNTERMINATED_COMMENT"),
        ("<a><![CDATA[open</a>", "E_UNTERMINATED_CDATA"),
        ("<![CDATA[x]]><a/>", "E_CDATA_OUTSIDE_ROOT"),
        ("<a><!ELEMENT a ANY></a>", "E_BAD_MARKUP"),
        ("<a><?pi data</a>", "E_UNTERMINATED_PI"),
        ("<a><??></a>", "E_BAD_PI"),
        ('<a/><?xml version="1.0"?>', "E_RESERVED_PI"),
        ("<a><?XmL x?></a>", "E_RESERVED_PI"),
        ("<!DOCTYPE a><!DOCTYPE a><a/>", "E_DUPLICATE_DOCTYPE"),
        ("<!DOCTYPE a [<!ENTITY x 'y'>", "E_UNTERMINATED_DOCTYPE"),
        ("<!DOCTYPE><a/>", "E_BAD_DOCTYPE"),
        ("<!DOCTYPEa><a/>", "E_BAD_DOCTYPE"),
        ("<!DOCTYPE [<!ENTITY x 'y'>]><a/>", "E_BAD_DOCTYPE"),
        ("<!DOCTYPE a [<!-- open ]><a/>", "E_UNTERMINATED_DOCTYPE"),
        ("<a>&#99999999999;</a>", "E_INVALID_CHAR_REF"),
        ("<a>&#x110000;</a>", "E_INVALID_CHAR_REF"),
        ("<a>&#000000000000;</a>", "E_INVALID_CHAR_REF"),
    ],
)
def test_fatal_errors(text: str, code: str) -> None:
    result = check(text)
    assert result.verdict is Verdict.PARSE_ERROR
    assert result.errors[0].code == code


def test_processing_instructions_are_allowed_around_root() -> None:
    result = check('<?xml-stylesheet href="s.xsl"?><a><?pi some data?></a><?tail?>')
    assert result.verdict is Verdict.VALID


@pytest.mark.parametrize(
    "declaration",
    [
        '<?xml version="2.0"?>',
        '<?xml encoding="UTF-8" version="1.0"?>',
        '<?xml encoding="UTF-8"?>',
        '<?xml version="1.0" standalone="maybe"?>',
        '<?xml version="1.0" flavour="vanilla"?>',
        "<?xml?>",
    ],
)
def test_bad_xml_declarations(declaration: str) -> None:
    result = check(declaration + "<a/>")
    assert result.verdict is Verdict.PARSE_ERROR
    assert result.errors[0].code in ("E_BAD_DECLARATION", "E_MARKUP_SYNTAX")


def test_xml_declaration_must_come_first() -> None:
    result = check(' <?xml version="1.0"?><a/>')
    assert result.errors[0].code == "E_RESERVED_PI"


def test_xml_11_is_checked_with_a_warning() -> None:
    result = check("<?xml version='1.1'?><a/>")
    assert result.verdict is Verdict.VALID
    assert result.warnings[0].code == "W_XML_VERSION"


def test_declared_latin1_encoding() -> None:
    data = '<?xml version="1.0" encoding="ISO-8859-1"?><a>café</a>'.encode("latin-1")
    assert validate_bytes(data).verdict is Verdict.VALID


def test_utf16_with_byte_order_mark() -> None:
    data = '<?xml version="1.0" encoding="UTF-16"?><a>ü</a>'.encode("utf-16")
    assert validate_bytes(data).verdict is Verdict.VALID


def test_utf16_without_byte_order_mark_is_sniffed() -> None:
    data = '<?xml version="1.0"?><a/>'.encode("utf-16-le")
    assert validate_bytes(data).verdict is Verdict.VALID


def test_invalid_utf8_bytes_are_located() -> None:
    error = scan_error(b"<a>\xff</a>")
    assert error.code == "E_DECODE"
    assert (error.location.line, error.location.column, error.location.offset) == (1, 4, 3)


def test_unknown_declared_encoding() -> None:
    error = scan_error(b'<?xml version="1.0" encoding="klingon"?><a/>')
    assert error.code == "E_UNKNOWN_ENCODING"
    assert "klingon" in error.message


def test_declaration_conflicting_with_bom() -> None:
    error = scan_error(b'\xef\xbb\xbf<?xml version="1.0" encoding="ISO-8859-1"?><a/>')
    assert error.code == "E_ENCODING_CONFLICT"


def test_scan_summary_reports_root_and_element_count() -> None:
    scanner = WellFormednessScanner(DiagnosticCollector())
    summary = scanner.scan(b"<root><a/><b><c/></b></root>")
    assert summary.root == "root"
    assert summary.element_count == 4
    assert summary.encoding == "utf-8"


def test_character_references_with_leading_zeros() -> None:
    assert check("<a>&#0000000065;&#x000000042;&#x10FFFF;</a>").verdict is Verdict.VALID


def test_commented_out_entity_is_not_declared() -> None:
    result = check('<!DOCTYPE a [<!-- <!ENTITY foo "x"> -->]><a>&foo;</a>')
    assert result.verdict is Verdict.PARSE_ERROR
    assert result.errors[0].code == "E_UNDEFINED_ENTITY"


def test_processing_instructions_in_internal_subset() -> None:
    result = check("<!DOCTYPE a [<?pi don't?><!ENTITY foo 'bar'>]><a>&foo;</a>")
    assert result.verdict is Verdict.VALID
    assert result.diagnostics == ()


def test_entity_declared_after_subset_comment_with_quote() -> None:
    result = check("<!DOCTYPE a [<!-- it's > here --><!ENTITY foo 'bar'>]><a>&foo;</a>")
    assert result.verdict is Verdict.VALID


def test_parameter_reference_inside_subset_comment_is_ignored() -> None:
    result = check("<!DOCTYPE a [<!-- %ext; -->]><a>&foo;</a>")
    assert result.errors[0].code == "E_UNDEFINED_ENTITY"


def test_escape_codec_cannot_be_declared() -> None:
    error = scan_error(b'<?xml version="1.0" encoding="unicode_escape"?><a>\\u003c/a></a>')
    assert error.code == "E_UNKNOWN_ENCODING"


def test_escape_codec_cannot_be_the_default() -> None:
    result = validate_bytes(
        b"<a>\\u003c/a></a>",
        options=ValidationOptions(default_encoding="raw_unicode_escape"),
    )
    assert result.verdict is Verdict.PARSE_ERROR
    assert result.errors[0].code == "E_UNKNOWN_ENCODING"
