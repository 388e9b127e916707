"""Byte-order-mark sniffing and document decoding."""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..diagnostics import Location
from .exceptions import ParseError
from .position import Cursor


_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

_SIGNATURES: Tuple[Tuple[bytes, str], ...] = (
    (b"<\x00\x00\x00", "utf-32-le"),
    (b"\x00\x00\x00<", "utf-32-be"),
    (b"<\x00?\x00", "utf-16-le"),
    (b"\x00<\x00?", "utf-16-be"),
)

_DECLARED_BYTES = re.compile(
    rb"<\?xml[ \t\r\n][^>]*?encoding[ \t\r\n]*=[ \t\r\n]*([\"'])(.*?)\1"
)
_DECLARED_TEXT = re.compile(
    r"<\?xml[ \t\r\n][^>]*?encoding[ \t\r\n]*=[ \t\r\n]*([\"'])(.*?)\1"
)
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_ASCII_PROBE = b"<?xml version='1.0'?><a b=\"&#60;\">\\u003c \\x3c</a>\t\r\n"


@dataclass(frozen=True)
class DecodedText:
    """Decoded document text with the information needed to map back to bytes."""

    text: str
    encoding: str
    bom_length: int = 0
    _mark: List[int] = field(default_factory=lambda: [0, 0], init=False, repr=False, compare=False)
    _line_starts: List[int] = field(default_factory=list, init=False, repr=False, compare=False)

    def byte_offset(self, char_offset: int) -> int:
        """Map a character offset to a byte offset in the raw input.

        The last mapped position is remembered so that a scan moving forward
        only encodes the text between consecutive lookups.
        """

        char_offset = min(max(char_offset, 0), len(self.text))
        mark_char, mark_byte = self._mark
        if char_offset >= mark_char:
            width = len(self.text[mark_char:char_offset].encode(self.encoding))
            byte = mark_byte + width
        else:
            width = len(self.text[char_offset:mark_char].encode(self.encoding))
            byte = mark_byte - width
        self._mark[:] = [char_offset, byte]
        return self.bom_length + byte

    def locate(self, line: int, column: int) -> Location:
        """Build a location from a 1-based line and column reported elsewhere."""

        line = max(line, 1)
        column = max(column, 1)
        if not self._line_starts:
            self._line_starts.append(0)
            self._line_starts.extend(match.end() for match in _LINE_BREAK.finditer(self.text))
        line_start = self._line_starts[min(line, len(self._line_starts)) - 1]
        char_offset = min(line_start + column - 1, len(self.text))
        return Location(line=line, column=column, offset=self.byte_offset(char_offset))


def decode_document(data: bytes, default_encoding: str = "utf-8") -> DecodedText:
    """Decode *data* using its BOM, its XML declaration or *default_encoding*."""

    bom_length, encoding = _sniff(data)
    body = data[bom_length:]

    if encoding is None or encoding == "utf-8":
        declared = _DECLARED_BYTES.match(body)
        if declared is not None:
            name = declared.group(2).decode("ascii", errors="replace")
            offset = bom_length + declared.start(2)
            family = _family(name, data, bom_length, offset)
            if family in ("utf-16", "utf-32"):
                raise ParseError(
                    code="E_ENCODING_CONFLICT",
                    message=f"document declares {name} but has no byte order mark",
                    location=_byte_location(data, bom_length, "latin-1", offset),
                )
            if encoding == "utf-8" and family != "utf-8":
                raise ParseError(
                    code="E_ENCODING_CONFLICT",
                    message=f"declared encoding '{name}' conflicts with the UTF-8 byte order mark",
                    location=_byte_location(data, bom_length, "latin-1", offset),
                )
            encoding = encoding or name
        encoding = encoding or default_encoding
        if not is_document_encoding(encoding, wide=False):
            raise ParseError(
                code="E_UNKNOWN_ENCODING",
                message=f"encoding '{encoding}' cannot carry an XML document",
                location=Location(1, 1, bom_length),
            )

    text = _decode(body, encoding, data, bom_length)
    decoded = DecodedText(text=text, encoding=encoding, bom_length=bom_length)

    if encoding.startswith(("utf-16", "utf-32")):
        declared_text = _DECLARED_TEXT.match(text)
        if declared_text is not None:
            name = declared_text.group(2)
            offset = declared_text.start(2)
            expected = encoding[:6]
            byte_offset = decoded.byte_offset(offset)
            if _family(name, data, bom_length, byte_offset) != expected:
                line, column = Cursor(text).locate(offset)
                raise ParseError(
                    code="E_ENCODING_CONFLICT",
                    message=f"declared encoding '{name}' conflicts with the {expected.upper()} byte order",
                    location=Location(line, column, byte_offset),
                )
    return decoded


def is_document_encoding(name: str, *, wide: bool = True) -> bool:
    """Return True if *name* is a text codec able to carry XML markup.

    UTF-16 and UTF-32 qualify when *wide* is set. Any other codec must decode
    ASCII markup unchanged, which rules out escape and transform codecs.
    """

    try:
        info = codecs.lookup(name)
    except LookupError:
        return False
    if not info._is_text_encoding:
        return False
    if info.name.startswith(("utf-16", "utf-32")):
        return wide
    try:
        return info.decode(_ASCII_PROBE)[0] == _ASCII_PROBE.decode("ascii")
    except (UnicodeError, ValueError):
        return False


def _sniff(data: bytes) -> Tuple[int, Optional[str]]:
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return len(bom), encoding
    for signature, encoding in _SIGNATURES:
        if data.startswith(signature):
            return 0, encoding
    return 0, None


def _family(name: str, data: bytes, bom_length: int, offset: int) -> str:
    try:
        canonical = codecs.lookup(name).name
    except LookupError:
        raise ParseError(
            code="E_UNKNOWN_ENCODING",
            message=f"unsupported encoding '{name}'",
            location=_byte_location(data, bom_length, "latin-1", offset),
        ) from None
    if not is_document_encoding(name):
        raise ParseError(
            code="E_UNKNOWN_ENCODING",
            message=f"encoding '{name}' cannot carry an XML document",
            location=_byte_location(data, bom_length, "latin-1", offset),
        )
    for family in ("utf-16", "utf-32"):
        if canonical.startswith(family):
            return family
    return canonical


def _decode(body: bytes, encoding: str, data: bytes, bom_length: int) -> str:
    try:
        return body.decode(encoding)
    except LookupError:
        raise ParseError(
            code="E_UNKNOWN_ENCODING",
            message=f"unsupported encoding '{encoding}'",
            location=Location(1, 1, 0),
        ) from None
    except UnicodeDecodeError as exc:
        offset = bom_length + exc.start
        raise ParseError(
            code="E_DECODE",
            message=f"byte sequence is not valid {encoding}",
            location=_byte_location(data, bom_length, encoding, offset),
        ) from exc


def _byte_location(data: bytes, bom_length: int, encoding: str, offset: int) -> Location:
    prefix = data[bom_length:offset].decode(encoding, errors="replace")
    cursor = Cursor(prefix)
    cursor.advance_to(len(prefix))
    return Location(line=cursor.line, column=cursor.column, offset=offset)
