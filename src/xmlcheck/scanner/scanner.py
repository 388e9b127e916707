"""Single-pass XML well-formedness scanner."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import FrozenSet, List, NoReturn, Optional, Set

from ..diagnostics import DiagnosticCollector, Location
from .chars import (
    ILLEGAL_CHAR,
    NON_WHITESPACE,
    PREDEFINED_ENTITIES,
    WHITESPACE,
    is_char,
    is_name,
)
from .encoding import DecodedText, decode_document
from .exceptions import ParseError
from .markup import Markup, MarkupKind, MarkupSyntaxError, get_markup_parser
from .position import Cursor


_TAG_BODY = re.compile(r"""(?:[^<>"']+|"[^"]*"|'[^']*')*""")
_REFERENCE = re.compile(
    r"&(?:#([0-9]+)|#x([0-9a-fA-F]+)|([^\s&;<>\"'#]+));"
)
_PI_TARGET = re.compile(r"[^ \t\r\n?]+")
_DOCTYPE_NAME = re.compile(r"[ \t\r\n]+([^ \t\r\n\[>]+)")
_EXTERNAL_ID = re.compile(r"\b(?:SYSTEM|PUBLIC)\b")
_ENTITY_DECL = re.compile(r"<!ENTITY[ \t\r\n]+([^\s%]+)")
_PARAMETER_REF = re.compile(r"%[^\s;%]+;")
_VERSION = re.compile(r"1\.[0-9]+")
_ENCODING_NAME = re.compile(r"[A-Za-z][A-Za-z0-9._-]*")
_DECLARATION_ORDER = ("version", "encoding", "standalone")


@dataclass(frozen=True)
class ScanSummary:
    """Facts gathered from a well-formed document."""

    root: str
    element_count: int
    encoding: str
    standalone: Optional[bool]
    decoded: DecodedText


@dataclass
class _OpenElement:
    name: str
    location: Location
    prefixes: FrozenSet[str]


@dataclass
class _Doctype:
    name: str
    entities: Set[str] = field(default_factory=set)
    has_external_subset: bool = False
    has_parameter_refs: bool = False


class WellFormednessScanner:
    """Check one document for XML 1.0 well-formedness.

    Fatal violations raise :class:`ParseError` at the first point of failure.
    Recoverable findings are recorded as warnings on *collector*. A scanner
    instance owns its nesting and position state; use one per document.
    """

    def __init__(
        self,
        collector: DiagnosticCollector,
        *,
        default_encoding: str = "utf-8",
        deadline: Optional[float] = None,
    ) -> None:
        self._collector = collector
        self._default_encoding = default_encoding
        self._deadline = deadline
        self._markup = get_markup_parser()

    def scan(self, data: bytes) -> ScanSummary:
        self._decoded = decode_document(data, self._default_encoding)
        self._text = self._decoded.text
        self._cursor = Cursor(self._text)
        self._stack: List[_OpenElement] = []
        self._root: Optional[str] = None
        self._root_closed = False
        self._elements = 0
        self._standalone: Optional[bool] = None
        self._doctype: Optional[_Doctype] = None
        self._warned_entities: Set[str] = set()

        self._run()

        assert self._root is not None
        return ScanSummary(
            root=self._root,
            element_count=self._elements,
            encoding=self._decoded.encoding,
            standalone=self._standalone,
            decoded=self._decoded,
        )

    # ------------------------------------------------------------------
    def _run(self) -> None:
        text = self._text
        length = len(text)
        pos = 0
        if text.startswith("<?xml") and text[5:6] in (WHITESPACE + "?"):
            pos = self._scan_declaration()
            self._cursor.advance_to(pos)

        while pos < length:
            self._check_deadline()
            markup_start = text.find("<", pos)
            if markup_start == -1:
                markup_start = length
            if markup_start > pos:
                self._scan_text(pos, markup_start)
                self._cursor.advance_to(markup_start)
            if markup_start == length:
                break
            pos = self._scan_markup(markup_start)
            self._cursor.advance_to(pos)

        if self._stack:
            innermost = self._stack[-1]
            raise ParseError(
                code="E_UNCLOSED_TAG",
                message=f"unclosed tag <{innermost.name}> at end of document",
                location=innermost.location,
            )
        if self._root is None:
            self._fail("E_NO_ROOT", "no root element", length)

    def _scan_markup(self, start: int) -> int:
        text = self._text
        if text.startswith("<!--", start):
            return self._scan_comment(start)
        if text.startswith("<![CDATA[", start):
            return self._scan_cdata(start)
        if text.startswith("<!DOCTYPE", start):
            return self._scan_doctype(start)
        if text.startswith("<!", start):
            self._fail("E_BAD_MARKUP", "unrecognized markup declaration", start)
        if text.startswith("<?", start):
            return self._scan_processing_instruction(start)
        if text.startswith("</", start):
            return self._scan_end_tag(start)
        return self._scan_start_tag(start)

    # ------------------------------------------------------------------
    def _scan_text(self, start: int, end: int) -> None:
        text = self._text
        if not self._stack:
            stray = NON_WHITESPACE.search(text, start, end)
            if stray is not None:
                where = "after" if self._root_closed else "before"
                self._fail(
                    "E_TEXT_OUTSIDE_ROOT",
                    f"text is not allowed {where} the root element",
                    stray.start(),
                )
            return
        self._check_chars(start, end)
        marker = text.find("]]>", start, end)
        if marker != -1:
            self._fail("E_CDATA_END_IN_TEXT", "']]>' is not allowed in character data", marker)
        self._check_references(start, end)

    def _scan_start_tag(self, start: int) -> int:
        end = self._tag_end(start)
        self._check_chars(start, end)
        markup = self._parse_markup(start, end, "start tag")
        if self._root_closed:
            self._fail(
                "E_MULTIPLE_ROOTS",
                f"element <{markup.name}> appears after the root element",
                start,
            )
        self._check_name(markup.name, start + markup.name_offset)

        text = self._text
        seen: Set[str] = set()
        declared: Set[str] = set()
        for attribute in markup.attributes:
            self._check_name(attribute.name, start + attribute.offset)
            if attribute.name in seen:
                self._fail(
                    "E_DUPLICATE_ATTRIBUTE",
                    f"duplicate attribute '{attribute.name}' on <{markup.name}>",
                    start + attribute.offset,
                )
            seen.add(attribute.name)
            value_start = start + attribute.value_offset
            value_end = value_start + len(attribute.value)
            lt = text.find("<", value_start, value_end)
            if lt != -1:
                self._fail("E_LT_IN_ATTRIBUTE", "'<' is not allowed in attribute values", lt)
            self._check_references(value_start, value_end)
            if attribute.name.startswith("xmlns:"):
                declared.add(attribute.name[len("xmlns:"):])

        inherited = self._stack[-1].prefixes if self._stack else frozenset()
        prefixes = inherited | declared
        self._check_prefix(markup.name, start + markup.name_offset, prefixes)
        for attribute in markup.attributes:
            self._check_prefix(attribute.name, start + attribute.offset, prefixes)

        location = self._location(start)
        if self._root is None:
            self._root = markup.name
            if self._doctype is not None and self._doctype.name != markup.name:
                self._collector.warning(
                    "W_DOCTYPE_ROOT_MISMATCH",
                    f"DOCTYPE declares root <{self._doctype.name}> but the document root is <{markup.name}>",
                    location,
                )
        self._elements += 1

        if markup.kind is MarkupKind.EMPTY:
            if not self._stack:
                self._root_closed = True
        else:
            self._stack.append(_OpenElement(markup.name, location, prefixes))
        return end

    def _scan_end_tag(self, start: int) -> int:
        end = self._tag_end(start)
        self._check_chars(start, end)
        markup = self._parse_markup(start, end, "end tag")
        if not self._stack:
            if self._root_closed:
                message = f"closing tag </{markup.name}> appears after the root element"
            else:
                message = f"closing tag </{markup.name}> has no matching start tag"
            self._fail("E_UNEXPECTED_END_TAG", message, start)

        innermost = self._stack[-1]
        if markup.name != innermost.name:
            self._collector.warning(
                "W_UNCLOSED_START_TAG",
                f"start tag <{innermost.name}> has no matching end tag",
                innermost.location,
            )
            self._fail(
                "E_MISMATCHED_TAG",
                f"mismatched closing tag: expected </{innermost.name}> "
                f"(opened at {innermost.location}) but found </{markup.name}>",
                start,
            )
        self._stack.pop()
        if not self._stack:
            self._root_closed = True
        return end

    def _scan_comment(self, start: int) -> int:
        text = self._text
        hyphens = text.find("--", start + 4)
        if hyphens == -1:
            self._fail("E_UNTERMINATED_COMMENT", "comment is not closed", start)
        if text[hyphens + 2 : hyphens + 3] != ">":
            self._fail(
                "E_COMMENT_DOUBLE_HYPHEN",
                "'--' is not allowed inside a comment",
                hyphens,
            )
        end = hyphens + 3
        self._check_chars(start, end)
        return end

    def _scan_cdata(self, start: int) -> int:
        if not self._stack:
            self._fail(
                "E_CDATA_OUTSIDE_ROOT",
                "CDATA section is not allowed outside the root element",
                start,
            )
        close = self._text.find("]]>", start + len("<![CDATA["))
        if close == -1:
            self._fail("E_UNTERMINATED_CDATA", "CDATA section is not closed", start)
        end = close + 3
        self._check_chars(start, end)
        return end

    def _scan_processing_instruction(self, start: int) -> int:
        text = self._text
        close = text.find("?>", start + 2)
        if close == -1:
            self._fail("E_UNTERMINATED_PI", "processing instruction is not closed", start)
        target = _PI_TARGET.match(text, start + 2, close)
        if target is None:
            self._fail("E_BAD_PI", "processing instruction requires a target", start + 2)
        if target.end() < close and text[target.end()] not in WHITESPACE:
            self._fail(
                "E_BAD_PI",
                "processing instruction target must be followed by whitespace",
                target.end(),
            )
        name = target.group(0)
        self._check_name(name, target.start())
        if name.lower() == "xml":
            if name == "xml":
                message = "XML declaration is only allowed at the start of the document"
            else:
                message = f"processing instruction target '{name}' is reserved"
            self._fail("E_RESERVED_PI", message, start)
        end = close + 2
        self._check_chars(start, end)
        return end

    def _scan_doctype(self, start: int) -> int:
        if self._root is not None:
            self._fail(
                "E_MISPLACED_DOCTYPE",
                "DOCTYPE declaration must appear before the root element",
                start,
            )
        if self._doctype is not None:
            self._fail("E_DUPLICATE_DOCTYPE", "only one DOCTYPE declaration is allowed", start)

        text = self._text
        head = _DOCTYPE_NAME.match(text, start + len("<!DOCTYPE"))
        if head is None:
            self._fail(
                "E_BAD_DOCTYPE",
                "DOCTYPE declaration requires a root element name",
                start + len("<!DOCTYPE"),
            )
        self._check_name(head.group(1), head.start(1))

        quote: Optional[str] = None
        declarations: List[str] = []
        segment_start = 0
        subset_start: Optional[int] = None
        subset_end: Optional[int] = None
        end: Optional[int] = None
        index = head.end()
        while index < len(text):
            char = text[index]
            if quote is not None:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif subset_start is not None and subset_end is None:
                skipped = None
                if text.startswith("<!--", index):
                    skipped = ("-->", index + 4)
                elif text.startswith("<?", index):
                    skipped = ("?>", index + 2)
                if skipped is not None:
                    close = text.find(skipped[0], skipped[1])
                    if close == -1:
                        break
                    declarations.append(text[segment_start:index])
                    index = segment_start = close + len(skipped[0])
                    continue
                if char == "]":
                    subset_end = index
                    declarations.append(text[segment_start:index])
            elif char == "[" and subset_start is None:
                subset_start = segment_start = index + 1
            elif char == ">":
                end = index + 1
                break
            index += 1
        if end is None:
            self._fail("E_UNTERMINATED_DOCTYPE", "DOCTYPE declaration is not closed", start)

        self._check_chars(start, end)
        external_end = subset_start - 1 if subset_start is not None else end - 1
        doctype = _Doctype(name=head.group(1))
        doctype.has_external_subset = _EXTERNAL_ID.search(text, head.end(), external_end) is not None
        if subset_start is not None and subset_end is not None:
            subset = " ".join(declarations)
            doctype.entities = set(_ENTITY_DECL.findall(subset))
            doctype.has_parameter_refs = _PARAMETER_REF.search(subset) is not None
        self._doctype = doctype
        return end

    def _scan_declaration(self) -> int:
        close = self._text.find("?>")
        if close == -1:
            self._fail("E_UNTERMINATED_PI", "XML declaration is not closed", 0)
        end = close + 2
        self._check_chars(0, end)
        markup = self._parse_markup(0, end, "XML declaration")

        values = {}
        for attribute in markup.attributes:
            if attribute.name not in _DECLARATION_ORDER:
                self._fail(
                    "E_BAD_DECLARATION",
                    f"unknown pseudo-attribute '{attribute.name}' in XML declaration",
                    attribute.offset,
                )
            if attribute.name in values:
                self._fail(
                    "E_BAD_DECLARATION",
                    f"duplicate pseudo-attribute '{attribute.name}' in XML declaration",
                    attribute.offset,
                )
            values[attribute.name] = attribute

        present = [name for name in _DECLARATION_ORDER if name in values]
        if [attribute.name for attribute in markup.attributes] != present:
            self._fail(
                "E_BAD_DECLARATION",
                "XML declaration pseudo-attributes must appear in the order version, encoding, standalone",
                0,
            )
        version = values.get("version")
        if version is None:
            self._fail("E_BAD_DECLARATION", "XML declaration requires a version", 0)
        if not _VERSION.fullmatch(version.value):
            self._fail(
                "E_BAD_DECLARATION",
                f"unsupported XML version '{version.value}'",
                version.value_offset,
            )
        if version.value != "1.0":
            self._collector.warning(
                "W_XML_VERSION",
                f"XML {version.value} document checked with XML 1.0 rules",
                self._location(version.value_offset),
            )
        encoding = values.get("encoding")
        if encoding is not None and not _ENCODING_NAME.fullmatch(encoding.value):
            self._fail(
                "E_BAD_DECLARATION",
                f"invalid encoding name '{encoding.value}'",
                encoding.value_offset,
            )
        standalone = values.get("standalone")
        if standalone is not None:
            if standalone.value not in ("yes", "no"):
                self._fail(
                    "E_BAD_DECLARATION",
                    "standalone must be 'yes' or 'no'",
                    standalone.value_offset,
                )
            self._standalone = standalone.value == "yes"
        return end

    # ------------------------------------------------------------------
    def _tag_end(self, start: int) -> int:
        text = self._text
        end = _TAG_BODY.match(text, start + 1).end()
        if end >= len(text):
            self._fail("E_UNTERMINATED_TAG", "unexpected end of document inside a tag", start)
        char = text[end]
        if char == ">":
            return end + 1
        if char in "\"'":
            self._fail("E_UNTERMINATED_ATTRIBUTE", "attribute value is not closed", end)
        self._fail("E_UNTERMINATED_TAG", "tag is not closed before the next '<'", end)

    def _parse_markup(self, start: int, end: int, what: str) -> Markup:
        try:
            return self._markup.parse(self._text[start:end], what)
        except MarkupSyntaxError as exc:
            self._fail("E_MARKUP_SYNTAX", exc.detail, start + exc.offset)

    def _check_references(self, start: int, end: int) -> None:
        text = self._text
        amp = text.find("&", start, end)
        while amp != -1:
            match = _REFERENCE.match(text, amp, end)
            if match is None:
                self._fail(
                    "E_BAD_REFERENCE",
                    "'&' must start an entity or character reference",
                    amp,
                )
            decimal, hexadecimal, name = match.groups()
            if name is not None:
                self._check_entity(name, amp)
            else:
                digits = (decimal or hexadecimal).lstrip("0")
                if len(digits) > 7:
                    code_point = -1
                elif decimal is not None:
                    code_point = int(decimal)
                else:
                    code_point = int(hexadecimal, 16)
                if not is_char(code_point):
                    self._fail(
                        "E_INVALID_CHAR_REF",
                        f"character reference {match.group(0)} is not a legal XML character",
                        amp,
                    )
            amp = text.find("&", match.end(), end)

    def _check_entity(self, name: str, offset: int) -> None:
        self._check_name(name, offset + 1)
        if name in PREDEFINED_ENTITIES:
            return
        doctype = self._doctype
        if doctype is not None and name in doctype.entities:
            return
        if self._entities_unverifiable():
            if name not in self._warned_entities:
                self._warned_entities.add(name)
                self._collector.warning(
                    "W_UNVERIFIED_ENTITY",
                    f"entity '&{name};' is not declared in the internal subset",
                    self._location(offset),
                )
            return
        self._fail("E_UNDEFINED_ENTITY", f"undefined entity '&{name};'", offset)

    def _entities_unverifiable(self) -> bool:
        doctype = self._doctype
        if doctype is None or self._standalone:
            return False
        return doctype.has_external_subset or doctype.has_parameter_refs

    def _check_prefix(self, qname: str, offset: int, prefixes: FrozenSet[str]) -> None:
        prefix, sep, local = qname.partition(":")
        if not sep or not prefix or not local:
            return
        if prefix in ("xml", "xmlns") or prefix in prefixes:
            return
        self._collector.warning(
            "W_UNDECLARED_PREFIX",
            f"namespace prefix '{prefix}' is not declared",
            self._location(offset),
        )

    def _check_name(self, name: str, offset: int) -> None:
        if not is_name(name):
            self._fail("E_INVALID_NAME", f"'{name}' is not a valid XML name", offset)

    def _check_chars(self, start: int, end: int) -> None:
        illegal = ILLEGAL_CHAR.search(self._text, start, end)
        if illegal is not None:
            self._fail(
                "E_INVALID_CHAR",
                f"illegal character U+{ord(illegal.group(0)):04X}",
                illegal.start(),
            )

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._fail(
                "E_TIMEOUT",
                "validation exceeded the per-file time limit",
                self._cursor.offset,
            )

    def _location(self, offset: int) -> Location:
        line, column = self._cursor.locate(offset)
        return Location(line=line, column=column, offset=self._decoded.byte_offset(offset))

    def _fail(self, code: str, message: str, offset: int) -> NoReturn:
        raise ParseError(code=code, message=message, location=self._location(offset))
