"""Tag and XML declaration parser based on Lark."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Tuple

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken


GRAMMAR = r"""
    ?markup: tag
           | end_tag
           | xml_decl

    tag: "<" NAME attribute* (TAG_END | EMPTY_END)
    end_tag: "</" NAME TAG_END
    xml_decl: "<?xml" attribute+ _DECL_END

    attribute: _S NAME _EQ VALUE

    NAME: /[^\s<>\/=?"'&]+/
    VALUE: /"[^"]*"|'[^']*'/
    _S: /[ \t\r\n]+/
    _EQ.2: /[ \t\r\n]*=[ \t\r\n]*/
    TAG_END.2: /[ \t\r\n]*>/
    EMPTY_END.2: /[ \t\r\n]*\/>/
    _DECL_END.2: /[ \t\r\n]*\?>/
"""

_BARE_TAG = re.compile(r"<(/?)([^\s<>/=?\"'&]+)[ \t\r\n]*(/?)>")


class MarkupKind(str, Enum):
    START = "start"
    EMPTY = "empty"
    END = "end"
    DECLARATION = "declaration"


@dataclass(frozen=True)
class Attribute:
    name: str
    value: str
    offset: int
    value_offset: int


@dataclass(frozen=True)
class Markup:
    """A parsed tag; offsets are relative to the first ``<``."""

    kind: MarkupKind
    name: str
    name_offset: int
    attributes: Tuple[Attribute, ...] = ()


class MarkupSyntaxError(Exception):
    """Raised when a tag does not match the markup grammar."""

    def __init__(self, offset: int, detail: str):
        self.offset = offset
        self.detail = detail
        super().__init__(f"offset {offset}: {detail}")


class _MarkupTransformer(Transformer):
    def attribute(self, items: list[Any]) -> Attribute:
        name, value = items
        return Attribute(
            name=str(name),
            value=str(value)[1:-1],
            offset=name.start_pos,
            value_offset=value.start_pos + 1,
        )

    def tag(self, items: list[Any]) -> Markup:
        name = items[0]
        closer = items[-1]
        kind = MarkupKind.EMPTY if closer.type == "EMPTY_END" else MarkupKind.START
        attributes = tuple(item for item in items[1:-1] if isinstance(item, Attribute))
        return Markup(kind, str(name), name.start_pos, attributes)

    def end_tag(self, items: list[Any]) -> Markup:
        name = items[0]
        return Markup(MarkupKind.END, str(name), name.start_pos)

    def xml_decl(self, items: list[Any]) -> Markup:
        return Markup(MarkupKind.DECLARATION, "xml", 2, tuple(items))


class MarkupParser:
    """Parse the text of a single tag into a :class:`Markup` record."""

    def __init__(self) -> None:
        self._parser = Lark(GRAMMAR, start="markup", parser="lalr")
        self._transformer = _MarkupTransformer()

    def parse(self, text: str, what: str = "tag") -> Markup:
        bare = _BARE_TAG.fullmatch(text)
        if bare is not None and not (bare.group(1) and bare.group(3)):
            return _bare_markup(bare)
        try:
            tree = self._parser.parse(text)
        except UnexpectedInput as exc:
            raise MarkupSyntaxError(_error_offset(exc, text), _describe(exc, what)) from exc
        return self._transformer.transform(tree)


def _bare_markup(match: re.Match) -> Markup:
    if match.group(1):
        kind = MarkupKind.END
    elif match.group(3):
        kind = MarkupKind.EMPTY
    else:
        kind = MarkupKind.START
    return Markup(kind, match.group(2), match.start(2))


@lru_cache(maxsize=1)
def get_markup_parser() -> MarkupParser:
    """Return the shared parser; Lark LALR parsers hold no per-parse state."""

    return MarkupParser()


def _error_offset(exc: UnexpectedInput, text: str) -> int:
    position = getattr(exc, "pos_in_stream", None)
    if position is None or position < 0:
        return len(text)
    return min(position, len(text))


def _describe(exc: UnexpectedInput, what: str) -> str:
    if isinstance(exc, UnexpectedCharacters):
        return f"unexpected character {exc.char!r} in {what}"
    if isinstance(exc, UnexpectedToken):
        token = exc.token
        if isinstance(token, Token) and token.type != "$END":
            return f"unexpected {str(token).strip() or 'whitespace'!r} in {what}"
    return f"unexpected end of {what}"
