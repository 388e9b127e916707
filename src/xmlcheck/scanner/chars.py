"""XML 1.0 character classes."""

from __future__ import annotations

import re


WHITESPACE = " \t\r\n"

PREDEFINED_ENTITIES = frozenset({"lt", "gt", "amp", "apos", "quot"})

_NAME_START_CHARS = (
    ":A-Z_a-z\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u02ff\u0370-\u037d\u037f-\u1fff"
    "\u200c\u200d\u2070-\u218f\u2c00-\u2fef\u3001-\ud7ff\uf900-\ufdcf\ufdf0-\ufffd"
    "\U00010000-\U000effff"
)
_NAME_CHARS = _NAME_START_CHARS + "\\-.0-9\u00b7\u0300-\u036f\u203f\u2040"

_NAME = re.compile(f"[{_NAME_START_CHARS}][{_NAME_CHARS}]*")
ILLEGAL_CHAR = re.compile("[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")
NON_WHITESPACE = re.compile(r"[^ \t\r\n]")


def is_name(value: str) -> bool:
    return _NAME.fullmatch(value) is not None


def is_char(code_point: int) -> bool:
    return (
        code_point in (0x9, 0xA, 0xD)
        or 0x20 <= code_point <= 0xD7FF
        or 0xE000 <= code_point <= 0xFFFD
        or 0x10000 <= code_point <= 0x10FFFF
    )
