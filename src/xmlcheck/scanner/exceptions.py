"""Exceptions raised by the well-formedness scanner."""

from __future__ import annotations

from dataclasses import dataclass

from ..diagnostics import Location
from ..exceptions import XmlcheckError


@dataclass
class ParseError(XmlcheckError):
    """Raised at the first fatal well-formedness violation."""

    code: str
    message: str
    location: Location

    def __post_init__(self) -> None:
        super().__init__(f"{self.location}: {self.message}")
