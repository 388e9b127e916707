"""Source documents handed to the validator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class SourceDocument:
    """Raw bytes of one document plus the identifier used in reports."""

    identifier: str
    content: bytes
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path, identifier: Optional[str] = None) -> "SourceDocument":
        path = Path(path)
        content = path.read_bytes()
        return cls(identifier=identifier or path.as_posix(), content=content, path=path)

    @classmethod
    def from_bytes(cls, content: bytes, identifier: str = "<memory>") -> "SourceDocument":
        return cls(identifier=identifier, content=bytes(content))

    @classmethod
    def from_text(
        cls, text: str, identifier: str = "<memory>", encoding: str = "utf-8"
    ) -> "SourceDocument":
        return cls(identifier=identifier, content=text.encode(encoding))
