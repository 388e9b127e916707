"""Pydantic models describing validator configuration."""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..scanner.encoding import is_document_encoding


DEFAULT_PATTERNS = ["**/*.xml"]
DEFAULT_EXCLUDE = ["node_modules/**"]


class ValidatorConfig(BaseModel):
    """Settings for one validation run."""

    model_config = ConfigDict(extra="forbid")

    patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_PATTERNS))
    exclude: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    root: Path = Path(".")
    encoding: str = "utf-8"
    timeout: Optional[float] = None
    workers: int = 4
    schema_file: Optional[Path] = None
    show_warnings: bool = False

    @field_validator("encoding")
    @classmethod
    def ensure_known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown encoding {value!r}") from None
        if not is_document_encoding(value, wide=False):
            raise ValueError("default encoding must be an ASCII-compatible text encoding")
        return value

    @model_validator(mode="after")
    def check_limits(self) -> "ValidatorConfig":
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if any(not pattern.strip() for pattern in self.patterns):
            raise ValueError("patterns must not contain empty entries")
        return self
